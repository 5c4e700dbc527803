import pytest

from core.errors import ParseFailure
from services.response_parser import INVALID_FORMAT, extract_candidate, parse_flashcards


def test_bare_json_array():
    cards = parse_flashcards('[{"front": "hola", "back": "hello"}, {"front": "adiós", "back": "goodbye"}]')

    assert [(c.front, c.back) for c in cards] == [("hola", "hello"), ("adiós", "goodbye")]


def test_fenced_json_block():
    text = 'Here you go:\n```json\n[{"front": "gato", "back": "cat"}]\n```\nEnjoy!'

    cards = parse_flashcards(text)

    assert len(cards) == 1
    assert cards[0].front == "gato"
    assert cards[0].back == "cat"


def test_fence_without_language_tag():
    assert extract_candidate('```\n[{"front": "a", "back": "b"}]\n```') == '[{"front": "a", "back": "b"}]'


def test_prose_refusal_is_surfaced_verbatim():
    text = "I could not find any vocabulary in this image."

    with pytest.raises(ParseFailure) as info:
        parse_flashcards(text)

    assert info.value.message == text


def test_malformed_json():
    with pytest.raises(ParseFailure) as info:
        parse_flashcards('[{"front": "hola", "back": }]')

    assert info.value.message == "Failed to parse AI response"
    assert info.value.raw_text == '[{"front": "hola", "back": }]'


def test_single_object_is_rejected():
    with pytest.raises(ParseFailure) as info:
        parse_flashcards('{"front": "hola", "back": "hello"}')

    assert info.value.message == INVALID_FORMAT


def test_empty_array_is_rejected():
    with pytest.raises(ParseFailure) as info:
        parse_flashcards("[]")

    assert info.value.message == INVALID_FORMAT


def test_items_missing_back_are_rejected():
    with pytest.raises(ParseFailure) as info:
        parse_flashcards('[{"front": "hola"}]')

    assert info.value.message == INVALID_FORMAT


@pytest.mark.parametrize("text", ["", "   \n"])
def test_blank_response(text):
    with pytest.raises(ParseFailure) as info:
        parse_flashcards(text)

    assert info.value.message == "AI returned an empty response"


def test_numeric_values_become_text():
    cards = parse_flashcards('[{"front": "dos", "back": 2}, {"front": 3.5, "back": "three and a half"}]')

    assert [(c.front, c.back) for c in cards] == [("dos", "2"), ("3.5", "three and a half")]
