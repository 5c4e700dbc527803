import io

import pytest
from PIL import Image

from conftest import FakeAiService, FakeOcrEngine
from core.errors import WizardBusy, WizardStateError
from schemas.flashcard import DeckCreateIn, ProcessedCard
from schemas.wizard import WizardDeckIn
from services.creation_wizard import CreationWizard, WizardState, WizardStep, filter_blank_pairs
from services.ocr_service import OcrService


def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), "white").save(buf, format="PNG")
    return buf.getvalue()


def make_wizard(state, session, notifier, flashcards, ocr_engine=None, ai=None):
    ai = ai or FakeAiService(cards=[ProcessedCard(front="la casa", back="the house")])
    ai.notifier = notifier
    return CreationWizard(
        state,
        session=session,
        notifier=notifier,
        flashcards=flashcards,
        ocr=OcrService(notifier, ocr_engine or FakeOcrEngine([(None, "la casa", 0.95)])),
        ai=ai,
    )


def test_blank_name_never_reaches_the_store(session, notifier, flashcards, monkeypatch):
    calls = []
    monkeypatch.setattr(flashcards, "create_deck", lambda *a, **kw: calls.append(a))
    wizard = make_wizard(WizardState(), session, notifier, flashcards)

    assert wizard.submit(WizardDeckIn(name="   ", language="Spanish")) is None

    assert calls == []
    assert notifier.last_error == "Please fill in all required fields"
    assert wizard.state.step is WizardStep.NAMING_DECK


def test_submit_moves_to_upload(session, notifier, flashcards):
    wizard = make_wizard(WizardState(), session, notifier, flashcards)

    deck = wizard.submit(WizardDeckIn(name="Food", language="Spanish"))

    assert deck.name == "Food"
    assert wizard.state.deck_id == deck.id
    assert wizard.state.step is WizardStep.UPLOADING_IMAGE
    assert notifier.messages[-1].message == "Deck created successfully!"


def test_existing_deck_starts_at_upload_with_its_language(session, notifier, flashcards):
    deck = flashcards.create_deck(session, DeckCreateIn(name="Animals", language="Italian"))

    state = WizardState.for_existing_deck(deck)

    assert state.step is WizardStep.UPLOADING_IMAGE
    assert state.language == "Italian"
    assert state.existing_deck


@pytest.mark.parametrize(
    "filename, content_type",
    [("notes.txt", "text/plain"), ("shot.png", "application/pdf"), ("shot", "image/png")],
)
def test_select_image_rejects_non_images(session, notifier, flashcards, filename, content_type):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1)
    wizard = make_wizard(state, session, notifier, flashcards)

    assert wizard.select_image(filename, content_type, b"data") is False
    assert state.image is None


def test_select_image_rejects_oversized(session, notifier, flashcards):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1)
    wizard = make_wizard(state, session, notifier, flashcards)
    wizard.max_image_bytes = 10

    assert wizard.select_image("shot.png", "image/png", b"x" * 11) is False
    assert notifier.last_error == "Image is too large"


@pytest.mark.anyio
async def test_process_extracts_cards(session, notifier, flashcards):
    deck = flashcards.create_deck(session, DeckCreateIn(name="Home", language="Spanish"))
    state = WizardState.for_existing_deck(deck)
    ai = FakeAiService(cards=[ProcessedCard(front="la casa", back="the house")])
    wizard = make_wizard(state, session, notifier, flashcards, ai=ai)
    wizard.select_image("shot.png", "image/png", png_bytes())

    cards = await wizard.process()

    assert [c.front for c in cards] == ["la casa"]
    assert state.step is WizardStep.EDITING_CARDS
    assert state.ocr_text == "la casa"
    assert ai.calls == [("la casa", "Spanish", "English")]
    assert notifier.messages[-1].message == "Extracted 1 flashcards!"
    assert state.busy is False


@pytest.mark.anyio
async def test_process_without_image(session, notifier, flashcards):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1)
    wizard = make_wizard(state, session, notifier, flashcards)

    assert await wizard.process() is None
    assert notifier.last_error == "Please upload an image first"


@pytest.mark.anyio
async def test_process_with_no_text_skips_the_ai(session, notifier, flashcards):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1, language="Spanish")
    ai = FakeAiService(cards=[ProcessedCard(front="x", back="y")])
    wizard = make_wizard(state, session, notifier, flashcards, ocr_engine=FakeOcrEngine([]), ai=ai)
    wizard.select_image("shot.png", "image/png", png_bytes())

    assert await wizard.process() is None
    assert ai.calls == []
    assert notifier.last_error == "No text found in the image"
    assert state.step is WizardStep.UPLOADING_IMAGE


@pytest.mark.anyio
async def test_ai_failure_returns_to_upload(session, notifier, flashcards):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1, language="Spanish")
    wizard = make_wizard(state, session, notifier, flashcards, ai=FakeAiService(cards=None))
    wizard.select_image("shot.png", "image/png", png_bytes())

    assert await wizard.process() is None
    assert state.step is WizardStep.UPLOADING_IMAGE
    assert state.candidates == []
    assert state.image is None
    assert notifier.last_error == "Failed to process with AI"


@pytest.mark.anyio
async def test_process_refuses_while_busy(session, notifier, flashcards):
    state = WizardState(step=WizardStep.UPLOADING_IMAGE, deck_id=1, busy=True)
    wizard = make_wizard(state, session, notifier, flashcards)

    with pytest.raises(WizardBusy):
        await wizard.process()


def test_save_filters_blank_pairs(session, notifier, flashcards):
    deck = flashcards.create_deck(session, DeckCreateIn(name="Home", language="Spanish"))
    state = WizardState.for_existing_deck(deck)
    state.step = WizardStep.EDITING_CARDS
    wizard = make_wizard(state, session, notifier, flashcards)

    created = wizard.save(
        [
            ProcessedCard(front="la mesa", back="the table"),
            ProcessedCard(front="  ", back="nothing"),
            ProcessedCard(front="la silla", back=""),
        ]
    )

    assert [c.front for c in created] == ["la mesa"]
    assert state.step is WizardStep.DONE
    assert state.candidates == []
    assert notifier.messages[-1].message == "Cards saved successfully!"


def test_save_with_only_blank_pairs(session, notifier, flashcards):
    state = WizardState(step=WizardStep.EDITING_CARDS, deck_id=1)
    wizard = make_wizard(state, session, notifier, flashcards)
    edits = [ProcessedCard(front="", back="")]

    assert wizard.save(edits) is None
    assert notifier.last_error == "Please add at least one card"
    assert state.candidates == edits


def test_save_in_wrong_step(session, notifier, flashcards):
    wizard = make_wizard(WizardState(), session, notifier, flashcards)

    with pytest.raises(WizardStateError):
        wizard.save([ProcessedCard(front="a", back="b")])


def test_cancel_discards_work(session, notifier, flashcards):
    state = WizardState(step=WizardStep.EDITING_CARDS, deck_id=1, ocr_text="text")
    state.candidates = [ProcessedCard(front="a", back="b")]
    wizard = make_wizard(state, session, notifier, flashcards)

    wizard.cancel()

    assert state.step is WizardStep.DONE
    assert state.candidates == []
    assert state.ocr_text is None


def test_filter_blank_pairs():
    cards = [ProcessedCard(front="a", back="b"), ProcessedCard(front="", back="b"), ProcessedCard(front="a", back=" ")]

    assert filter_blank_pairs(cards) == [ProcessedCard(front="a", back="b")]
