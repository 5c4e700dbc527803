import json

import httpx
import pytest

from core.notifications import Notifier
from services.ai_service import AiService, build_messages


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_service(handler, notifier, api_key="sk-test"):
    return AiService(notifier, api_key=api_key, transport=httpx.MockTransport(handler))


def test_prompt_names_both_languages():
    messages = build_messages("hola", "Spanish", "English")

    assert [m["role"] for m in messages] == ["system", "user"]
    assert "target language is Spanish" in messages[0]["content"]
    assert "translation in English" in messages[1]["content"]
    assert messages[1]["content"].endswith("OCR Text: hola")


@pytest.mark.anyio
async def test_process_returns_cards():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion('```json\n[{"front": "hola", "back": "hello"}]\n```'))

    notifier = Notifier()
    cards = await make_service(handler, notifier).process("hola", "Spanish", "English")

    assert [(c.front, c.back) for c in cards] == [("hola", "hello")]
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "google/gemini-pro"
    assert seen["body"]["max_tokens"] == 1000
    assert notifier.messages == []


@pytest.mark.anyio
async def test_provider_error_message_is_surfaced():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

    notifier = Notifier()

    assert await make_service(handler, notifier).process("hola", "Spanish", "English") is None
    assert notifier.last_error == "Invalid API key"


@pytest.mark.anyio
async def test_missing_api_key_skips_the_request():
    def handler(request):
        raise AssertionError("no request expected")

    notifier = Notifier()
    service = make_service(handler, notifier, api_key="")

    assert await service.process("hola", "Spanish", "English") is None
    assert notifier.last_error == "OpenRouter API key is missing"


@pytest.mark.anyio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    notifier = Notifier()

    assert await make_service(handler, notifier).process("hola", "Spanish", "English") is None
    assert notifier.last_error == "AI request timed out"


@pytest.mark.anyio
async def test_unexpected_body():
    def handler(request):
        return httpx.Response(200, json={"choices": []})

    notifier = Notifier()

    assert await make_service(handler, notifier).process("hola", "Spanish", "English") is None
    assert notifier.last_error == "Unexpected AI response"


@pytest.mark.anyio
async def test_refusal_text_is_reported():
    def handler(request):
        return httpx.Response(200, json=completion("Sorry, I can't see any vocabulary."))

    notifier = Notifier()

    assert await make_service(handler, notifier).process("??", "Spanish", "English") is None
    assert notifier.last_error == "Sorry, I can't see any vocabulary."
