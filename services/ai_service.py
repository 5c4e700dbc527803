import logging

import httpx

from core.config import settings
from core.errors import AiFailure
from core.notifications import Notifier
from schemas.flashcard import ProcessedCard
from services.response_parser import parse_flashcards

logger = logging.getLogger(__name__)


def build_messages(ocr_text: str, language: str, translation_language: str) -> list[dict[str, str]]:
    return [
        {
            "role": "system",
            "content": (
                "You are a language learning assistant that extracts vocabulary from Duolingo screenshots. "
                "Extract word pairs from the OCR text and format them as flashcards. "
                f"The target language is {language} and translations are in {translation_language}."
            ),
        },
        {
            "role": "user",
            "content": (
                "Extract vocabulary pairs from this Duolingo screenshot OCR text and format them as flashcards. "
                f"Return ONLY a JSON array of objects with 'front' (word in {language}) "
                f"and 'back' (translation in {translation_language}) properties.\n"
                f"OCR Text: {ocr_text}"
            ),
        },
    ]


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return AiFailure.default_message
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
    return AiFailure.default_message


class AiService:
    """Client for the OpenRouter chat-completions endpoint. One attempt per call."""

    def __init__(
        self,
        notifier: Notifier,
        *,
        api_key: str | None = None,
        url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.notifier = notifier
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self.url = url or settings.OPENROUTER_URL
        self.model = model or settings.OPENROUTER_MODEL
        self.max_tokens = max_tokens or settings.AI_MAX_TOKENS
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self.transport = transport

    async def complete(self, ocr_text: str, language: str, translation_language: str) -> str:
        if not self.api_key:
            raise AiFailure("OpenRouter API key is missing")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.post(
                    self.url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": build_messages(ocr_text, language, translation_language),
                        "max_tokens": self.max_tokens,
                    },
                )
            except httpx.TimeoutException as exc:
                raise AiFailure("AI request timed out") from exc
            except httpx.HTTPError as exc:
                raise AiFailure() from exc

        if r.is_error:
            raise AiFailure(_error_message(r))

        try:
            content = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AiFailure("Unexpected AI response") from exc
        if not isinstance(content, str):
            raise AiFailure("Unexpected AI response")
        return content

    async def process(self, ocr_text: str, language: str, translation_language: str) -> list[ProcessedCard] | None:
        try:
            content = await self.complete(ocr_text, language, translation_language)
            return parse_flashcards(content)
        except AiFailure as exc:
            logger.error("AI processing error: %s", exc.message)
            self.notifier.error(exc.message)
            return None
