"""
Recover flashcard pairs from a free-form LLM completion.

Models are asked for a bare JSON array but often wrap it in a ```json fence,
add prose around it, or refuse outright with an explanation. Anything that does
not yield a non-empty list of ``{front, back}`` objects raises ``ParseFailure``.
"""

import json
import logging
import re

from pydantic import TypeAdapter, ValidationError

from core.errors import ParseFailure
from schemas.flashcard import ProcessedCard

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)
INVALID_FORMAT = "Invalid card format returned"

_cards_adapter = TypeAdapter(list[ProcessedCard])


def extract_candidate(text: str) -> str:
    match = FENCED_BLOCK.search(text)
    candidate = match.group(1) if match else text
    return candidate.strip()


def looks_like_json(candidate: str) -> bool:
    return candidate.startswith("[") or candidate.startswith("{")


def parse_flashcards(text: str) -> list[ProcessedCard]:
    if not text or not text.strip():
        raise ParseFailure("AI returned an empty response", raw_text=text)

    candidate = extract_candidate(text)
    if not looks_like_json(candidate):
        # the model explains why it could not extract anything
        raise ParseFailure(text, raw_text=text)

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.error("Error parsing AI response: %s; raw text: %r", exc, text)
        raise ParseFailure("Failed to parse AI response", raw_text=text) from exc

    # a lone object is rejected, not wrapped
    if not isinstance(payload, list) or not payload:
        raise ParseFailure(INVALID_FORMAT, raw_text=text)

    try:
        return _cards_adapter.validate_python(payload)
    except ValidationError as exc:
        logger.error("AI response items are not front/back pairs: %s", exc)
        raise ParseFailure(INVALID_FORMAT, raw_text=text) from exc
