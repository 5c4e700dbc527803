from __future__ import annotations

import io
import logging
from typing import Any, Protocol

import numpy as np
from PIL import Image, UnidentifiedImageError

from core.errors import OcrFailure
from core.notifications import Notifier
from schemas.flashcard import OCRResult

logger = logging.getLogger(__name__)


class OcrEngine(Protocol):
    def recognize(self, image: np.ndarray) -> list[tuple[Any, str, float]]:
        ...


def load_image(data: bytes) -> np.ndarray:
    if not data:
        raise OcrFailure("Uploaded image is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as exc:
        raise OcrFailure("Uploaded file is not a readable image") from exc


def to_ocr_result(detections: list[tuple[Any, str, float]]) -> OCRResult:
    fragments = [text.strip() for _, text, _ in detections if text and text.strip()]
    confidences = [float(conf) for _, text, conf in detections if text and text.strip()]
    confidence = round(sum(confidences) / len(confidences) * 100, 2) if confidences else 0.0
    return OCRResult(text="\n".join(fragments), confidence=confidence)


class EasyOcrEngine:
    """easyocr reader, created on first use and kept for the app's lifetime."""

    def __init__(self, langs: list[str], gpu: bool = False):
        self.langs = langs or ["en"]
        self.gpu = gpu
        self._reader: Any | None = None

    def _get_reader(self):
        if self._reader is None:
            import easyocr

            logger.info("Loading easyocr reader for %s", ",".join(self.langs))
            self._reader = easyocr.Reader(self.langs, gpu=self.gpu)
        return self._reader

    def recognize(self, image: np.ndarray) -> list[tuple[Any, str, float]]:
        # easyocr yields (bbox, text, confidence) in reading order
        return self._get_reader().readtext(image, detail=1, paragraph=False)


class OcrService:
    def __init__(self, notifier: Notifier, engine: OcrEngine):
        self.notifier = notifier
        self.engine = engine

    def perform_ocr(self, data: bytes) -> OCRResult | None:
        try:
            image = load_image(data)
            try:
                detections = self.engine.recognize(image)
            except Exception as exc:
                raise OcrFailure() from exc
            return to_ocr_result(detections)
        except OcrFailure as exc:
            logger.error("OCR error: %s", exc.message, exc_info=exc.__cause__ is not None)
            self.notifier.error(OcrFailure.default_message)
            return None
