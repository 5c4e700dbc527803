import io

import numpy as np
import pytest
from PIL import Image

from conftest import FakeOcrEngine
from core.errors import OcrFailure
from core.notifications import Notifier
from services.ocr_service import OcrService, load_image, to_ocr_result


def png_bytes(size=(32, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, (255, 255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


def test_load_image_returns_rgb_array():
    image = load_image(png_bytes())

    assert isinstance(image, np.ndarray)
    assert image.shape == (16, 32, 3)


def test_load_image_rejects_garbage():
    with pytest.raises(OcrFailure):
        load_image(b"not an image")


def test_to_ocr_result_joins_lines_and_averages_confidence():
    result = to_ocr_result([(None, "el gato", 0.9), (None, "  ", 0.1), (None, "the cat", 0.7)])

    assert result.text == "el gato\nthe cat"
    assert result.confidence == 80.0


def test_to_ocr_result_without_detections():
    result = to_ocr_result([])

    assert result.text == ""
    assert result.confidence == 0.0


def test_perform_ocr():
    engine = FakeOcrEngine([(None, "hola", 0.5)])

    result = OcrService(Notifier(), engine).perform_ocr(png_bytes())

    assert result.text == "hola"
    assert engine.calls == 1


def test_engine_crash_is_reported():
    notifier = Notifier()
    engine = FakeOcrEngine(error=RuntimeError("model files missing"))

    assert OcrService(notifier, engine).perform_ocr(png_bytes()) is None
    assert notifier.last_error == "Failed to process image"


def test_empty_upload_never_reaches_the_engine():
    notifier = Notifier()
    engine = FakeOcrEngine([(None, "hola", 0.5)])

    assert OcrService(notifier, engine).perform_ocr(b"") is None
    assert engine.calls == 0
