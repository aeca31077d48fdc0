import logging
import time
from dataclasses import dataclass

import numpy as np
import pytesseract

logger = logging.getLogger(__name__)


@dataclass
class OcrResult:
    text: str
    confidence: float  # 0-1 scale
    processing_time: int  # ms


class TesseractEngine:
    """
    Thin wrapper around Tesseract.

    Confidence is the mean of the per-word confidences Tesseract reports
    (words with conf <= 0 are layout noise and are ignored), rescaled to 0-1.
    """
    def __init__(self, language: str = "eng"):
        self.language = language

    def recognize(self, image: np.ndarray) -> OcrResult:
        logger.info("Starting Tesseract OCR")
        start = time.monotonic()

        data = pytesseract.image_to_data(image, lang=self.language, output_type=pytesseract.Output.DICT)
        text = pytesseract.image_to_string(image, lang=self.language)

        confidences = [float(conf) for conf in data.get("conf", []) if float(conf) > 0]
        confidence = (sum(confidences) / len(confidences) / 100) if confidences else 0.0
        processing_time = int((time.monotonic() - start) * 1000)

        logger.info(
            "OCR completed: text_length=%d confidence=%.2f processing_time=%dms",
            len(text), confidence, processing_time,
        )
        return OcrResult(text=text, confidence=confidence, processing_time=processing_time)
