import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from models.results import ProcessorResult
from services.errors import ErrorCode, ExtractionError
from services.llm_client import TimetableLLMClient
from services.ocr.preprocessor import ImagePreprocessor, PreprocessedImage
from services.ocr.tesseract_engine import TesseractEngine
from settings import Settings

logger = logging.getLogger(__name__)

MIN_OCR_TEXT_LENGTH = 50

METHOD_VISION = "llm-vision"
METHOD_OCR = "ocr + llm-text"


class ImageProcessor:
    """
    Extracts a timetable from an uploaded image.

    Two-path strategy:
    1. Primary: send the preprocessed image to the vision model.
    2. Fallback (once, only if vision raised): Tesseract OCR, then a
       text-only model call.

    If vision is disabled the OCR path is used directly. Every failure is
    reported as IMAGE_PROCESSING_FAILED.
    """
    def __init__(
        self,
        settings: Settings,
        llm_client: TimetableLLMClient,
        preprocessor: Optional[ImagePreprocessor] = None,
        ocr_engine: Optional[TesseractEngine] = None,
    ):
        self.settings = settings
        self.llm_client = llm_client
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.ocr_engine = ocr_engine or TesseractEngine(settings.ocr_language)

    async def process(self, contents: bytes, mime_type: str) -> ProcessorResult:
        logger.info("Starting image processing (mime_type=%s)", mime_type)
        try:
            return await self._process(contents, mime_type)
        except ExtractionError:
            raise
        except Exception as e:
            logger.error("Image processing failed: %s", e)
            raise ExtractionError(
                ErrorCode.IMAGE_PROCESSING_FAILED,
                str(e),
                "Failed to extract timetable from image. The image may be unclear, "
                "corrupted, or in an unsupported format.",
            ) from e

    async def _process(self, contents: bytes, mime_type: str) -> ProcessorResult:
        # 1. Preprocess (fall back to the untouched upload if OpenCV can't handle it)
        processed = await self._preprocess(contents)
        image_bytes = processed.content if processed else contents
        image_mime = processed.mime_type if processed else mime_type
        details = {"image": processed.describe()} if processed else {}

        # 2. Vision (primary)
        if self.settings.enable_llm_vision and self.llm_client.is_configured():
            logger.info("Using vision model for extraction (primary method)")
            try:
                data, llm_metadata = await self.llm_client.extract_with_vision(image_bytes, image_mime)
                return ProcessorResult(
                    data=data,
                    extraction_method=METHOD_VISION,
                    llm_metadata=llm_metadata,
                    details=details,
                )
            except Exception as vision_error:
                if not self.settings.enable_ocr:
                    raise
                logger.error("Vision extraction failed, falling back to OCR: %s", vision_error)
                details["visionError"] = str(vision_error)
                return await self._extract_with_ocr(processed, contents, details)

        # 3. OCR only
        if self.settings.enable_ocr:
            logger.info("LLM vision unavailable, using OCR + text extraction")
            return await self._extract_with_ocr(processed, contents, details)

        raise ValueError("No extraction method available. Enable LLM vision or OCR in configuration.")

    async def _preprocess(self, contents: bytes) -> Optional[PreprocessedImage]:
        try:
            processed = await run_in_threadpool(self.preprocessor.preprocess, contents)
        except Exception as e:
            logger.error("Image preprocessing failed, using original upload: %s", e)
            return None
        logger.info(
            "Image preprocessed: %dx%d -> %dx%d",
            processed.original_width, processed.original_height, processed.width, processed.height,
        )
        return processed

    async def _extract_with_ocr(self, processed: Optional[PreprocessedImage], contents: bytes, details: dict) -> ProcessorResult:
        logger.info("Starting OCR-based extraction")

        image = processed.image if processed else await run_in_threadpool(self.preprocessor.decode, contents)
        ocr = await run_in_threadpool(self.ocr_engine.recognize, image)

        threshold = self.settings.ocr_confidence_threshold
        if ocr.confidence < threshold:
            logger.warning("OCR confidence too low: %.2f < %.2f", ocr.confidence, threshold)
            raise ValueError(
                f"OCR confidence too low ({ocr.confidence * 100:.1f}%). "
                "Image quality may be insufficient. Try a clearer image."
            )

        if len(ocr.text.strip()) < MIN_OCR_TEXT_LENGTH:
            raise ValueError(
                "Insufficient text extracted from image. "
                "Image may be unclear or contain no timetable data."
            )

        if not self.llm_client.is_configured():
            logger.warning("LLM not configured, cannot parse OCR text")
            raise ExtractionError(
                ErrorCode.IMAGE_PROCESSING_FAILED,
                "LLM not configured for text parsing",
                {"rawText": ocr.text, "ocrConfidence": ocr.confidence},
            )

        logger.info("Using LLM to parse OCR text")
        data, llm_metadata = await self.llm_client.extract_from_text(ocr.text)
        return ProcessorResult(
            data=data,
            extraction_method=METHOD_OCR,
            llm_metadata=llm_metadata,
            ocr_confidence=ocr.confidence,
            details=details,
        )
