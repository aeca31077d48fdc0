import logging
import time
from typing import Any, Dict

from models.results import ProcessorResult
from services.errors import ErrorCode, ExtractionError
from services.image_processor import ImageProcessor
from services.pdf_processor import PDFProcessor
from services.validator import validate_extraction
from settings import Settings

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class FileProcessor:
    """
    Routes an upload to the right processor and validates the result.

    Pipeline:
    1. MIME check against the allowed set (nothing else runs on failure).
    2. Image or PDF processor (exactly one attempt).
    3. Schema + business validation, duration enrichment.
    """
    def __init__(self, settings: Settings, image_processor: ImageProcessor, pdf_processor: PDFProcessor):
        self.settings = settings
        self.image_processor = image_processor
        self.pdf_processor = pdf_processor

    def is_file_type_supported(self, mime_type: str) -> bool:
        return mime_type in self.settings.allowed_file_types

    def unsupported(self, mime_type: str) -> ExtractionError:
        return ExtractionError(
            ErrorCode.UNSUPPORTED_FILE_TYPE,
            f"File type {mime_type} is not supported",
            f"Supported types: {', '.join(self.settings.allowed_file_types)}",
        )

    async def route(self, contents: bytes, mime_type: str) -> ProcessorResult:
        if not self.is_file_type_supported(mime_type):
            raise self.unsupported(mime_type)

        if mime_type.startswith("image/"):
            return await self.image_processor.process(contents, mime_type)
        if mime_type == PDF_MIME_TYPE:
            return await self.pdf_processor.process(contents)

        raise self.unsupported(mime_type)

    async def process_file(self, contents: bytes, mime_type: str, filename: str) -> Dict[str, Any]:
        """
        Runs the full extraction for one upload.

        Returns:
            dict: `{success, data, metadata, processingTime}` ready for the API.

        Raises:
            ExtractionError: unsupported type, processor failure, or VALIDATION_FAILED.
        """
        logger.info("Starting file processing: filename=%s mime_type=%s size=%d", filename, mime_type, len(contents))
        start = time.monotonic()

        try:
            result = await self.route(contents, mime_type)
        except ExtractionError as e:
            logger.error(
                "File processing failed: code=%s message=%s total_time=%dms",
                e.code.value, e.message, _elapsed_ms(start),
            )
            raise
        except Exception as e:
            logger.exception("File processing failed unexpectedly")
            raise ExtractionError(
                ErrorCode.INTERNAL_ERROR,
                str(e) or "An unexpected error occurred during processing",
            ) from e

        outcome = validate_extraction(result.data, self.settings.low_confidence_threshold)
        if not outcome.is_valid:
            logger.error("Validation failed: %s", [issue.model_dump() for issue in outcome.errors])
            raise ExtractionError(
                ErrorCode.VALIDATION_FAILED,
                "Extracted data failed validation",
                [issue.model_dump(exclude_none=True) for issue in outcome.errors],
            )

        total_time = _elapsed_ms(start)
        logger.info(
            "File processing completed: method=%s timeblocks=%d confidence=%.2f total_time=%dms",
            result.extraction_method,
            len(outcome.data.timeblocks),
            outcome.data.metadata.extraction_confidence,
            total_time,
        )

        return {
            "success": True,
            "data": outcome.data.model_dump(mode="json"),
            "metadata": {
                **result.describe(),
                "filename": filename,
                "fileType": mime_type,
                "validationWarnings": [w.model_dump(exclude_none=True) for w in outcome.warnings],
            },
            "processingTime": total_time,
        }


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
