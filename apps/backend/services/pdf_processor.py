import logging
import time
from typing import Tuple

import fitz  # PyMuPDF
from fastapi.concurrency import run_in_threadpool

from models.results import ProcessorResult
from services.errors import ErrorCode, ExtractionError
from services.llm_client import TimetableLLMClient

logger = logging.getLogger(__name__)

MIN_PDF_TEXT_LENGTH = 50

METHOD_PDF = "pdf-text + llm-text"


def extract_pdf_text(contents: bytes) -> Tuple[str, int]:
    """Returns the embedded text of every page and the page count."""
    with fitz.open(stream=contents, filetype="pdf") as doc:
        text = "\n".join(page.get_text("text") for page in doc)
        return text, doc.page_count


class PDFProcessor:
    """
    Extracts a timetable from a text-based PDF.

    Scanned PDFs (little or no embedded text) are rejected before any
    model call; there is no rasterization or OCR fallback.
    """
    def __init__(self, llm_client: TimetableLLMClient):
        self.llm_client = llm_client

    async def process(self, contents: bytes) -> ProcessorResult:
        logger.info("Starting PDF processing")
        try:
            return await self._process(contents)
        except Exception as e:
            logger.error("PDF processing failed: %s", e)
            raise ExtractionError(
                ErrorCode.PDF_PROCESSING_FAILED,
                str(e),
                "Failed to extract text from PDF. The file may be corrupted, "
                "password-protected, or a scanned image.",
            ) from e

    async def _process(self, contents: bytes) -> ProcessorResult:
        start = time.monotonic()
        text, page_count = await run_in_threadpool(extract_pdf_text, contents)
        logger.info(
            "PDF text extracted: pages=%d text_length=%d extraction_time=%dms",
            page_count, len(text), int((time.monotonic() - start) * 1000),
        )

        if len(text.strip()) <= MIN_PDF_TEXT_LENGTH:
            logger.warning("PDF has insufficient text content, may be scanned image (text_length=%d)", len(text))
            raise ValueError(
                "PDF appears to be a scanned image. Please convert to PNG/JPEG "
                "and upload again, or the PDF may be empty."
            )

        logger.info("PDF contains extractable text, using LLM text extraction")
        data, llm_metadata = await self.llm_client.extract_from_text(text)
        return ProcessorResult(
            data=data,
            extraction_method=METHOD_PDF,
            llm_metadata=llm_metadata,
            details={"pages": page_count},
        )
