import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile

from dependencies import get_file_processor, get_settings
from services.errors import ErrorCode, ExtractionError
from services.file_processor import FileProcessor
from settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Extraction"])


@router.post("/extract")
async def extract_timetable(
    request: Request,
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    file_processor: FileProcessor = Depends(get_file_processor),
):
    """
    Extracts structured time blocks from an uploaded timetable.

    Pipeline:
    1. Upload checks: file present, MIME type allowed, size within limit.
    2. Processing: image (vision, OCR fallback) or PDF text (`FileProcessor`).
    3. Validation: schema, time ranges, duration back-fill.

    Args:
        file: PNG/JPEG image or text-based PDF in the multipart field "file".

    Returns:
        dict: `{success, data, metadata, processingTime}`.
    """
    request_id = getattr(request.state, "request_id", None)

    if file is None:
        raise ExtractionError(
            ErrorCode.NO_FILE_PROVIDED,
            "No file was uploaded. Please provide a file in the request.",
        )

    mime_type = file.content_type or "application/octet-stream"
    logger.info(
        "Extraction request received: filename=%s mime_type=%s size=%s",
        file.filename, mime_type, file.size,
    )

    if not file_processor.is_file_type_supported(mime_type):
        raise file_processor.unsupported(mime_type)

    # Reject on the declared size first, then never buffer more than limit + 1 bytes
    if file.size is not None and file.size > settings.max_file_size:
        raise _too_large(settings)

    contents = await file.read(settings.max_file_size + 1)
    if len(contents) > settings.max_file_size:
        raise _too_large(settings)

    result = await file_processor.process_file(contents, mime_type, file.filename or "upload")
    result["metadata"].update({
        "requestId": request_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
    return result


def describe_size(size: int) -> str:
    if size < 1024 * 1024:
        return f"{size} bytes"
    return f"{size / 1024 / 1024:.1f}MB"


def _too_large(settings: Settings) -> ExtractionError:
    return ExtractionError(
        ErrorCode.FILE_TOO_LARGE,
        f"File size exceeds maximum allowed size of {describe_size(settings.max_file_size)}",
    )
