from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
import logging
import uvicorn

from api import extract
from dependencies import get_llm_client, get_settings
from logging_config import clear_request_id, generate_request_id, set_request_id, setup_logging
from services.errors import ErrorCode, ExtractionError
from services.llm_client import TimetableLLMClient

VERSION = "1.0.0"

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Timetable Extraction API", version=VERSION)


@app.on_event("startup")
def on_startup():
    current = get_settings()
    logger.info("Timetable Extraction API starting (version %s)", VERSION)
    logger.info("LLM service: %s (model %s)", "configured" if current.openai_api_key else "not configured", current.llm_model)
    logger.info("Max file size: %s", extract.describe_size(current.max_file_size))
    logger.info("OCR enabled: %s | LLM vision enabled: %s", current.enable_ocr, current.enable_llm_vision)


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def tag_request(request: Request, call_next):
    request.state.request_id = generate_request_id()
    token = set_request_id(request.state.request_id)
    try:
        logger.info("Incoming request: %s %s", request.method, request.url.path)
        return await call_next(request)
    finally:
        clear_request_id(token)


def _error_response(request: Request, error: ExtractionError, headers=None) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.to_dict(request_id)},
        headers=headers,
    )


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError):
    logger.error("Extraction request failed: code=%s message=%s", exc.code.value, exc.message)
    return _error_response(request, exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        error = ExtractionError(ErrorCode.NOT_FOUND, f"Route {request.method} {request.url.path} not found")
    elif exc.status_code == 413:
        error = ExtractionError(ErrorCode.FILE_TOO_LARGE, str(exc.detail))
    elif 400 <= exc.status_code < 500:
        error = ExtractionError(ErrorCode.INVALID_REQUEST, str(exc.detail), status_code=exc.status_code)
    else:
        error = ExtractionError(ErrorCode.INTERNAL_ERROR, str(exc.detail))
    return _error_response(request, error, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ExtractionError(
        ErrorCode.INVALID_REQUEST,
        "Invalid request. Upload the timetable as multipart field \"file\".",
        [{"path": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in exc.errors()],
    )
    return _error_response(request, error)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = ExtractionError(ErrorCode.INTERNAL_ERROR, str(exc) or "An unexpected error occurred")
    return _error_response(request, error)


app.include_router(extract.router)


@app.get("/health")
async def health_check(llm_client: TimetableLLMClient = Depends(get_llm_client)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "operational",
            "llm": "configured" if llm_client.is_configured() else "not configured",
        },
        "version": VERSION,
    }


@app.get("/")
async def root():
    return {
        "name": "Timetable Extraction API",
        "version": VERSION,
        "status": "operational",
        "endpoints": {
            "health": "GET /health",
            "extract": "POST /extract",
        },
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=True)
