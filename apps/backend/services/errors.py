from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    NO_FILE_PROVIDED = "NO_FILE_PROVIDED"
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    IMAGE_PROCESSING_FAILED = "IMAGE_PROCESSING_FAILED"
    PDF_PROCESSING_FAILED = "PDF_PROCESSING_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_BY_CODE = {
    ErrorCode.NO_FILE_PROVIDED: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.FILE_TOO_LARGE: 413,
    ErrorCode.UNSUPPORTED_FILE_TYPE: 415,
    ErrorCode.VALIDATION_FAILED: 422,
}


class ExtractionError(Exception):
    """
    Terminal failure of one extraction request.

    Carries a taxonomy code, a human-readable message and optional
    details; the API layer renders it verbatim in the error envelope.
    """
    def __init__(self, code: ErrorCode, message: str, details: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        # An explicit status (e.g. 405 from routing) wins over the code mapping
        if self._status_code is not None:
            return self._status_code
        return STATUS_BY_CODE.get(self.code, 500)

    def to_dict(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        error = {"code": self.code.value, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        if request_id:
            error["requestId"] = request_id
        return error


class LLMResponseError(Exception):
    """Raised when the model reply does not contain a JSON object."""


class LLMNotConfiguredError(Exception):
    """Raised when an LLM call is attempted without an API key."""
