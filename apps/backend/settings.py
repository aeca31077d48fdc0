import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_ALLOWED_FILE_TYPES = "image/png,image/jpeg,application/pdf"


@dataclass(frozen=True)
class Settings:
    """
    Service configuration, built once from the environment and passed
    explicitly into the router and processors.
    """
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o"
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.0
    port: int = 3000
    max_file_size: int = 10 * 1024 * 1024
    allowed_file_types: Tuple[str, ...] = tuple(DEFAULT_ALLOWED_FILE_TYPES.split(","))
    ocr_confidence_threshold: float = 0.6
    low_confidence_threshold: float = 0.5
    enable_ocr: bool = True
    enable_llm_vision: bool = True
    ocr_language: str = "eng"
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _list_env(name: str, default: str) -> Tuple[str, ...]:
    raw = os.environ.get(name) or default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _flag_env(name: str) -> bool:
    # Toggles are on unless explicitly switched off
    return os.environ.get(name, "").strip().lower() != "false"


def load_settings() -> Settings:
    load_dotenv()  # Load env vars from .env

    return Settings(
        openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
        llm_model=os.environ.get("LLM_MODEL", "gpt-4o"),
        llm_max_tokens=_int_env("LLM_MAX_TOKENS", 4096),
        llm_temperature=_float_env("LLM_TEMPERATURE", 0.0),
        port=_int_env("PORT", 3000),
        max_file_size=_int_env("MAX_FILE_SIZE", 10 * 1024 * 1024),
        allowed_file_types=_list_env("ALLOWED_FILE_TYPES", DEFAULT_ALLOWED_FILE_TYPES),
        ocr_confidence_threshold=_float_env("OCR_CONFIDENCE_THRESHOLD", 0.6),
        low_confidence_threshold=_float_env("LOW_CONFIDENCE_THRESHOLD", 0.5),
        enable_ocr=_flag_env("ENABLE_OCR"),
        enable_llm_vision=_flag_env("ENABLE_LLM_VISION"),
        ocr_language=os.environ.get("OCR_LANGUAGE", "eng"),
        cors_origins=_list_env("CORS_ORIGIN", "*"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
