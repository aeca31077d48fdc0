from functools import lru_cache

from fastapi import Depends

from services.file_processor import FileProcessor
from services.image_processor import ImageProcessor
from services.llm_client import TimetableLLMClient
from services.pdf_processor import PDFProcessor
from settings import Settings, load_settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def _shared_llm_client(settings: Settings) -> TimetableLLMClient:
    # One long-lived client handle per configuration
    return TimetableLLMClient(settings)


def get_llm_client(settings: Settings = Depends(get_settings)) -> TimetableLLMClient:
    return _shared_llm_client(settings)


def get_file_processor(
    settings: Settings = Depends(get_settings),
    llm_client: TimetableLLMClient = Depends(get_llm_client),
) -> FileProcessor:
    return FileProcessor(
        settings,
        image_processor=ImageProcessor(settings, llm_client),
        pdf_processor=PDFProcessor(llm_client),
    )
