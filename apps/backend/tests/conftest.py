import pytest
import cv2
import numpy as np
from unittest.mock import AsyncMock, MagicMock

from dependencies import get_llm_client, get_settings
from main import app
from services.llm_client import TimetableLLMClient
from settings import Settings

TWO_BLOCK_REPLY = {
    "metadata": {
        "teacher_name": "Miss Joynes",
        "class_name": "2EJ",
        "term": None,
        "school_name": None,
        "extraction_confidence": 0.9,
    },
    "timeblocks": [
        {"day": "Monday", "start_time": "9:00", "end_time": "9:30", "subject": "Maths", "subject_type": "academic"},
        {"day": "Monday", "start_time": "10:30", "end_time": "10:45", "subject": "Break", "subject_type": "break"},
    ],
}

LLM_METADATA = {"model": "gpt-4o", "processingTime": 12, "tokensUsed": 321}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(openai_api_key="test-key")


@pytest.fixture
def llm_client():
    """TimetableLLMClient stand-in; both extraction calls return the two-block timetable."""
    client = MagicMock(spec=TimetableLLMClient)
    client.is_configured.return_value = True
    client.extract_with_vision = AsyncMock(return_value=(TWO_BLOCK_REPLY, LLM_METADATA))
    client.extract_from_text = AsyncMock(return_value=(TWO_BLOCK_REPLY, LLM_METADATA))
    return client


@pytest.fixture
def png_bytes():
    """A small white PNG with two timetable lines drawn on it."""
    img = np.full((200, 400, 3), 255, dtype=np.uint8)
    cv2.putText(img, "Monday 9:00-9:30 Maths", (10, 80), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 2)
    cv2.putText(img, "Monday 10:30-10:45 Break", (10, 140), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 2)
    _, buffer = cv2.imencode(".png", img)
    return buffer.tobytes()


@pytest.fixture
def client(settings, llm_client):
    """Test client with overridden settings and LLM dependencies."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_llm_client] = lambda: llm_client
    from fastapi.testclient import TestClient
    yield TestClient(app)
    app.dependency_overrides.clear()
