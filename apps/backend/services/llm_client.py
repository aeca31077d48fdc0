import base64
import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from services.errors import LLMNotConfiguredError, LLMResponseError
from services.prompts import SYSTEM_PROMPT, VISION_PROMPT, build_text_prompt
from settings import Settings

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_reply(content: Optional[str]) -> Dict[str, Any]:
    """
    Parses the model reply into a JSON object.

    JSON mode normally returns a bare object; if the reply is wrapped in a
    Markdown fence or prose, the span from the first "{" to the last "}"
    is parsed instead.

    Raises:
        LLMResponseError: no JSON object could be recovered.
    """
    if not content:
        raise LLMResponseError("Empty response from LLM")

    # Cleanup markdown block if present
    cleaned = content.replace("```json", "").replace("```", "").strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = JSON_OBJECT_RE.search(cleaned)
        if not match:
            logger.error("No JSON found in LLM response: %.200s", content)
            raise LLMResponseError("Failed to extract JSON from LLM response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"Invalid JSON in LLM response: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseError("LLM response is not a JSON object")
    return data


class TimetableLLMClient:
    """
    Sends timetable content (image or text) to an OpenAI chat model.

    One client handle is created per process and shared by all requests;
    every call is a single JSON-mode completion with no retries.
    """
    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.temperature = settings.llm_temperature

        if client is not None:
            self.client = client
        elif settings.openai_api_key:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key)
        else:
            logger.warning("OPENAI_API_KEY not set. LLM features will not work.")
            self.client = None

    def is_configured(self) -> bool:
        return self.client is not None

    async def extract_with_vision(self, image_bytes: bytes, mime_type: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Extracts timetable data from an image.

        Args:
            image_bytes: Encoded image (PNG/JPEG).
            mime_type: MIME type used in the data URL.

        Returns:
            (data, metadata): parsed JSON reply and call statistics.
        """
        logger.info("Starting vision extraction (mime_type=%s)", mime_type)
        base64_image = base64.b64encode(image_bytes).decode("utf-8")

        user_content = [
            {"type": "text", "text": VISION_PROMPT},
            {
                "type": "image_url",
                "image_url": {
                    "url": f"data:{mime_type};base64,{base64_image}",
                    "detail": "high",
                },
            },
        ]
        return await self._complete(user_content, label="vision")

    async def extract_from_text(self, text: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        logger.info("Starting text extraction (text_length=%d)", len(text))
        return await self._complete(build_text_prompt(text), label="text")

    async def _complete(self, user_content: Any, label: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        if not self.client:
            raise LLMNotConfiguredError("OpenAI API key not configured")

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ]

        start = time.monotonic()
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )
        processing_time = int((time.monotonic() - start) * 1000)

        usage = response.usage
        tokens_used = usage.total_tokens if usage else None
        logger.info(
            "LLM %s extraction completed: processing_time=%dms tokens=%s",
            label, processing_time, tokens_used,
        )

        data = parse_json_reply(response.choices[0].message.content)
        return data, {
            "model": self.model,
            "processingTime": processing_time,
            "tokensUsed": tokens_used,
        }
