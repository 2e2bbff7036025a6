"""Google Gemini API wrapper for the CV extraction call."""

import asyncio
import logging

from google import genai
from google.genai import types

from config import settings
from services.errors import LLMConfigurationError, ModelCallError

logger = logging.getLogger(__name__)

_client: genai.Client | None = None


def get_client() -> genai.Client | None:
    global _client
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - CV extraction disabled")
        return None
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


async def generate_text(prompt: str) -> str:
    """Send a prompt to Gemini and return the raw reply text.

    Raises LLMConfigurationError without an API key and ModelCallError on
    timeout, provider errors or an empty reply.
    """
    client = get_client()
    if client is None:
        raise LLMConfigurationError("GEMINI_API_KEY is not configured")

    try:
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=settings.gemini_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=settings.llm_temperature,
                    max_output_tokens=settings.llm_max_output_tokens,
                    response_mime_type="application/json",
                ),
            ),
            timeout=settings.llm_timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        logger.error("Gemini call timed out after %.0fs", settings.llm_timeout_seconds)
        raise ModelCallError("model call timed out") from e
    except Exception as e:
        logger.error("Gemini API error: %s", e)
        raise ModelCallError(f"model call failed: {e}") from e

    text = response.text
    if not text:
        raise ModelCallError("model returned an empty reply")
    return text
