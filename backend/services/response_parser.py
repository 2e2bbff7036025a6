"""Cleanup and validation of the model's JSON reply."""

import json
import logging
import re

from pydantic import ValidationError

from models.schemas.cv import CV
from services.errors import MalformedOutput, SchemaViolation

logger = logging.getLogger(__name__)

_OPENING_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE_RE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapping the reply, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = _OPENING_FENCE_RE.sub("", text, count=1)
        text = _CLOSING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def parse_and_validate(model_output: str) -> CV:
    """Parse the model reply and validate it against the CV schema.

    Raises MalformedOutput when the reply is not a JSON object and
    SchemaViolation when it does not fit the CV shape.
    """
    cleaned = strip_code_fences(model_output)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse model reply as JSON: %s", e)
        raise MalformedOutput(f"invalid JSON: {e}", raw_text=cleaned) from e

    if not isinstance(data, dict):
        raise MalformedOutput(
            f"expected a JSON object, got {type(data).__name__}", raw_text=cleaned
        )

    try:
        return CV.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        field_path = _field_path(errors[0]["loc"])
        logger.error("Model reply failed CV validation at %s (%d errors)", field_path, len(errors))
        raise SchemaViolation(field_path, errors) from e
