"""
Validation utilities for request input.
"""
import json
import math
from typing import Any

from fastapi import Request

from .error_handlers import BadRequestError

SUPPORTED_LANGUAGES = {"tr", "en"}


async def read_json_object(request: Request) -> dict[str, Any]:
    """
    Read the request body as a JSON object.
    Unparseable or non-object bodies are treated as empty so that field
    validation reports what is missing instead of a parse error.
    """
    try:
        raw = await request.body()
        data = json.loads(raw or b"{}")
    except (ValueError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def validate_string_field(
    value: Any,
    field_name: str,
    required: bool = True,
    max_length: int | None = None,
) -> str:
    """Coerce a scalar to a trimmed string; raise when a required value is empty."""
    if value is None or isinstance(value, (dict, list)):
        text = ""
    else:
        text = str(value).strip()

    if required and not text:
        raise BadRequestError(f"{field_name} is required")

    if max_length is not None and len(text) > max_length:
        raise BadRequestError(f"{field_name} must not exceed {max_length} characters")

    return text


def validate_language_code(value: Any) -> str:
    """Anything other than an explicit "en" falls back to Turkish."""
    lang = str(value or "tr").strip().lower()
    return lang if lang in SUPPORTED_LANGUAGES else "tr"


def validate_step_index(value: Any) -> int:
    """Non-numeric, negative or non-finite indices fall back to the first step."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value if value is not None else 0)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(math.floor(number))


def validate_form_state(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}
