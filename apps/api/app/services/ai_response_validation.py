"""Helpers for parsing and validating AI JSON responses.

Parsing is strict: fences are stripped and the remainder must be valid JSON.
There is no repair pass and no retry.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import UpstreamFailureError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_JSON_FENCE = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")


class MalformedAIResponseError(UpstreamFailureError):
    """The model's reply could not be parsed into the expected JSON."""

    error = "Malformed AI response"


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markdown fences wherever they appear."""
    return _FENCE.sub("", _JSON_FENCE.sub("", text)).strip()


def parse_json(text: str) -> Any:
    """
    Strip fences and parse.

    Raises:
        MalformedAIResponseError: remainder is not valid JSON
    """
    content = strip_code_fences(text)
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse AI JSON response: %s", exc)
        raise MalformedAIResponseError(f"AI returned invalid JSON: {exc.msg}") from exc


def validate_model(model_cls: type[ModelT], data: Any) -> ModelT:
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("%s validation failed: %s", model_cls.__name__, exc)
        raise MalformedAIResponseError(
            f"AI response did not match the {model_cls.__name__} schema"
        ) from exc


def validate_model_list(model_cls: type[ModelT], items: list) -> list[ModelT]:
    return [validate_model(model_cls, item) for item in items]
