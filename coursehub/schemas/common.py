"""Shared field types for request schemas."""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import AliasChoices, BeforeValidator, Field, StringConstraints

_WHITESPACE = re.compile(r"\s+")


def _coerce_scalar(value: Any) -> Any:
    # Course numbers, credits and one-time codes often arrive as JSON numbers.
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


# Required, trimmed, non-empty strings of increasing length
ShortText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=64),
    BeforeValidator(_coerce_scalar),
]
Text = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=256),
    BeforeValidator(_coerce_scalar),
]
LongText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=2048),
    BeforeValidator(_coerce_scalar),
]

CaptchaToken = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=4096),
    Field(validation_alias=AliasChoices("captchaToken", "captcha", "captcha_token")),
]


def normalize_course_code(raw: str) -> str:
    """Canonical form of a course code taken from a URL path."""
    return raw.strip().upper()


def derive_course_code(faculty: str, subject: str, number: str, credits: str) -> str:
    """Course key: the four parts concatenated, whitespace removed, uppercased."""
    return _WHITESPACE.sub("", f"{faculty}{subject}{number}{credits}").upper()
