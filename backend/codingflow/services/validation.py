"""Input checks shared by the services. Values are rejected, never clamped."""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import TypeVar

from codingflow.errors import ValidationError

E = TypeVar("E", bound=Enum)

HEX_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


def require_text(field: str, value: str | None) -> str:
    """Return the stripped value; empty or whitespace-only is rejected."""
    if value is None or not value.strip():
        raise ValidationError(field, "must not be empty")
    return value.strip()


def require_non_negative(field: str, value: float | int | None) -> None:
    if value is None:
        return
    if not math.isfinite(value) or value < 0:
        raise ValidationError(field, f"must be a finite number >= 0, got {value}")


def require_percentage(field: str, value: float) -> None:
    if not 0 <= value <= 100:
        raise ValidationError(field, f"must be within [0, 100], got {value}")


def normalize_color(field: str, value: str) -> str:
    """Accept 'RRGGBB' or '#RRGGBB'; store without the '#'."""
    color = value.lstrip("#")
    if not HEX_COLOR_RE.match(color):
        raise ValidationError(field, f"expected 6 hex digits, got {value!r}")
    return color.upper()


def require_choice(field: str, choices: type[E], value) -> E:
    """Coerce ``value`` into the enum, rejecting unknown members."""
    try:
        return choices(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in choices)
        raise ValidationError(field, f"{value!r} is not one of: {allowed}") from None
