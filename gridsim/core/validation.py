"""gridsim.core.validation

Базовые проверки, чтобы ловить невозможные значения как можно раньше.
"""

from __future__ import annotations

import math
import numbers

from gridsim.errors import InvalidIndexError


def ensure_non_negative(value: float, name: str) -> None:
    if not math.isfinite(float(value)):
        raise ValueError(f"{name} must be finite, got {value}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


def ensure_non_empty(value: str, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string, got {value!r}")


def ensure_int(value: int, name: str) -> None:
    # bool является подклассом int, но приоритетом быть не может
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{name} must be an integer, got {value!r}")


def ensure_range_ordered(min_value: float, max_value: float, name: str) -> None:
    ensure_non_negative(min_value, f"{name} min")
    ensure_non_negative(max_value, f"{name} max")
    if not (min_value < max_value):
        raise ValueError(f"{name} must satisfy min < max, got [{min_value}, {max_value})")


def ensure_index(what: str, index: int, size: int) -> int:
    """Проверить позицию в [0, size) и вернуть её как int (numpy-целые тоже подходят)."""

    if isinstance(index, bool) or not isinstance(index, numbers.Integral):
        raise InvalidIndexError(what, index, size)
    i = int(index)
    if not (0 <= i < size):
        raise InvalidIndexError(what, i, size)
    return i
