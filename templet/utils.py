from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from templet.models import UNDEFINED


# Upper bound on the length of anything treated as array-like.
ARRAY_MAX_LENGTH = 2**32 - 1

# Accepted grammar for numeric operands: optional sign, decimal digits with an
# optional fraction, optional exponent. Surrounding whitespace is tolerated.
# Hex, octal, "Infinity" and "NaN" are not numeric.
_NUMERIC = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*")
_INTEGER = re.compile(r"[+-]?\d+")


def interpret_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or value is UNDEFINED:
        return ""
    return str(value)


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if not isinstance(value, str) or not _NUMERIC.fullmatch(value):
        return False
    return math.isfinite(float(value))


def to_number(value: str) -> int | float:
    text = value.strip()
    if _INTEGER.fullmatch(text):
        return int(text)
    return float(text)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_stringy(value: Any) -> bool:
    """True for values a placeholder may be replaced with: strings and numbers."""
    return isinstance(value, str) or is_number(value)


def format_scalar(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return interpret_string(value)


def is_truthy(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _mapping_length(value: Mapping) -> int | None:
    length = value.get("length")
    if not is_numeric(length):
        return None
    length = int(float(length))
    return length if 0 <= length < ARRAY_MAX_LENGTH else None


def is_array_like(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, Mapping):
        return _mapping_length(value) is not None
    if isinstance(value, Sequence):
        return True
    if hasattr(value, "__len__") and hasattr(value, "__getitem__"):
        try:
            length = len(value)
        except TypeError:
            return False
        return 0 <= length < ARRAY_MAX_LENGTH
    return isinstance(value, Iterable)


def _indexed_items(value: Mapping, length: int) -> list[tuple[Any, Any]]:
    # Indices absent from the mapping are holes and are skipped.
    items: list[tuple[Any, Any]] = []
    for index in range(length):
        for key in (str(index), index):
            if key in value:
                items.append((index, value[key]))
                break
    return items


def pair(value: Any) -> list[tuple[Any, Any]]:
    """Normalise a collection into ``(key, value)`` pairs in iteration order.

    Array-like values are paired by index, mappings by their keys, plain
    objects by their public attributes. Anything else has no pairs.
    """
    if is_array_like(value):
        if isinstance(value, Mapping):
            return _indexed_items(value, _mapping_length(value) or 0)
        if isinstance(value, Sequence):
            return list(enumerate(value))
        if hasattr(value, "__len__") and hasattr(value, "__getitem__"):
            return [(index, value[index]) for index in range(len(value))]
        return list(enumerate(value))
    if isinstance(value, Mapping):
        return list(value.items())
    if hasattr(value, "__dict__"):
        return [(k, v) for k, v in vars(value).items() if not k.startswith("_")]
    return []
