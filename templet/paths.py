from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from templet.models import UNDEFINED
from templet.utils import interpret_string


# One alternative per key form: a bare segment, a bracketed number, a
# bracketed quoted string, or an empty key between consecutive separators.
_PATH_TOKEN = re.compile(
    r"""[^.[\]]+"""
    r"""|\[(?:(-?\d+(?:\.\d+)?)|(["'])((?:(?!\2)[^\\]|\\.)*?)\2)\]"""
    r"""|(?=(?:\.|\[\])(?:\.|\[\]|$))"""
)
_UNESCAPE = re.compile(r"\\(\\)?")
_INDEX = re.compile(r"0|[1-9]\d*")
_MAPPING_INT_KEY = re.compile(r"-?\d+")


@dataclass(frozen=True)
class Scope:
    """Loop bindings layered over the enclosing data, which is left untouched."""

    bindings: dict[str, Any]
    data: Any


def to_path(path: Any) -> list[str]:
    """Split a path such as ``one[1]['two'].three`` into its property keys."""
    text = interpret_string(path)
    keys: list[str] = []
    if text.startswith("."):
        keys.append("")
    for match in _PATH_TOKEN.finditer(text):
        number, quote, quoted = match.groups()
        if quote:
            keys.append(_UNESCAPE.sub(r"\1", quoted))
        else:
            keys.append(number or match.group(0))
    return keys


def _own_property(value: Any, key: str) -> Any:
    if isinstance(value, Scope):
        if key in value.bindings:
            return value.bindings[key]
        if value.data is None or value.data is UNDEFINED:
            return UNDEFINED
        return _own_property(value.data, key)
    if isinstance(value, Mapping):
        if key in value:
            return value[key]
        if _MAPPING_INT_KEY.fullmatch(key) and int(key) in value:
            return value[int(key)]
        return UNDEFINED
    if isinstance(value, Sequence):
        if key == "length":
            return len(value)
        if _INDEX.fullmatch(key) and int(key) < len(value):
            return value[int(key)]
        return UNDEFINED
    if key == "length" and hasattr(value, "__len__"):
        return len(value)
    attributes = getattr(value, "__dict__", None)
    if isinstance(attributes, dict) and not key.startswith("_") and key in attributes:
        return attributes[key]
    return UNDEFINED


def access(obj: Any, path: Any) -> Any:
    """Follow ``path`` into ``obj``.

    Returns ``UNDEFINED`` as soon as a step cannot be followed: the current
    value is ``None``/``UNDEFINED`` or does not own the next key. A present
    ``None`` at the end of the path is returned as ``None``.
    """
    current = obj
    for key in to_path(path):
        if current is None or current is UNDEFINED:
            return UNDEFINED
        current = _own_property(current, key)
        if current is UNDEFINED:
            return UNDEFINED
    return current
