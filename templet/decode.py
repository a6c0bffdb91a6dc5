from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from templet.models import UNDEFINED
from templet.paths import access
from templet.utils import is_numeric, to_number


_QUOTED = re.compile(r"""(["'`])(.*)\1""", re.DOTALL)

_KEYWORDS: dict[str, Any] = {
    "null": None,
    "undefined": UNDEFINED,
    "true": True,
    "false": False,
}


@dataclass(frozen=True)
class DeferredLookup:
    """An operand that names a path, resolved against each render's data."""

    path: str

    def __call__(self, data: Any) -> Any:
        return access(data, self.path)


def decode(token: str) -> Any:
    """Decode a literal operand from an ``${#if}`` marker.

    Keywords first, then quoted strings, then numbers; anything else is a
    path looked up when the branch renders. A quoted numeral stays a string.
    """
    if token in _KEYWORDS:
        return _KEYWORDS[token]
    quoted = _QUOTED.fullmatch(token)
    if quoted:
        return quoted.group(2)
    if is_numeric(token):
        return to_number(token)
    return DeferredLookup(token)


def resolve_operand(operand: Any, data: Any) -> Any:
    if isinstance(operand, DeferredLookup):
        return operand(data)
    return operand
