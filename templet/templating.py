from __future__ import annotations

import re
from typing import Any, Callable

from templet.models import UNDEFINED
from templet.paths import access
from templet.utils import format_scalar, interpret_string, is_stringy


# A control marker together with the character before it, so that an
# escaping backslash can be detected.
MARKER_PATTERN = re.compile(r"(^|.)\$\{#[^}]+\}", re.DOTALL)

# Groups: the character before the placeholder, the whole placeholder, and
# the path inside it.
PLACEHOLDER_PATTERN = re.compile(r"(^|.)(\$\{([^\r\n]*?)\})", re.DOTALL)

MatchHandler = Callable[["re.Match[str]"], Any]


def tokenise(
    string: Any,
    pattern: re.Pattern[str] | str | None = None,
    handler: MatchHandler | None = None,
) -> list[str]:
    """Split ``string`` into alternating literal and matched fragments.

    Every match contributes the text before it and then the match itself (or
    whatever ``handler`` returns for it). Scanning stops at the first empty
    match and the remainder becomes the final fragment, so without a handler
    ``"".join(tokenise(s, p)) == s`` always holds.
    """
    text = interpret_string(string)
    if pattern is None:
        return [text] if text else []
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    parts: list[str] = []
    while text:
        match = compiled.search(text)
        if match is None or not match.group(0):
            parts.append(text)
            break
        parts.append(text[: match.start()])
        parts.append(interpret_string(handler(match)) if handler else match.group(0))
        text = text[match.end() :]
    return parts


def supplant(text: Any, data: Any, pattern: re.Pattern[str] | str | None = None) -> str:
    """Replace ``${path}`` placeholders in ``text`` with values from ``data``.

    A backslash before a placeholder escapes it: the backslash is dropped and
    the placeholder is kept verbatim. Placeholders whose value is not a string
    or number are left untouched.
    """
    if data is None or data is UNDEFINED:
        data = {}

    def replace(match: re.Match[str]) -> str:
        prefix = match.group(1) or ""
        whole = match.group(2)
        if prefix == "\\":
            return whole
        value = access(data, match.group(3))
        return prefix + (format_scalar(value) if is_stringy(value) else whole)

    return "".join(tokenise(text, pattern or PLACEHOLDER_PATTERN, replace))
