from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Set
from typing import Any, Callable

from templet.decode import decode, resolve_operand
from templet.errors import make_error
from templet.models import (
    OPERATORS,
    UNDEFINED,
    BaseBranch,
    Branch,
    EachBranch,
    IfBranch,
    TextBranch,
)
from templet.paths import Scope, access
from templet.templating import supplant
from templet.utils import is_number, is_truthy, pair


_IF_BODY = re.compile(r"(!)?\s*([^\s<>!=]+)\s*(?:([<>!=]{1,3})\s*(.+?))?\s*", re.DOTALL)
_EACH_BODY = re.compile(r"(\S+)\s+as\s+(?:(\w+)\s+to\s+)?(\w+)\s*", re.DOTALL)


def _ordered(left: Any, right: Any) -> bool:
    return (is_number(left) and is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, Set)) or (
        isinstance(value, Sequence) and not isinstance(value, str)
    )


def strict_equal(left: Any, right: Any) -> bool:
    if left is UNDEFINED or right is UNDEFINED or left is None or right is None:
        return left is right
    if is_number(left) and is_number(right):
        return left == right
    if _is_container(left) or _is_container(right):
        return left is right
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return type(left) is type(right) and left == right


COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "<": lambda left, right: _ordered(left, right) and left < right,
    ">": lambda left, right: _ordered(left, right) and left > right,
    "<=": lambda left, right: _ordered(left, right) and left <= right,
    ">=": lambda left, right: _ordered(left, right) and left >= right,
    "===": strict_equal,
    "!==": lambda left, right: not strict_equal(left, right),
}
COMPARISONS["=="] = COMPARISONS["==="]
COMPARISONS["!="] = COMPARISONS["!=="]


def parse_if(body: str, marker: str) -> IfBranch:
    match = _IF_BODY.fullmatch(body.strip())
    if match is None:
        raise make_error(
            error_code="TPL_005",
            error_type="MarkerSyntaxError",
            message="Malformed if marker.",
            details={"marker": marker},
            recovery_hint="Use ${#if [!]path} or ${#if [!]path OP operand}.",
        )
    negation, path, operator, operand = match.groups()
    if operator is not None and operator not in OPERATORS:
        raise make_error(
            error_code="TPL_004",
            error_type="UnsupportedOperatorError",
            message=f"Unsupported comparison operator {operator!r}.",
            details={"marker": marker, "operator": operator, "supported": list(OPERATORS)},
            recovery_hint="Use one of <, >, <=, >=, ===, ==, !==, !=.",
        )
    return IfBranch(
        path=path,
        negate=negation == "!",
        operator=operator,
        operand=decode(operand.strip()) if operand is not None else None,
    )


def parse_each(body: str, marker: str) -> EachBranch:
    match = _EACH_BODY.fullmatch(body.strip())
    if match is None:
        raise make_error(
            error_code="TPL_005",
            error_type="MarkerSyntaxError",
            message="Malformed each marker.",
            details={"marker": marker},
            recovery_hint="Use ${#each path as value} or ${#each path as key to value}.",
        )
    path, key_name, value_name = match.groups()
    return EachBranch(path=path, value_name=value_name, key_name=key_name)


def _render_children(nodes: Sequence[Branch], children: Sequence[int], data: Any) -> str:
    return "".join(render_branch(nodes, child, data) for child in children)


def _render_if(nodes: Sequence[Branch], branch: IfBranch, data: Any) -> str:
    value = access(data, branch.path)
    if branch.negate:
        value = not is_truthy(value)
    if branch.operator is None:
        passed = is_truthy(value)
    else:
        passed = COMPARISONS[branch.operator](value, resolve_operand(branch.operand, data))
    return _render_children(nodes, branch.children, data) if passed else ""


def _render_each(nodes: Sequence[Branch], branch: EachBranch, data: Any) -> str:
    rendered: list[str] = []
    for key, value in pair(access(data, branch.path)):
        bindings: dict[str, Any] = {branch.value_name: value}
        if branch.key_name:
            bindings[branch.key_name] = key
        # Bindings shadow the caller's data for this iteration only.
        rendered.append(_render_children(nodes, branch.children, Scope(bindings, data)))
    return "".join(rendered)


def render_branch(nodes: Sequence[Branch], index: int, data: Any) -> str:
    branch = nodes[index]
    if isinstance(branch, TextBranch):
        return supplant(branch.text, data)
    if isinstance(branch, BaseBranch):
        return _render_children(nodes, branch.children, data)
    if isinstance(branch, IfBranch):
        return _render_if(nodes, branch, data)
    if isinstance(branch, EachBranch):
        return _render_each(nodes, branch, data)
    raise TypeError(f"Unknown branch {type(branch).__name__}")
