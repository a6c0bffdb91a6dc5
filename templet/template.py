"""Compile templates with inline ``${#if}``/``${#each}`` markers and render them.

    >>> template = compile_template("${#if count > 5}big${#end if}")
    >>> template({"count": 10})
    'big'

Rendering recurses once per nested branch, so nesting depth is bounded by
the interpreter's recursion limit.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

from templet.branches import render_branch
from templet.decode import DeferredLookup
from templet.errors import make_error
from templet.models import UNDEFINED, Branch, EachBranch, IfBranch, TextBranch
from templet.templating import MARKER_PATTERN, tokenise
from templet.tree import ROOT, TreeBuilder


class Template:
    def __init__(self, source: str) -> None:
        builder = TreeBuilder()
        for fragment in tokenise(source, MARKER_PATTERN):
            builder.feed(fragment)
        self.source = source
        self.nodes, self.open_kinds = builder.build()

    @property
    def is_closed(self) -> bool:
        return not self.open_kinds

    def render(self, data: Any = None) -> str:
        if self.open_kinds:
            kind = self.open_kinds[-1]
            raise make_error(
                error_code="TPL_003",
                error_type="UnclosedBranchError",
                message=f"Unclosed {kind} branch",
                details={"open_kinds": list(self.open_kinds)},
                recovery_hint=f"Add ${{#end {kind}}} after the branch body.",
            )
        return render_branch(self.nodes, ROOT, {} if data is None else data)

    __call__ = render

    def count(self, kind: str) -> int:
        return sum(1 for node in self.nodes if node.kind.value == kind)

    def to_dict(self) -> dict[str, Any]:
        return _branch_to_dict(self.nodes, ROOT)


def _operand_to_dict(operand: Any) -> dict[str, Any]:
    if isinstance(operand, DeferredLookup):
        return {"type": "path", "value": operand.path}
    if operand is UNDEFINED:
        return {"type": "undefined", "value": None}
    return {"type": "literal", "value": operand}


def _branch_to_dict(nodes: tuple[Branch, ...], index: int) -> dict[str, Any]:
    branch = nodes[index]
    if isinstance(branch, TextBranch):
        return {"kind": "text", "text": branch.text}
    out: dict[str, Any] = {"kind": branch.kind.value}
    if isinstance(branch, IfBranch):
        out["path"] = branch.path
        out["negate"] = branch.negate
        out["operator"] = branch.operator
        if branch.operator is not None:
            out["operand"] = _operand_to_dict(branch.operand)
    elif isinstance(branch, EachBranch):
        out["path"] = branch.path
        out["key"] = branch.key_name
        out["value"] = branch.value_name
    out["children"] = [_branch_to_dict(nodes, child) for child in branch.children]
    return out


def compile_template(source: str) -> Template:
    return Template(source)


def render_string(source: str, data: Any = None) -> str:
    return compile_template(source).render(data)


def render_file(path: str | Path, data: Any = None, *, encoding: str = "utf-8") -> str:
    source = Path(path).read_text(encoding=encoding)
    return compile_template(source).render(data)
