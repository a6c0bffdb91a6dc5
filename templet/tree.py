from __future__ import annotations

import logging
import re
from dataclasses import replace

from templet.branches import parse_each, parse_if
from templet.errors import make_error
from templet.models import CONTROL_KINDS, BaseBranch, Branch, BranchKind, TextBranch


LOGGER = logging.getLogger(__name__)

ROOT = 0

# Groups: the character before the marker, the marker keyword, the rest.
_PROCESS_MARKER = re.compile(r"(^|.)\$\{#(\w+)(?:\s+([^}]*))?\}", re.DOTALL)


class TreeBuilder:
    """Assemble tokenizer fragments into an arena of branches.

    Containers are addressed by their arena index. The stack holds the
    indices of the open containers, the root base branch at the bottom.
    """

    def __init__(self) -> None:
        self._nodes: list[Branch] = [BaseBranch()]
        self._children: dict[int, list[int]] = {ROOT: []}
        self._stack: list[int] = [ROOT]
        self._pending: list[str] = []

    @property
    def current_kind(self) -> str:
        return self._nodes[self._stack[-1]].kind.value

    @property
    def depth(self) -> int:
        return len(self._stack) - 1

    def _attach(self, branch: Branch) -> int:
        index = len(self._nodes)
        self._nodes.append(branch)
        self._children[self._stack[-1]].append(index)
        return index

    def add_text(self, text: str) -> None:
        # Literal text is held until the next marker so that a placeholder
        # directly before a marker stays in one text branch.
        if text:
            self._pending.append(text)

    def _flush(self) -> None:
        if self._pending:
            self._attach(TextBranch("".join(self._pending)))
            self._pending = []

    def open_branch(self, kind: str, body: str, marker: str) -> None:
        if kind == BranchKind.IF.value:
            branch: Branch = parse_if(body, marker)
        elif kind == BranchKind.EACH.value:
            branch = parse_each(body, marker)
        else:
            raise make_error(
                error_code="TPL_001",
                error_type="UnknownBranchError",
                message=f"Unknown branch type {kind}",
                details={"kind": kind, "marker": marker, "supported": list(CONTROL_KINDS)},
                recovery_hint="Open markers must be ${#if ...} or ${#each ...}.",
            )
        self._flush()
        index = self._attach(branch)
        self._children[index] = []
        self._stack.append(index)
        LOGGER.debug("Opened %s branch at depth %d: %s", kind, self.depth, marker)

    def close_branch(self, kind: str) -> None:
        expected = self.current_kind
        # The root base branch is never closed by a marker.
        if kind != expected or self.depth == 0:
            raise make_error(
                error_code="TPL_002",
                error_type="MismatchedCloseError",
                message=f"Expecting type {expected} but got {kind}",
                details={"expected": expected, "received": kind, "depth": self.depth},
                recovery_hint="Close branches in reverse order of opening with ${#end KIND}.",
            )
        self._flush()
        self._stack.pop()
        LOGGER.debug("Closed %s branch, back at depth %d", kind, self.depth)

    def feed(self, fragment: str) -> None:
        match = _PROCESS_MARKER.fullmatch(fragment)
        if match is None or match.group(1) == "\\":
            self.add_text(fragment)
            return
        prefix, kind, body = match.groups()
        self.add_text(prefix)
        if kind == "end":
            self.close_branch((body or "").strip())
        else:
            self.open_branch(kind, body or "", fragment[len(prefix) :])

    def build(self) -> tuple[tuple[Branch, ...], tuple[str, ...]]:
        """Freeze the arena; also return the kinds still open, innermost last."""
        self._flush()
        nodes = tuple(
            replace(node, children=tuple(self._children[index]))
            if index in self._children
            else node
            for index, node in enumerate(self._nodes)
        )
        open_kinds = tuple(self._nodes[index].kind.value for index in self._stack[1:])
        return nodes, open_kinds
