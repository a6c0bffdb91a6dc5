from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union


class _Undefined:
    """Marker for a value that is absent, as opposed to present but ``None``."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class BranchKind(str, Enum):
    TEXT = "text"
    BASE = "base"
    IF = "if"
    EACH = "each"


# Kinds that may appear in an open marker.
CONTROL_KINDS: tuple[str, ...] = (BranchKind.IF.value, BranchKind.EACH.value)

# Comparison operators accepted by ``${#if path op operand}``.
OPERATORS: tuple[str, ...] = ("<", ">", "<=", ">=", "===", "==", "!==", "!=")


@dataclass(frozen=True)
class TextBranch:
    text: str
    kind: ClassVar[BranchKind] = BranchKind.TEXT


@dataclass(frozen=True)
class BaseBranch:
    children: tuple[int, ...] = ()
    kind: ClassVar[BranchKind] = BranchKind.BASE


@dataclass(frozen=True)
class IfBranch:
    path: str
    negate: bool = False
    operator: str | None = None
    operand: Any = None
    children: tuple[int, ...] = ()
    kind: ClassVar[BranchKind] = BranchKind.IF


@dataclass(frozen=True)
class EachBranch:
    path: str
    value_name: str
    key_name: str | None = None
    children: tuple[int, ...] = ()
    kind: ClassVar[BranchKind] = BranchKind.EACH


Branch = Union[TextBranch, BaseBranch, IfBranch, EachBranch]
