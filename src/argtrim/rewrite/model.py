from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, List, Mapping, Sequence, Tuple, TypeVar

Position = Tuple[int, int]
ExprT = TypeVar("ExprT")


class ExprKind(StrEnum):
    METHOD_CALL = "method-call"
    STATIC_CALL = "static-call"
    FUNCTION_CALL = "function-call"
    LITERAL = "literal"
    ARRAY = "array"
    OTHER = "other"


CALL_KINDS = frozenset(
    {ExprKind.METHOD_CALL, ExprKind.STATIC_CALL, ExprKind.FUNCTION_CALL}
)


@dataclass(frozen=True)
class Argument(Generic[ExprT]):
    position: int
    value: ExprT
    keyword: str | None = None
    star: str = ""

    @property
    def is_positional(self) -> bool:
        return self.keyword is None and not self.star


@dataclass(frozen=True)
class CallExpression(Generic[ExprT]):
    """A call node reduced to what the rule needs.

    ``callee`` is the bare function or method name, ``None`` when the callee
    is a dynamic expression. ``receiver`` is the name the method is looked up
    on (``self``, ``cls`` or a class name) for method and static calls.
    ``node`` keeps the underlying tree node for the adapters.
    """

    kind: ExprKind
    callee: str | None
    arguments: Tuple[Argument[ExprT], ...] = ()
    receiver: str | None = None
    node: object = None

    def __post_init__(self) -> None:
        if self.kind not in CALL_KINDS:
            raise ValueError(f"not a call kind: {self.kind}")

    @property
    def arity(self) -> int:
        return len(self.arguments)

    def first_non_positional(self) -> int:
        for argument in self.arguments:
            if not argument.is_positional:
                return argument.position
        return self.arity


ParameterDefaults = Mapping[int, ExprT]


@dataclass(frozen=True)
class RemovalPlan:
    positions: Tuple[int, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.positions)

    def __contains__(self, position: object) -> bool:
        return position in self.positions

    def __len__(self) -> int:
        return len(self.positions)

    def descending(self) -> List[int]:
        return sorted(self.positions, reverse=True)

    @classmethod
    def suffix(cls, start: int, stop: int, known: Sequence[int] | None = None) -> RemovalPlan:
        positions = range(start, stop)
        if known is not None:
            allowed = set(known)
            return cls(tuple(p for p in positions if p in allowed))
        return cls(tuple(positions))


@dataclass(frozen=True)
class TextEdit:
    path: str
    start: Position
    end: Position
    replacement: str


@dataclass(frozen=True)
class RemovalRecord:
    path: str
    line: int
    column: int
    callee: str
    positions: Tuple[int, ...]


@dataclass
class RewritePlan:
    edits: List[TextEdit] = field(default_factory=list)
    removals: List[RemovalRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.edits)

    def extend(self, other: RewritePlan) -> None:
        self.edits.extend(other.edits)
        self.removals.extend(other.removals)
        self.warnings.extend(other.warnings)
        self.errors.extend(other.errors)
