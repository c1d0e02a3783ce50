from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Iterable, List, Mapping, Tuple

import libcst as cst
from libcst.metadata import ParentNodeProvider, PositionProvider, ScopeProvider

from argtrim.rewrite.analyzer import must_keep_positions, plan_removal
from argtrim.rewrite.defaults import DefaultValueResolver
from argtrim.rewrite.equality import expression_source, expressions_equal
from argtrim.rewrite.gate import is_eligible
from argtrim.rewrite.model import CallExpression, RemovalPlan, RemovalRecord
from argtrim.rewrite.mutator import remove_arguments
from argtrim.rewrite.signatures import ModuleSignatures, SignatureIndex

logger = logging.getLogger(__name__)


class _NoChange:
    def __repr__(self) -> str:
        return "NO_CHANGE"


NO_CHANGE = _NoChange()


@dataclass(frozen=True)
class ArgumentDecision:
    position: int
    argument: str
    default: str | None
    status: str


@dataclass(frozen=True)
class CallDecision:
    line: int
    column: int
    callee: str
    kind: str
    eligible: bool
    arguments: Tuple[ArgumentDecision, ...] = ()
    plan: RemovalPlan = field(default_factory=RemovalPlan)


def _argument_status(
    call: CallExpression,
    defaults: Mapping[int, cst.BaseExpression],
    keep: Iterable[int],
    plan: RemovalPlan,
) -> List[str]:
    kept = set(keep)
    statuses: List[str] = []
    for argument in call.arguments:
        position = argument.position
        if position in plan:
            statuses.append("remove")
        elif not argument.is_positional:
            statuses.append("keep: keyword or star argument")
        elif position not in defaults:
            statuses.append("keep: no known default")
        elif position in kept:
            statuses.append("keep: differs from default")
        else:
            statuses.append("keep: followed by a kept argument")
    return statuses


class TrailingDefaultTransformer(cst.CSTTransformer):
    """Drops trailing positional arguments that repeat their parameter default.

    Runs over a ``libcst.MetadataWrapper``; every call node goes through the
    applicability gate, default resolution, the trailing analysis and finally
    argument removal.
    """

    METADATA_DEPENDENCIES = (ScopeProvider, ParentNodeProvider, PositionProvider)

    def __init__(
        self,
        *,
        index: SignatureIndex,
        module: ModuleSignatures,
        path: str = "",
        builtins: Iterable[str] = (),
        strict_mutable_defaults: bool = True,
        record_decisions: bool = False,
    ) -> None:
        super().__init__()
        self.path = path
        self.resolver = DefaultValueResolver(
            index, module, self.get_metadata, builtins=builtins
        )
        self.equal = partial(expressions_equal, strict_mutable=strict_mutable_defaults)
        self.record_decisions = record_decisions
        self.changed = False
        self.removals: List[RemovalRecord] = []
        self.decisions: List[CallDecision] = []

    def _eligible(self, call: CallExpression, original: cst.Call) -> bool:
        return is_eligible(
            call,
            is_builtin_symbol=partial(self.resolver.is_builtin_symbol, at=original.func),
            has_known_signature=partial(self.resolver.has_known_signature, at=original.func),
        )

    def _start(self, node: cst.CSTNode) -> tuple[int, int]:
        position = self.get_metadata(PositionProvider, node, None)
        if position is None:
            return 0, 0
        return position.start.line, position.start.column

    def _record_decision(
        self,
        call: CallExpression,
        original: cst.Call,
        *,
        eligible: bool,
        defaults: Mapping[int, cst.BaseExpression],
        plan: RemovalPlan,
    ) -> None:
        keep = must_keep_positions(call, defaults, equal=self.equal) if eligible else []
        statuses = (
            _argument_status(call, defaults, keep, plan)
            if eligible
            else ["keep: call not eligible"] * call.arity
        )
        line, column = self._start(original)
        self.decisions.append(
            CallDecision(
                line=line,
                column=column,
                callee=expression_source(original.func),
                kind=call.kind.value,
                eligible=eligible,
                arguments=tuple(
                    ArgumentDecision(
                        position=argument.position,
                        argument=expression_source(argument.value),
                        default=(
                            expression_source(defaults[argument.position])
                            if argument.position in defaults
                            else None
                        ),
                        status=status,
                    )
                    for argument, status in zip(call.arguments, statuses)
                ),
                plan=plan,
            )
        )

    def on_node(self, original: cst.Call, updated: cst.Call) -> cst.Call | _NoChange:
        call = self.resolver.describe(original, updated)
        eligible = self._eligible(call, original)
        defaults: Mapping[int, cst.BaseExpression] = {}
        plan = RemovalPlan()
        if eligible:
            defaults = self.resolver.resolve_defaults(call)
            plan = plan_removal(call, defaults, equal=self.equal)
        if self.record_decisions:
            self._record_decision(
                call, original, eligible=eligible, defaults=defaults, plan=plan
            )
        if not plan:
            return NO_CHANGE
        line, column = self._start(original)
        callee = expression_source(original.func)
        logger.debug(
            "%s:%d:%d removing %s from %s(...)", self.path, line, column, plan.positions, callee
        )
        self.changed = True
        self.removals.append(
            RemovalRecord(
                path=self.path,
                line=line,
                column=column,
                callee=callee,
                positions=plan.positions,
            )
        )
        return remove_arguments(updated, plan)

    def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.BaseExpression:
        result = self.on_node(original_node, updated_node)
        if isinstance(result, _NoChange):
            return updated_node
        return result
