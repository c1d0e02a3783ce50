"""Trailing redundancy analysis.

A positional argument may only be omitted when every argument after it is
omitted as well, otherwise the arguments that follow would bind to different
parameters. The removable set is therefore the run of arguments after the
last one that has to stay.
"""

from __future__ import annotations

from typing import Callable, List

from argtrim.rewrite.model import CallExpression, ParameterDefaults, RemovalPlan

Comparator = Callable[[object, object], bool]


def must_keep_positions(
    call: CallExpression,
    defaults: ParameterDefaults,
    *,
    equal: Comparator,
) -> List[int]:
    keep: List[int] = []
    for argument in call.arguments:
        position = argument.position
        if not argument.is_positional or position not in defaults:
            keep.append(position)
            continue
        try:
            matches = equal(argument.value, defaults[position])
        except (TypeError, ValueError):
            matches = False
        if not matches:
            keep.append(position)
    return keep


def last_must_keep(
    call: CallExpression,
    defaults: ParameterDefaults,
    *,
    equal: Comparator,
) -> int:
    keep = must_keep_positions(call, defaults, equal=equal)
    return keep[-1] if keep else -1


def plan_removal(
    call: CallExpression,
    defaults: ParameterDefaults,
    *,
    equal: Comparator,
) -> RemovalPlan:
    if not call.arguments:
        return RemovalPlan()
    last_kept = last_must_keep(call, defaults, equal=equal)
    return RemovalPlan.suffix(last_kept + 1, call.arity, known=list(defaults))
