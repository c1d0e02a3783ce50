from __future__ import annotations

import libcst as cst

from argtrim.invariants import never
from argtrim.rewrite.model import RemovalPlan


def remove_argument_at(call: cst.Call, position: int) -> cst.Call:
    args = list(call.args)
    if position < 0 or position >= len(args):
        never("argument position out of range", position=position, arity=len(args))
    removed = args.pop(position)
    if not args:
        return call.with_changes(args=(), whitespace_before_args=cst.SimpleWhitespace(""))
    if position == len(args):
        # The closing comma and its whitespace belong to the end of the call.
        args[-1] = args[-1].with_changes(
            comma=removed.comma,
            whitespace_after_arg=removed.whitespace_after_arg,
        )
    return call.with_changes(args=tuple(args))


def remove_arguments(call: cst.Call, plan: RemovalPlan) -> cst.Call:
    for position in plan.descending():
        call = remove_argument_at(call, position)
    return call
