from __future__ import annotations

from typing import Callable

from argtrim.rewrite.model import CallExpression, ExprKind

SymbolPredicate = Callable[[str], bool]


def is_eligible(
    call: CallExpression,
    *,
    is_builtin_symbol: SymbolPredicate,
    has_known_signature: SymbolPredicate,
) -> bool:
    if not call.arguments:
        return False
    if call.kind is not ExprKind.FUNCTION_CALL:
        return True
    if call.callee is None:
        return False
    if has_known_signature(call.callee):
        return True
    # Builtins have no introspectable defaults.
    return not is_builtin_symbol(call.callee)
