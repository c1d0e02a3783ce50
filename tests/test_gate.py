from __future__ import annotations

from argtrim.rewrite.gate import is_eligible
from argtrim.rewrite.model import Argument, CallExpression, ExprKind

_BUILTINS = {"len", "print", "open"}


def _call(kind: ExprKind, callee: str | None, arity: int = 1) -> CallExpression:
    return CallExpression(
        kind=kind,
        callee=callee,
        arguments=tuple(Argument(position=i, value=i) for i in range(arity)),
    )


def _eligible(call: CallExpression, known: set[str] | None = None) -> bool:
    known = known or set()
    return is_eligible(
        call,
        is_builtin_symbol=lambda name: name in _BUILTINS,
        has_known_signature=lambda name: name in known,
    )


def test_empty_call_is_not_eligible() -> None:
    assert not _eligible(_call(ExprKind.FUNCTION_CALL, "f", arity=0))
    assert not _eligible(_call(ExprKind.METHOD_CALL, "run", arity=0))


def test_method_and_static_calls_are_eligible() -> None:
    assert _eligible(_call(ExprKind.METHOD_CALL, "len"))
    assert _eligible(_call(ExprKind.STATIC_CALL, "make"))
    assert _eligible(_call(ExprKind.METHOD_CALL, None))


def test_builtin_function_is_rejected() -> None:
    assert not _eligible(_call(ExprKind.FUNCTION_CALL, "len"))


def test_project_definition_shadowing_builtin_is_eligible() -> None:
    assert _eligible(_call(ExprKind.FUNCTION_CALL, "open"), known={"open"})


def test_dynamic_callee_is_rejected() -> None:
    assert not _eligible(_call(ExprKind.FUNCTION_CALL, None))


def test_unknown_function_is_left_to_the_resolver() -> None:
    assert _eligible(_call(ExprKind.FUNCTION_CALL, "helper"))
