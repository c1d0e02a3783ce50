from __future__ import annotations

import ast

import libcst as cst

from argtrim.rewrite.model import ExprKind

_EMPTY_MODULE = cst.Module(body=[])
_UNDECIDED = object()
_CONTAINERS = (ast.Tuple, ast.List, ast.Set, ast.Dict)
_MUTABLE_CONTAINERS = (ast.List, ast.Set, ast.Dict)


def expression_source(expr: cst.CSTNode | str) -> str:
    if isinstance(expr, str):
        return expr
    if isinstance(expr, cst.CSTNode):
        return _EMPTY_MODULE.code_for_node(expr)
    raise TypeError(f"cannot render {type(expr).__name__} as an expression")


def _parse(expr: cst.CSTNode | str) -> ast.expr | None:
    source = expression_source(expr)
    try:
        # Parenthesised so multi-line argument text parses as one expression.
        tree = ast.parse("(\n" + source + "\n)", mode="eval")
    except SyntaxError:
        return None
    return tree.body


def _is_signed_number(node: ast.expr) -> bool:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.UAdd, ast.USub)):
        return _is_signed_number(node.operand)
    if isinstance(node, ast.BinOp) and isinstance(node.op, (ast.Add, ast.Sub)):
        return _is_signed_number(node.left) and _is_signed_number(node.right)
    return isinstance(node, ast.Constant) and isinstance(node.value, (int, float, complex))


def _kind_of_tree(node: ast.expr | None) -> ExprKind:
    if node is None:
        return ExprKind.OTHER
    if isinstance(node, ast.Constant) or _is_signed_number(node):
        return ExprKind.LITERAL
    if isinstance(node, _CONTAINERS):
        return ExprKind.ARRAY
    if isinstance(node, ast.Call):
        if isinstance(node.func, ast.Attribute):
            return ExprKind.METHOD_CALL
        return ExprKind.FUNCTION_CALL
    return ExprKind.OTHER


def expression_kind(expr: cst.CSTNode | str) -> ExprKind:
    return _kind_of_tree(_parse(expr))


def _literal_value(node: ast.expr) -> object:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        return _UNDECIDED


def _contains_mutable(node: ast.expr) -> bool:
    return any(isinstance(child, _MUTABLE_CONTAINERS) for child in ast.walk(node))


def same_value(left: object, right: object) -> bool:
    """Value equality that also requires identical types.

    ``1``, ``1.0`` and ``True`` compare equal in Python but are different
    defaults; ``0.0`` and ``-0.0`` likewise.
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, (float, complex)):
        return repr(left) == repr(right)
    if isinstance(left, (tuple, list)):
        return len(left) == len(right) and all(
            same_value(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict):
        if len(left) != len(right):
            return False
        return all(
            any(same_value(key, other) and same_value(value, right[other]) for other in right)
            for key, value in left.items()
        )
    if isinstance(left, (set, frozenset)):
        return len(left) == len(right) and all(
            any(same_value(a, b) for b in right) for a in left
        )
    return left == right


def expressions_equal(
    left: cst.CSTNode | str,
    right: cst.CSTNode | str,
    *,
    strict_mutable: bool = True,
) -> bool:
    left_tree = _parse(left)
    right_tree = _parse(right)
    if left_tree is None or right_tree is None:
        return False
    left_kind = _kind_of_tree(left_tree)
    if left_kind is not _kind_of_tree(right_tree):
        return False
    if left_kind not in (ExprKind.LITERAL, ExprKind.ARRAY):
        return False
    # A list, dict or set default is one object shared by every call.
    if strict_mutable and (_contains_mutable(left_tree) or _contains_mutable(right_tree)):
        return False
    left_value = _literal_value(left_tree)
    right_value = _literal_value(right_tree)
    if left_value is _UNDECIDED or right_value is _UNDECIDED:
        return False
    return same_value(left_value, right_value)
