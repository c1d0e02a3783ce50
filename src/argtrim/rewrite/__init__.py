from argtrim.rewrite.analyzer import plan_removal
from argtrim.rewrite.engine import RewriteEngine, SourceRewrite, apply_plan
from argtrim.rewrite.equality import expressions_equal
from argtrim.rewrite.gate import is_eligible
from argtrim.rewrite.model import (
    Argument,
    CallExpression,
    ExprKind,
    RemovalPlan,
    RemovalRecord,
    RewritePlan,
    TextEdit,
)
from argtrim.rewrite.mutator import remove_argument_at, remove_arguments
from argtrim.rewrite.rule import NO_CHANGE, CallDecision, TrailingDefaultTransformer

__all__ = [
    "Argument",
    "CallDecision",
    "CallExpression",
    "ExprKind",
    "NO_CHANGE",
    "RemovalPlan",
    "RemovalRecord",
    "RewriteEngine",
    "RewritePlan",
    "SourceRewrite",
    "TextEdit",
    "TrailingDefaultTransformer",
    "apply_plan",
    "expressions_equal",
    "is_eligible",
    "plan_removal",
    "remove_argument_at",
    "remove_arguments",
]
