"""Dynamic template path resolution."""

from __future__ import annotations

from .enumerator import PageEnumerator, PathVariable, classify_expression
from .expressions import (
    EvaluationError,
    ExpressionCache,
    ExpressionEngine,
    ExpressionError,
    InvalidExpressionError,
    Program,
)
from .hydration import Hydration
from .resolver import (
    DynamicSegment,
    dynamic_path_expressions,
    evaluate_dynamic_path,
    finalize_extension,
    output_path,
    parse_segment,
)

__all__ = [
    "DynamicSegment",
    "EvaluationError",
    "ExpressionCache",
    "ExpressionEngine",
    "ExpressionError",
    "Hydration",
    "InvalidExpressionError",
    "PageEnumerator",
    "PathVariable",
    "Program",
    "classify_expression",
    "dynamic_path_expressions",
    "evaluate_dynamic_path",
    "finalize_extension",
    "output_path",
    "parse_segment",
]
