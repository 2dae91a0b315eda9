"""
Schema reconciliation package for ssmigrate.

This package provides:
- Column type inference from sampled cell values
- Diffing observed sheet columns against declared fields
- Ordered migration plans
- Applying plans to a spreadsheet store
"""

from .models import (
    FieldType,
    ChangeType,
    FieldSpec,
    ObservedField,
    Change,
    ResourceDiff,
    Plan,
)
from .classifier import classify_from_samples, classify_from_format_pattern
from .diff import compare
from .inspector import SheetInspector
from .planner import Planner, build_plan, generate_summary
from .applier import Applier, ApplyResult, ApplyStatus, compute_insert_index

__all__ = [
    "FieldType",
    "ChangeType",
    "FieldSpec",
    "ObservedField",
    "Change",
    "ResourceDiff",
    "Plan",
    "classify_from_samples",
    "classify_from_format_pattern",
    "compare",
    "SheetInspector",
    "Planner",
    "build_plan",
    "generate_summary",
    "Applier",
    "ApplyResult",
    "ApplyStatus",
    "compute_insert_index",
]
