"""
Field-set diffing between the declared schema and the observed sheet.
"""

from typing import Dict, List, Sequence

from .models import (
    FieldSpec,
    ModifyPayload,
    ObservedField,
    ResourceDiff,
    format_field_type,
)


def _describe_modification(current: ObservedField, desired: FieldSpec) -> List[str]:
    parts = []

    if current.type != desired.type or current.format != desired.format:
        parts.append(
            f"type from {format_field_type(current.type, current.format)} "
            f"to {format_field_type(desired.type, desired.format)}"
        )

    if current.hidden != desired.hidden:
        parts.append("hide column" if desired.hidden else "show column")

    return parts


def compare(
    observed: Sequence[ObservedField],
    schema: Sequence[FieldSpec],
) -> ResourceDiff:
    """
    Compare observed sheet fields against declared schema fields.

    Args:
        observed: Fields in current sheet column order
        schema: Fields in schema document order

    Returns:
        ResourceDiff with additions, removals, modifications and the
        reorder flag computed over the names present on both sides
    """
    diff = ResourceDiff()

    observed_by_name: Dict[str, ObservedField] = {f.name: f for f in observed}
    schema_by_name: Dict[str, FieldSpec] = {f.name: f for f in schema}

    for spec in schema:
        if spec.name not in observed_by_name:
            diff.fields_to_add.append(spec)

    for current in observed:
        if current.name not in schema_by_name:
            diff.fields_to_remove.append(current)

    for current in observed:
        spec = schema_by_name.get(current.name)
        if spec is None:
            continue

        parts = _describe_modification(current, spec)
        if not parts:
            continue

        diff.fields_to_modify.append(
            ModifyPayload(
                name=spec.name,
                old_type=current.type,
                new_type=spec.type,
                old_format=current.format,
                new_format=spec.format,
                old_hidden=current.hidden,
                new_hidden=spec.hidden,
                description=", ".join(parts),
            )
        )

    # Pending additions and removals take no part in the order comparison.
    diff.expected_order = [f.name for f in schema if f.name in observed_by_name]
    diff.current_order = [f.name for f in observed if f.name in schema_by_name]
    diff.reorder_needed = diff.expected_order != diff.current_order

    return diff
