"""
Migration planning for ssmigrate.

Turns a ResourceDiff into an ordered, human-readable Plan and drives the
inspect/compare/build cycle for every resource of a schema document.
"""

import logging
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from .diff import compare
from .inspector import SheetInspector
from .models import (
    AddPayload,
    Change,
    ChangeType,
    ModifyPayload,
    ObservedField,
    Plan,
    RemovePayload,
    ReorderPayload,
    ResourceDiff,
    format_field_type,
)
from ..exceptions import StoreError
from ..store.base import Store

if TYPE_CHECKING:
    from ..document import ResourceDefinition, SchemaDocument


logger = logging.getLogger(__name__)


def generate_summary(diff: ResourceDiff, resource_name: str) -> str:
    """One-line summary of a resource diff."""
    if diff.is_empty:
        return f"Resource '{resource_name}' is up to date"

    parts = []

    if diff.fields_to_add:
        parts.append(f"{len(diff.fields_to_add)} field(s) to add")
    if diff.fields_to_remove:
        parts.append(f"{len(diff.fields_to_remove)} field(s) to remove")
    if diff.fields_to_modify:
        parts.append(f"{len(diff.fields_to_modify)} field(s) to modify")
    if diff.reorder_needed:
        parts.append("fields need reordering")

    return f"Resource '{resource_name}': {', '.join(parts)}"


def _add_change(resource_name: str, payload: AddPayload) -> Change:
    field = payload.field
    position_info = f" at position {field.position + 1}" if field.position >= 0 else ""
    return Change(
        change_type=ChangeType.ADD,
        path=f"{resource_name}.{field.name}",
        description=(
            f"Add new field '{field.name}' of type "
            f"{format_field_type(field.type, field.format)}{position_info}"
        ),
        payload=payload,
    )


def _remove_change(resource_name: str, payload: RemovePayload) -> Change:
    return Change(
        change_type=ChangeType.REMOVE,
        path=f"{resource_name}.{payload.field.name}",
        description=f"Remove field '{payload.field.name}'",
        payload=payload,
    )


def _modify_change(resource_name: str, payload: ModifyPayload) -> Change:
    return Change(
        change_type=ChangeType.MODIFY,
        path=f"{resource_name}.{payload.name}",
        description=payload.description,
        payload=payload,
    )


def build_plan(
    diff: ResourceDiff,
    resource_name: str,
    canonical_order: Optional[Sequence[str]] = None,
) -> Plan:
    """
    Convert a diff into an ordered Plan.

    Args:
        diff: Output of ``compare``
        resource_name: Sheet name used in change paths and the summary
        canonical_order: Full schema field order. When given, per-field
            changes follow it and changes for other names (removals) come
            after, in observed order.

    Returns:
        Plan with at most one change per field and, when needed, a single
        trailing reorder change
    """
    additions = [_add_change(resource_name, AddPayload(f)) for f in diff.fields_to_add]
    removals = [_remove_change(resource_name, RemovePayload(f)) for f in diff.fields_to_remove]
    modifications = [_modify_change(resource_name, m) for m in diff.fields_to_modify]

    changes: List[Change] = []
    if canonical_order:
        by_field: Dict[str, Change] = {}
        for change in additions + removals + modifications:
            by_field[change.field_name] = change

        emitted = set()
        for name in canonical_order:
            if name in by_field and name not in emitted:
                changes.append(by_field[name])
                emitted.add(name)

        for change in removals + additions + modifications:
            if change.field_name not in emitted:
                changes.append(change)
                emitted.add(change.field_name)
    else:
        changes.extend(sorted(additions, key=lambda c: c.payload.field.position))
        changes.extend(removals)
        changes.extend(modifications)

    if diff.reorder_needed:
        changes.append(
            Change(
                change_type=ChangeType.REORDER,
                path=resource_name,
                description=(
                    f"Reorder fields to match schema: {', '.join(diff.expected_order)}"
                ),
                payload=ReorderPayload(
                    expected_order=list(diff.expected_order),
                    current_order=list(diff.current_order),
                ),
            )
        )

    return Plan(
        resource=resource_name,
        changes=changes,
        summary=generate_summary(diff, resource_name),
    )


class Planner:
    """
    Computes migration plans for the resources of a schema document.

    A sheet that is missing or cannot be read is planned against an empty
    observed field set, so every declared field becomes an addition.
    """

    def __init__(self, store: Store, sample_rows: int = 100):
        self.store = store
        self.inspector = SheetInspector(store, sample_rows)

    async def observe(self, resource: "ResourceDefinition") -> List[ObservedField]:
        """Current fields of a resource, or ``[]`` if the sheet cannot be read."""
        store_id = resource.store_id
        try:
            return await self.inspector.inspect(store_id, resource)
        except StoreError as e:
            logger.warning(
                f"Could not inspect sheet '{resource.name}', "
                f"planning as if it were empty: {e}"
            )
            return []

    async def plan_resource(self, resource: "ResourceDefinition") -> Plan:
        """Inspect, compare and build the plan for one resource."""
        schema_fields = resource.field_specs()
        observed = await self.observe(resource)

        diff = compare(observed, schema_fields)
        plan = build_plan(diff, resource.name, [f.name for f in schema_fields])

        logger.info(plan.summary)
        if plan.has_changes:
            logger.debug(plan.format())
        return plan

    async def plan_all(self, document: "SchemaDocument") -> List[Plan]:
        """Plan every resource in document order."""
        plans = []
        for resource in document.resources:
            plans.append(await self.plan_resource(resource))
        return plans
