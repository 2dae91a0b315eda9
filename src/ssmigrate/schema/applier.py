"""
Applying migration plans to the spreadsheet store.

Changes are applied one at a time in plan order. A failing change is
recorded and the remaining changes are still attempted.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from .models import (
    AddPayload,
    Change,
    ChangeType,
    ModifyPayload,
    Plan,
    RemovePayload,
)
from ..exceptions import ApplyError, FieldLookupError, SsMigrateError, StoreError
from ..store.base import Store
from ..store.notation import column_to_letter

if TYPE_CHECKING:
    from ..document import ResourceDefinition, SchemaDocument


logger = logging.getLogger(__name__)


class ApplyStatus(str, Enum):
    """Lifecycle of applying one resource's plan."""

    PENDING = "pending"
    DRY_RUN = "dry_run"
    APPLYING = "applying"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"


@dataclass
class ApplyResult:
    """Outcome of applying one resource's plan."""

    resource: str
    status: ApplyStatus = ApplyStatus.PENDING
    total_changes: int = 0
    changes_applied: int = 0
    changes_skipped: int = 0
    errors: List[ApplyError] = field(default_factory=list)
    resource_created: bool = False
    message: str = ""
    execution_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.status in (ApplyStatus.SUCCEEDED, ApplyStatus.DRY_RUN)

    @property
    def failed_changes(self) -> int:
        return len(self.errors)


def compute_insert_index(
    schema_order: Sequence[str], headers: Sequence[str], field_name: str
) -> int:
    """
    Column index at which a new field should be inserted.

    The field goes right before the first later schema field that already
    has a column; if there is none it is appended after the last header.

    Args:
        schema_order: All field names of the resource in schema order
        headers: Current header labels in column order
        field_name: Field being added

    Raises:
        FieldLookupError: If ``field_name`` is not part of ``schema_order``
    """
    try:
        schema_index = list(schema_order).index(field_name)
    except ValueError:
        raise FieldLookupError(f"field {field_name} not found in schema", field=field_name)

    header_positions: Dict[str, int] = {}
    for i, header in enumerate(headers):
        if header:
            header_positions.setdefault(header, i)

    for next_name in schema_order[schema_index + 1:]:
        if next_name in header_positions:
            return header_positions[next_name]

    return len(headers)


class Applier:
    """
    Applies plans to the store.

    Removals only clear the header cell so column data is preserved, type
    and format modifications are reported but never applied, and reorders
    are advisory.
    """

    def __init__(
        self,
        store: Store,
        dry_run: bool = False,
        create_missing_resources: bool = True,
    ):
        self.store = store
        self.dry_run = dry_run
        self.create_missing_resources = create_missing_resources

    async def apply(
        self,
        document: "SchemaDocument",
        plan: Plan,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ApplyResult:
        """
        Apply one resource's plan.

        Args:
            document: Schema document the plan was computed from
            plan: Plan to apply
            cancel_event: When set, changes not yet started are recorded
                as cancelled

        Returns:
            ApplyResult; per-change failures are collected, never raised
        """
        start_time = time.time()
        result = ApplyResult(resource=plan.resource, total_changes=len(plan.changes))

        if not plan.has_changes:
            result.status = ApplyStatus.SUCCEEDED
            result.message = "No changes to apply"
            return result

        resource = document.get_resource(plan.resource)

        if self.dry_run:
            result.status = ApplyStatus.DRY_RUN
            result.message = f"DRY RUN: Would apply {len(plan.changes)} changes"
            if resource is not None and await self._would_create(resource):
                result.message += f" (would create sheet '{resource.name}')"
            logger.info(f"{plan.resource}: {result.message}")
            return result

        result.status = ApplyStatus.APPLYING

        try:
            if resource is None:
                raise FieldLookupError(
                    f"resource not found for sheet: {plan.resource}", resource=plan.resource
                )
            result.resource_created = await self._ensure_resource(resource)
        except SsMigrateError as e:
            for change in plan.changes:
                result.errors.append(ApplyError(change, str(e), cause=e))
            return self._finish(result, start_time)

        for change in plan.changes:
            if cancel_event is not None and cancel_event.is_set():
                result.errors.append(ApplyError(change, "cancelled before being applied"))
                continue

            try:
                applied = await self._apply_change(resource, change)
            except ApplyError as e:
                result.errors.append(e)
                logger.error(str(e))
                continue
            except SsMigrateError as e:
                error = ApplyError(change, str(e), cause=e)
                result.errors.append(error)
                logger.error(str(error))
                continue

            if applied:
                result.changes_applied += 1
            else:
                result.changes_skipped += 1

        return self._finish(result, start_time)

    async def apply_all(
        self,
        document: "SchemaDocument",
        plans: Sequence[Plan],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ApplyResult]:
        """Apply plans one resource at a time, in order."""
        results = []
        for plan in plans:
            results.append(await self.apply(document, plan, cancel_event))
        return results

    def _finish(self, result: ApplyResult, start_time: float) -> ApplyResult:
        if result.errors:
            result.status = ApplyStatus.PARTIALLY_FAILED
            result.message = (
                f"Applied {result.changes_applied} changes with {len(result.errors)} errors"
            )
        else:
            result.status = ApplyStatus.SUCCEEDED
            result.message = f"Successfully applied {result.changes_applied} changes"
            if result.changes_skipped:
                result.message += f" ({result.changes_skipped} require manual action)"

        result.execution_time_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Apply completed for {result.resource}: "
            f"{result.status.value} ({result.execution_time_ms:.1f}ms)"
        )
        return result

    async def _ensure_resource(self, resource: "ResourceDefinition") -> bool:
        """Create the sheet if it is missing. Returns True when created."""
        if not self.create_missing_resources:
            return False

        store_id = resource.store_id
        if await self.store.resource_exists(store_id, resource.name):
            return False

        await self.store.create_resource(store_id, resource.name)
        logger.info(f"Created new sheet '{resource.name}'")
        return True

    async def _would_create(self, resource: "ResourceDefinition") -> bool:
        if not self.create_missing_resources:
            return False
        try:
            return not await self.store.resource_exists(resource.store_id, resource.name)
        except StoreError as e:
            logger.warning(f"Could not check whether sheet '{resource.name}' exists: {e}")
            return False

    async def _apply_change(self, resource: "ResourceDefinition", change: Change) -> bool:
        """Apply a single change. Returns False when it needs manual action."""
        if change.change_type == ChangeType.ADD and isinstance(change.payload, AddPayload):
            await self._add_field(resource, change, change.payload)
            return True

        if change.change_type == ChangeType.REMOVE and isinstance(change.payload, RemovePayload):
            await self._remove_field(resource, change, change.payload)
            return True

        if change.change_type == ChangeType.MODIFY and isinstance(change.payload, ModifyPayload):
            return await self._modify_field(resource, change, change.payload)

        if change.change_type == ChangeType.REORDER:
            logger.warning(
                f"Column reordering for {change.path} is not applied automatically; "
                f"expected order: {', '.join(change.payload.expected_order)}"
            )
            return False

        raise ApplyError(change, f"unsupported change type: {change.change_type.value}")

    async def _table_headers(self, resource: "ResourceDefinition") -> List[str]:
        headers = await self.store.get_headers(
            resource.store_id, resource.name, resource.header_row
        )
        return headers[resource.column_offset:]

    async def _find_column(self, resource: "ResourceDefinition", name: str) -> int:
        headers = await self._table_headers(resource)
        if name not in headers:
            raise FieldLookupError(f"field {name} not found", resource=resource.name, field=name)
        return headers.index(name)

    async def _add_field(
        self, resource: "ResourceDefinition", change: Change, payload: AddPayload
    ) -> None:
        spec = payload.field
        store_id = resource.store_id

        # Headers are re-read for every addition so earlier inserts are accounted for.
        headers = await self._table_headers(resource)
        if spec.name in headers:
            raise ApplyError(change, f"field {spec.name} already exists")

        index = compute_insert_index(resource.field_names, headers, spec.name)
        absolute_index = resource.column_offset + index
        column_ref = column_to_letter(absolute_index)

        inserted = False
        if index < len(headers):
            await self.store.insert_column_before(store_id, resource.name, absolute_index)
            inserted = True

        try:
            await self.store.write_header_cell(
                store_id, resource.name, column_ref, resource.header_row, spec.name
            )
        except StoreError as e:
            if inserted:
                raise ApplyError(
                    change,
                    f"column {column_ref} was inserted but writing its header failed: {e}",
                    cause=e,
                )
            raise

        if spec.hidden:
            await self.store.set_column_hidden(store_id, resource.name, absolute_index, True)

        logger.info(f"Added field '{spec.name}' to column {column_ref}")

    async def _remove_field(
        self, resource: "ResourceDefinition", change: Change, payload: RemovePayload
    ) -> None:
        name = payload.field.name
        index = await self._find_column(resource, name)
        column_ref = column_to_letter(resource.column_offset + index)

        await self.store.clear_header_cell(
            resource.store_id, resource.name, column_ref, resource.header_row
        )
        logger.info(f"Cleared header for field '{name}' in column {column_ref} (data preserved)")

    async def _modify_field(
        self, resource: "ResourceDefinition", change: Change, payload: ModifyPayload
    ) -> bool:
        if payload.type_changed:
            logger.warning(
                f"Field type modification for {change.path} requires manual intervention"
            )

        if not payload.hidden_changed:
            return False

        index = await self._find_column(resource, payload.name)
        await self.store.set_column_hidden(
            resource.store_id,
            resource.name,
            resource.column_offset + index,
            payload.new_hidden,
        )
        logger.info(
            f"{'Hid' if payload.new_hidden else 'Showed'} column for field '{payload.name}'"
        )
        return not payload.type_changed
