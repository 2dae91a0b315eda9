"""
Sheet introspection for ssmigrate.

Reads the header row and a sample of each column and turns them into
ObservedField objects for the diff engine.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from .classifier import (
    classify_from_format_pattern,
    classify_from_samples,
    datetime_format_from_pattern,
    datetime_format_from_samples,
)
from .models import FieldType, ObservedField
from ..exceptions import StoreError
from ..store.base import ColumnMetadata, Store
from ..store.notation import column_to_letter

if TYPE_CHECKING:
    from ..document import ResourceDefinition


logger = logging.getLogger(__name__)


class SheetInspector:
    """Builds the observed field list of a sheet."""

    def __init__(self, store: Store, sample_rows: int = 100):
        self.store = store
        self.sample_rows = sample_rows

    async def inspect(
        self, store_id: str, resource: "ResourceDefinition"
    ) -> List[ObservedField]:
        """
        Inspect one sheet.

        Args:
            store_id: Spreadsheet ID
            resource: Resource definition (sheet name, header row/column)

        Returns:
            Observed fields in column order; empty when the sheet does not exist
        """
        if not await self.store.resource_exists(store_id, resource.name):
            logger.info(f"Sheet '{resource.name}' does not exist yet")
            return []

        header_row = resource.header_row
        offset = resource.column_offset
        headers = await self.store.get_headers(store_id, resource.name, header_row)
        metadata = await self._get_metadata(store_id, resource.name, header_row + 1)

        fields: List[ObservedField] = []
        seen = set()
        for index, header in enumerate(headers[offset:]):
            if not header:
                continue
            if header in seen:
                logger.warning(
                    f"Duplicate header '{header}' in sheet '{resource.name}' "
                    f"(column {column_to_letter(offset + index)}), ignoring it"
                )
                continue
            seen.add(header)

            column_meta = metadata[offset + index] if offset + index < len(metadata) else None
            fields.append(
                await self._inspect_column(
                    store_id, resource.name, header, index, offset, header_row, column_meta
                )
            )

        logger.debug(
            f"Inspected sheet '{resource.name}': "
            f"{[(f.name, f.type.value) for f in fields]}"
        )
        return fields

    async def _get_metadata(
        self, store_id: str, resource: str, data_row: int
    ) -> List[ColumnMetadata]:
        try:
            return await self.store.get_column_metadata(store_id, resource, data_row)
        except StoreError as e:
            logger.warning(f"Could not read column metadata for '{resource}': {e}")
            return []

    async def _inspect_column(
        self,
        store_id: str,
        resource: str,
        header: str,
        index: int,
        offset: int,
        header_row: int,
        column_meta: Optional[ColumnMetadata],
    ) -> ObservedField:
        column_ref = column_to_letter(offset + index)
        hidden = column_meta.hidden if column_meta else False
        pattern = column_meta.format_pattern if column_meta else ""

        try:
            samples = await self.store.get_column_samples(
                store_id, resource, column_ref, header_row + 1, self.sample_rows
            )
        except StoreError as e:
            # Unreadable data is treated as text
            logger.warning(f"Could not sample column {column_ref} of '{resource}': {e}")
            return ObservedField(
                name=header, type=FieldType.STRING, hidden=hidden, column_index=index
            )

        if any(value is not None and str(value).strip() for value in samples):
            field_type = classify_from_samples(samples)
        else:
            field_type = classify_from_format_pattern(pattern) or FieldType.STRING

        field_format = ""
        if field_type == FieldType.DATETIME:
            field_format = datetime_format_from_pattern(pattern) or datetime_format_from_samples(
                samples
            )

        return ObservedField(
            name=header,
            type=field_type,
            format=field_format,
            hidden=hidden,
            column_index=index,
        )
