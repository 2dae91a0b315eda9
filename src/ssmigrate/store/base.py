"""
Abstract base class for spreadsheet stores.

This module provides the interface the reconciliation engine uses to read
and mutate sheet structure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional
import logging


logger = logging.getLogger(__name__)


@dataclass
class ColumnMetadata:
    """Presentation attributes of one column."""

    index: int
    hidden: bool = False
    format_pattern: str = ""


class Store(ABC):
    """
    Abstract base class for spreadsheet stores.

    A store addresses a spreadsheet by ``store_id`` and a sheet inside it by
    ``resource`` (the sheet title). Column indexes are 0-based, row numbers
    1-based, ``column_ref`` is an A1 column letter.
    """

    @abstractmethod
    async def get_headers(self, store_id: str, resource: str, header_row: int) -> List[str]:
        """
        Read the header row.

        Returns:
            Header labels in column order, empty strings for blank cells
        """
        pass

    @abstractmethod
    async def get_column_samples(
        self,
        store_id: str,
        resource: str,
        column_ref: str,
        start_row: int,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """
        Read raw values of one column starting at ``start_row``.

        Returns:
            Cell values in row order, ``None`` for empty cells
        """
        pass

    async def get_column_metadata(
        self, store_id: str, resource: str, data_row: int
    ) -> List[ColumnMetadata]:
        """Hidden flags and number-format patterns per column (if supported)."""
        return []

    @abstractmethod
    async def insert_column_before(self, store_id: str, resource: str, index: int) -> None:
        """Insert a blank column at ``index``, shifting later columns right."""
        pass

    @abstractmethod
    async def write_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int, value: str
    ) -> None:
        pass

    @abstractmethod
    async def clear_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int
    ) -> None:
        pass

    @abstractmethod
    async def set_column_hidden(
        self, store_id: str, resource: str, index: int, hidden: bool
    ) -> None:
        pass

    @abstractmethod
    async def delete_column(self, store_id: str, resource: str, index: int) -> None:
        """Physically delete a column and its data."""
        pass

    @abstractmethod
    async def resource_exists(self, store_id: str, resource: str) -> bool:
        pass

    @abstractmethod
    async def create_resource(self, store_id: str, resource: str) -> None:
        pass

    async def close(self) -> None:
        """Release any underlying connections."""
        pass

    async def __aenter__(self) -> "Store":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
