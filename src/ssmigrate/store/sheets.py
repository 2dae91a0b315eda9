"""
Google Sheets store implementation.

Talks to the Sheets v4 REST API through a shared aiohttp session.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlparse

import aiohttp

from .base import ColumnMetadata, Store
from .notation import cell_range, column_range, row_range
from ..config import StoreConfig
from ..exceptions import (
    ConfigurationError,
    StoreError,
    StoreNotFoundError,
    StoreTimeoutError,
)


logger = logging.getLogger(__name__)


def extract_spreadsheet_id(sheet_url: str) -> str:
    """
    Extract the spreadsheet ID from a Google Sheets URL.

    The ID is the path segment after ``/d/``, as in
    ``https://docs.google.com/spreadsheets/d/<ID>/edit``.

    Raises:
        ConfigurationError: If the URL is not a recognisable Sheets URL
    """
    try:
        parsed = urlparse(sheet_url)
    except ValueError as e:
        raise ConfigurationError(f"Invalid URL: {sheet_url}", cause=e)

    if "docs.google.com" not in (parsed.netloc or ""):
        raise ConfigurationError(f"Not a Google Sheets URL: {sheet_url}")

    parts = parsed.path.split("/")
    for i, part in enumerate(parts):
        if part == "d" and i + 1 < len(parts) and parts[i + 1]:
            return parts[i + 1]

    raise ConfigurationError(f"Spreadsheet ID not found in URL: {sheet_url}")


class GoogleSheetsStore(Store):
    """
    Google Sheets client for structural sheet operations.

    Credentials are not acquired here: the configured OAuth2 access token
    is sent as a bearer token.
    """

    def __init__(self, config: StoreConfig):
        if not config.access_token:
            raise ConfigurationError(
                "Google Sheets access token is required "
                "(set store.access_token or SSMIGRATE_STORE__ACCESS_TOKEN)"
            )

        self.config = config
        self.base_url = config.api_base_url.rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None
        self._sheet_ids: Dict[Tuple[str, str], int] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "Authorization": f"Bearer {self.config.access_token}",
                    "Content-Type": "application/json",
                    "User-Agent": "ssmigrate/0.1",
                },
            )
        return self._session

    @staticmethod
    def _error_message(status: int, body: str) -> str:
        try:
            data = json.loads(body)
            return data.get("error", {}).get("message") or f"HTTP {status}"
        except (ValueError, AttributeError):
            return f"HTTP {status}"

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        session = await self._get_session()

        try:
            async with session.request(method, url, params=params, json=payload) as response:
                body = await response.text()

                if 200 <= response.status < 300:
                    return json.loads(body) if body else {}

                message = self._error_message(response.status, body)
                if response.status in (401, 403):
                    raise StoreError(
                        f"Authentication failed: {message}", status_code=response.status
                    )
                if response.status == 404:
                    raise StoreNotFoundError(
                        f"Not found: {message}", status_code=response.status
                    )
                raise StoreError(
                    f"Sheets API error: {message}",
                    status_code=response.status,
                    response_body=body,
                )

        except asyncio.TimeoutError:
            raise StoreTimeoutError(timeout_duration=self.config.timeout)
        except aiohttp.ClientError as e:
            raise StoreError(f"Network error: {e}", cause=e) from e

    def _spreadsheet_url(self, store_id: str) -> str:
        return f"{self.base_url}/{store_id}"

    def _values_url(self, store_id: str, a1_range: str) -> str:
        return f"{self.base_url}/{store_id}/values/{quote(a1_range, safe='')}"

    async def _get_values(self, store_id: str, a1_range: str) -> List[List[Any]]:
        data = await self._request(
            "GET",
            self._values_url(store_id, a1_range),
            params={"majorDimension": "ROWS"},
        )
        return data.get("values", [])

    async def _batch_update(
        self, store_id: str, requests: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"{self._spreadsheet_url(store_id)}:batchUpdate",
            payload={"requests": requests},
        )

    async def _sheet_properties(self, store_id: str) -> List[Dict[str, Any]]:
        data = await self._request(
            "GET",
            self._spreadsheet_url(store_id),
            params={"fields": "sheets.properties(sheetId,title)"},
        )
        return [sheet.get("properties", {}) for sheet in data.get("sheets", [])]

    async def _sheet_id(self, store_id: str, resource: str) -> int:
        key = (store_id, resource)
        if key not in self._sheet_ids:
            for props in await self._sheet_properties(store_id):
                self._sheet_ids[(store_id, props.get("title", ""))] = props.get("sheetId", 0)

        if key not in self._sheet_ids:
            raise StoreNotFoundError(f"Sheet '{resource}' not found in spreadsheet {store_id}")
        return self._sheet_ids[key]

    async def _column_dimension(
        self, store_id: str, resource: str, index: int
    ) -> Dict[str, Any]:
        return {
            "sheetId": await self._sheet_id(store_id, resource),
            "dimension": "COLUMNS",
            "startIndex": index,
            "endIndex": index + 1,
        }

    async def get_headers(self, store_id: str, resource: str, header_row: int) -> List[str]:
        header_row = max(header_row, 1)
        values = await self._get_values(store_id, row_range(resource, header_row))

        if not values or not values[0]:
            return []
        return ["" if value is None else str(value) for value in values[0]]

    async def get_column_samples(
        self,
        store_id: str,
        resource: str,
        column_ref: str,
        start_row: int,
        limit: Optional[int] = None,
    ) -> List[Any]:
        start_row = max(start_row, 1)
        end_row = start_row + limit - 1 if limit else 0
        values = await self._get_values(
            store_id, column_range(resource, column_ref, start_row, end_row)
        )
        return [row[0] if row else None for row in values]

    async def get_column_metadata(
        self, store_id: str, resource: str, data_row: int
    ) -> List[ColumnMetadata]:
        data = await self._request(
            "GET",
            self._spreadsheet_url(store_id),
            params={
                "ranges": row_range(resource, max(data_row, 1)),
                "fields": (
                    "sheets(data(columnMetadata(hiddenByUser),"
                    "rowData(values(userEnteredFormat(numberFormat(pattern))))))"
                ),
            },
        )

        sheets = data.get("sheets", [])
        if not sheets or not sheets[0].get("data"):
            return []

        grid = sheets[0]["data"][0]
        column_meta = grid.get("columnMetadata", [])
        row_data = grid.get("rowData", [])
        cells = row_data[0].get("values", []) if row_data else []

        result = []
        for index in range(max(len(column_meta), len(cells))):
            hidden = column_meta[index].get("hiddenByUser", False) if index < len(column_meta) else False
            pattern = ""
            if index < len(cells):
                pattern = (
                    cells[index]
                    .get("userEnteredFormat", {})
                    .get("numberFormat", {})
                    .get("pattern", "")
                )
            result.append(ColumnMetadata(index=index, hidden=bool(hidden), format_pattern=pattern))
        return result

    async def insert_column_before(self, store_id: str, resource: str, index: int) -> None:
        await self._batch_update(
            store_id,
            [
                {
                    "insertDimension": {
                        "range": await self._column_dimension(store_id, resource, index),
                        "inheritFromBefore": index > 0,
                    }
                }
            ],
        )
        logger.debug(f"Inserted column at index {index} in {resource}")

    async def write_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int, value: str
    ) -> None:
        a1 = cell_range(resource, column_ref, row_ref)
        await self._request(
            "PUT",
            self._values_url(store_id, a1),
            params={"valueInputOption": "USER_ENTERED"},
            payload={"range": a1, "majorDimension": "ROWS", "values": [[value]]},
        )

    async def clear_header_cell(
        self, store_id: str, resource: str, column_ref: str, row_ref: int
    ) -> None:
        a1 = cell_range(resource, column_ref, row_ref)
        await self._request("POST", f"{self._values_url(store_id, a1)}:clear", payload={})

    async def set_column_hidden(
        self, store_id: str, resource: str, index: int, hidden: bool
    ) -> None:
        await self._batch_update(
            store_id,
            [
                {
                    "updateDimensionProperties": {
                        "range": await self._column_dimension(store_id, resource, index),
                        "properties": {"hiddenByUser": hidden},
                        "fields": "hiddenByUser",
                    }
                }
            ],
        )

    async def delete_column(self, store_id: str, resource: str, index: int) -> None:
        await self._batch_update(
            store_id,
            [
                {
                    "deleteDimension": {
                        "range": await self._column_dimension(store_id, resource, index),
                    }
                }
            ],
        )

    async def resource_exists(self, store_id: str, resource: str) -> bool:
        titles = [props.get("title") for props in await self._sheet_properties(store_id)]
        return resource in titles

    async def create_resource(self, store_id: str, resource: str) -> None:
        data = await self._batch_update(
            store_id, [{"addSheet": {"properties": {"title": resource}}}]
        )

        replies = data.get("replies", [])
        if replies:
            sheet_id = replies[0].get("addSheet", {}).get("properties", {}).get("sheetId")
            if sheet_id is not None:
                self._sheet_ids[(store_id, resource)] = sheet_id
        logger.info(f"Created sheet '{resource}' in spreadsheet {store_id}")

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def __repr__(self) -> str:
        return f"GoogleSheetsStore(base_url='{self.base_url}')"
