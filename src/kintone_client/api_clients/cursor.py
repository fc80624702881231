"""Cursor pagination for retrieving record sets larger than one page.

A server-side cursor is a resource with a lifecycle: it is created for one
query, advanced page by page until the server reports no further pages, and
otherwise has to be deleted explicitly. RecordCursor ties that lifecycle to an
``async with`` block so a walk that stops early, by error or otherwise, always
releases the cursor before control leaves the block.
"""

import contextlib
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional, Union

from .models import AppID, Record

if TYPE_CHECKING:
    from .record_client import RecordClient

logger = logging.getLogger(__name__)


class RecordCursor:
    """Scoped handle on a server-side record cursor.

    Entering the context creates the cursor; ``pages()`` then yields the
    records of each page in server order. If the block exits before the server
    reported the last page, whether through an error or an early ``break``, the
    cursor is deleted once on a best-effort basis and any error propagates
    unchanged. A cursor that ran to exhaustion is already gone server-side and
    is not deleted.

    Instances are single-use.

    Args:
        client: Record client issuing the cursor calls
        app: App ID
        fields: Field codes to include
        query: Query string in the kintone query language
        size: Records per page (server default when omitted)
    """

    def __init__(
        self,
        client: "RecordClient",
        app: AppID,
        fields: Optional[List[str]] = None,
        query: Optional[str] = None,
        size: Optional[Union[int, str]] = None,
    ):
        self.client = client
        self.app = app
        self.fields = fields
        self.query = query
        self.size = size
        self.id: Optional[str] = None
        self.total_count: Optional[str] = None
        self._entered = False
        self._iterated = False
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        """Whether the server has reported the last page."""
        return self._exhausted

    async def __aenter__(self) -> "RecordCursor":
        if self._entered:
            raise RuntimeError("RecordCursor instances cannot be reused")
        self._entered = True

        result = await self.client.create_cursor(
            app=self.app, fields=self.fields, query=self.query, size=self.size
        )
        self.id = result["id"]
        self.total_count = result["totalCount"]
        logger.debug(
            f"Created cursor {self.id} on app {self.app} "
            f"(totalCount={self.total_count})"
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self.id is not None and not self._exhausted:
            await self._release()
        return False

    async def pages(self) -> AsyncIterator[List[Record]]:
        """Yield the records of each page until the server reports no more.

        Raises:
            RuntimeError: If the cursor was not created or was already walked
        """
        if self.id is None:
            raise RuntimeError("Cursor has not been created; use 'async with'")
        if self._iterated:
            raise RuntimeError(f"Cursor {self.id} has already been walked")
        self._iterated = True

        page_number = 0
        has_next = True
        while has_next:
            page = await self.client.get_records_by_cursor(id=self.id)
            records = page["records"]
            has_next = bool(page["next"])
            page_number += 1
            logger.debug(
                f"Cursor {self.id} page {page_number}: "
                f"{len(records)} records, next={has_next}"
            )
            if not has_next:
                self._exhausted = True
            yield records

    async def _release(self) -> None:
        """Delete the cursor, ignoring any failure.

        An undeleted cursor is reclaimed by the server's own timeout, so a
        failed delete never replaces the error that ended the walk.
        """
        cursor_id = self.id
        self.id = None
        with contextlib.suppress(Exception):
            await self.client.delete_cursor(id=cursor_id)


async def fetch_all_records(
    client: "RecordClient",
    app: AppID,
    fields: Optional[List[str]] = None,
    query: Optional[str] = None,
    size: Optional[Union[int, str]] = None,
) -> Dict[str, Any]:
    """Retrieve every record matching a query through a cursor.

    Args:
        client: Record client issuing the cursor calls
        app: App ID
        fields: Field codes to include
        query: Query string in the kintone query language
        size: Records per page (server default when omitted)

    Returns:
        ``{"records": [...], "totalCount": str}`` where totalCount is the value
        reported when the cursor was created

    Raises:
        APIClientError: The error from cursor creation or from the failing
            page fetch, unchanged
    """
    async with RecordCursor(
        client, app, fields=fields, query=query, size=size
    ) as cursor:
        records: List[Record] = []
        async for page in cursor.pages():
            records.extend(page)

    logger.debug(f"Fetched {len(records)} records from app {app} via cursor")
    return {"records": records, "totalCount": cursor.total_count}
