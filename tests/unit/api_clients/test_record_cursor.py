"""Unit tests for cursor-based retrieval of all records.

The record client is driven by a substitute transport so every cursor call
(create, page fetch, delete) can be scripted and counted.
"""

import asyncio
from unittest.mock import AsyncMock, call

import pytest

from kintone_client.api_clients.cursor import RecordCursor, fetch_all_records
from kintone_client.api_clients.errors import (
    KintoneAPIError,
    NetworkError,
    ServerError,
)
from kintone_client.api_clients.record_client import RecordClient

CURSOR_PATH = "/records/cursor.json"


def make_client(create_result=None, pages=None, delete_side_effect=None):
    """Build a RecordClient over an AsyncMock transport."""
    transport = AsyncMock()
    if isinstance(create_result, BaseException):
        transport.post.side_effect = create_result
    else:
        transport.post.return_value = create_result
    transport.get.side_effect = pages or []
    if delete_side_effect is not None:
        transport.delete.side_effect = delete_side_effect
    else:
        transport.delete.return_value = {}
    return RecordClient(transport), transport


@pytest.mark.asyncio
class TestFetchAllRecords:
    """Tests for walking a cursor to exhaustion."""

    async def test_concatenates_pages_in_order(self):
        """Records of every page are returned in page order without a delete."""
        client, transport = make_client(
            create_result={"id": "c1", "totalCount": "3"},
            pages=[
                {"records": [{"n": "A"}, {"n": "B"}], "next": True},
                {"records": [{"n": "C"}], "next": False},
            ],
        )

        result = await client.get_all_records_with_cursor(app=1)

        assert result == {
            "records": [{"n": "A"}, {"n": "B"}, {"n": "C"}],
            "totalCount": "3",
        }
        assert transport.get.await_args_list == [
            call(CURSOR_PATH, {"id": "c1"}),
            call(CURSOR_PATH, {"id": "c1"}),
        ]
        transport.delete.assert_not_awaited()

    async def test_many_pages_preserve_server_order_and_duplicates(self):
        """Pages are appended as-is; nothing is sorted or deduplicated."""
        pages = [
            {"records": [{"n": 3}, {"n": 1}], "next": True},
            {"records": [{"n": 1}], "next": True},
            {"records": [], "next": True},
            {"records": [{"n": 2}], "next": False},
        ]
        client, transport = make_client(
            create_result={"id": "c9", "totalCount": "4"}, pages=pages
        )

        result = await client.get_all_records_with_cursor(app=1)

        assert result["records"] == [{"n": 3}, {"n": 1}, {"n": 1}, {"n": 2}]
        assert transport.get.await_count == 4

    async def test_empty_result_fetches_one_page(self):
        """An empty cursor still goes through exactly one page fetch."""
        client, transport = make_client(
            create_result={"id": "c0", "totalCount": "0"},
            pages=[{"records": [], "next": False}],
        )

        result = await client.get_all_records_with_cursor(app=1)

        assert result == {"records": [], "totalCount": "0"}
        transport.get.assert_awaited_once_with(CURSOR_PATH, {"id": "c0"})
        transport.delete.assert_not_awaited()

    async def test_total_count_comes_from_cursor_creation(self):
        """totalCount is the creation value even if pages disagree."""
        client, _ = make_client(
            create_result={"id": "c1", "totalCount": "10"},
            pages=[
                {"records": [{"n": 1}], "next": True},
                {"records": [{"n": 2}], "next": False},
            ],
        )

        result = await client.get_all_records_with_cursor(app=1)

        assert result["totalCount"] == "10"
        assert len(result["records"]) == 2

    async def test_create_receives_app_fields_and_query(self):
        """Cursor creation is scoped to the requested app, fields and query."""
        client, transport = make_client(
            create_result={"id": "c1", "totalCount": "0"},
            pages=[{"records": [], "next": False}],
        )

        await client.get_all_records_with_cursor(
            app=7, fields=["name", "age"], query="age > 20"
        )

        transport.post.assert_awaited_once_with(
            CURSOR_PATH,
            {"app": 7, "fields": ["name", "age"], "query": "age > 20"},
        )

    async def test_page_size_is_forwarded(self):
        """fetch_all_records passes an explicit page size to the cursor."""
        client, transport = make_client(
            create_result={"id": "c1", "totalCount": "0"},
            pages=[{"records": [], "next": False}],
        )

        await fetch_all_records(client, app=7, size=500)

        transport.post.assert_awaited_once_with(CURSOR_PATH, {"app": 7, "size": 500})


@pytest.mark.asyncio
class TestFetchAllRecordsFailures:
    """Tests for cursor cleanup when a walk fails."""

    async def test_first_page_failure_deletes_cursor_and_reraises(self):
        """A failing first page triggers one delete and surfaces the same error."""
        error = NetworkError("Connection failed to https://example.cybozu.com")
        client, transport = make_client(
            create_result={"id": "c2", "totalCount": "5"}, pages=[error]
        )

        with pytest.raises(NetworkError) as exc_info:
            await client.get_all_records_with_cursor(app=1)

        assert exc_info.value is error
        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c2"})

    async def test_later_page_failure_deletes_cursor_once(self):
        """A failure after some successful pages still deletes exactly once."""
        error = ServerError("[500] [GAIA_XX01] boom", 500)
        client, transport = make_client(
            create_result={"id": "c3", "totalCount": "9"},
            pages=[
                {"records": [{"n": 1}], "next": True},
                {"records": [{"n": 2}], "next": True},
                error,
            ],
        )

        with pytest.raises(ServerError) as exc_info:
            await client.get_all_records_with_cursor(app=1)

        assert exc_info.value is error
        assert transport.get.await_count == 3
        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c3"})

    async def test_delete_failure_does_not_mask_original_error(self):
        """An error from the cleanup delete is discarded."""
        error = NetworkError("Network error connecting to host")
        client, transport = make_client(
            create_result={"id": "c4", "totalCount": "2"},
            pages=[error],
            delete_side_effect=KintoneAPIError("[404] [GAIA_CU01] gone", 404),
        )

        with pytest.raises(NetworkError) as exc_info:
            await client.get_all_records_with_cursor(app=1)

        assert exc_info.value is error
        transport.delete.assert_awaited_once()

    async def test_malformed_page_deletes_cursor(self):
        """A page missing the next flag is a failed walk, not an exhausted one."""
        client, transport = make_client(
            create_result={"id": "c5", "totalCount": "1"},
            pages=[{"records": [{"n": 1}]}],
        )

        with pytest.raises(KeyError):
            await client.get_all_records_with_cursor(app=1)

        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c5"})

    async def test_cancellation_deletes_cursor(self):
        """A cancelled page fetch is treated like any other fetch failure."""
        client, transport = make_client(
            create_result={"id": "c6", "totalCount": "1"},
            pages=[asyncio.CancelledError()],
        )

        with pytest.raises(asyncio.CancelledError):
            await client.get_all_records_with_cursor(app=1)

        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c6"})

    async def test_create_failure_issues_no_delete(self):
        """Without a cursor there is nothing to clean up."""
        error = KintoneAPIError("[400] [CB_VA01] invalid query", 400)
        client, transport = make_client(create_result=error)

        with pytest.raises(KintoneAPIError) as exc_info:
            await client.get_all_records_with_cursor(app=1, query="bad query")

        assert exc_info.value is error
        transport.get.assert_not_awaited()
        transport.delete.assert_not_awaited()


@pytest.mark.asyncio
class TestRecordCursor:
    """Tests for the scoped cursor handle."""

    async def test_exhausted_cursor_is_not_deleted_on_later_error(self):
        """Errors raised after the last page leave the consumed cursor alone."""
        client, transport = make_client(
            create_result={"id": "c7", "totalCount": "1"},
            pages=[{"records": [{"n": 1}], "next": False}],
        )

        with pytest.raises(ValueError, match="caller failure"):
            async with RecordCursor(client, app=1) as cursor:
                async for _ in cursor.pages():
                    pass
                assert cursor.exhausted
                raise ValueError("caller failure")

        transport.delete.assert_not_awaited()

    async def test_error_in_caller_block_deletes_open_cursor(self):
        """Leaving the block with an error mid-walk releases the cursor."""
        client, transport = make_client(
            create_result={"id": "c8", "totalCount": "4"},
            pages=[{"records": [{"n": 1}], "next": True}],
        )

        with pytest.raises(ValueError):
            async with RecordCursor(client, app=1) as cursor:
                async for _ in cursor.pages():
                    raise ValueError("stop")

        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c8"})
        assert cursor.id is None

    async def test_break_before_last_page_deletes_cursor(self):
        """Leaving the block early without an error still releases the cursor."""
        client, transport = make_client(
            create_result={"id": "c10", "totalCount": "6"},
            pages=[{"records": [{"n": 1}], "next": True}],
        )

        async with RecordCursor(client, app=1) as cursor:
            async for _ in cursor.pages():
                break

        transport.get.assert_awaited_once()
        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c10"})
        assert cursor.id is None

    async def test_unwalked_cursor_is_deleted_on_exit(self):
        client, transport = make_client(
            create_result={"id": "c11", "totalCount": "2"}
        )

        async with RecordCursor(client, app=1):
            pass

        transport.get.assert_not_awaited()
        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c11"})

    async def test_failed_delete_after_break_is_silent(self):
        """An early exit never raises because the cleanup delete failed."""
        client, transport = make_client(
            create_result={"id": "c12", "totalCount": "6"},
            pages=[{"records": [{"n": 1}], "next": True}],
            delete_side_effect=NetworkError("Connection failed"),
        )

        async with RecordCursor(client, app=1) as cursor:
            async for _ in cursor.pages():
                break

        transport.delete.assert_awaited_once_with(CURSOR_PATH, {"id": "c12"})

    async def test_cursor_exposes_id_and_total_count(self):
        client, _ = make_client(
            create_result={"id": "c1", "totalCount": "3"},
            pages=[{"records": [], "next": False}],
        )

        async with RecordCursor(client, app=1) as cursor:
            assert cursor.id == "c1"
            assert cursor.total_count == "3"
            assert not cursor.exhausted
            async for _ in cursor.pages():
                pass

    async def test_cursor_cannot_be_reused(self):
        client, _ = make_client(
            create_result={"id": "c1", "totalCount": "0"},
            pages=[{"records": [], "next": False}],
        )
        cursor = RecordCursor(client, app=1)

        async with cursor:
            async for _ in cursor.pages():
                pass

        with pytest.raises(RuntimeError, match="cannot be reused"):
            async with cursor:
                pass

    async def test_pages_cannot_be_walked_twice(self):
        client, _ = make_client(
            create_result={"id": "c1", "totalCount": "0"},
            pages=[{"records": [], "next": False}],
        )

        async with RecordCursor(client, app=1) as cursor:
            async for _ in cursor.pages():
                pass
            with pytest.raises(RuntimeError, match="already been walked"):
                async for _ in cursor.pages():
                    pass

    async def test_pages_require_created_cursor(self):
        client, transport = make_client()
        cursor = RecordCursor(client, app=1)

        with pytest.raises(RuntimeError, match="has not been created"):
            async for _ in cursor.pages():
                pass

        transport.get.assert_not_awaited()
