"""Record client for the kintone REST API.

Maps each record operation onto a single transport call: build the path and
parameters, delegate to the injected HttpTransport, return the decoded body.
The only operation issuing more than one call is get_all_records_with_cursor,
which hands off to the cursor pagination engine.
"""

from typing import Any, Dict, List, Optional, Union

from .cursor import fetch_all_records
from .http_client import HttpTransport
from .models import (
    AppID,
    CommentContent,
    CommentID,
    Record,
    RecordID,
    Revision,
)


def _compact(**params: Any) -> Dict[str, Any]:
    """Drop parameters the caller left unset."""
    return {key: value for key, value in params.items() if value is not None}


class RecordClient:
    """Client for record, comment and workflow operations on kintone apps.

    Args:
        client: Transport used for every request
    """

    def __init__(self, client: HttpTransport):
        self.client = client

    async def get_record(self, app: AppID, id: RecordID) -> Dict[str, Any]:
        """Get a single record.

        Returns:
            ``{"record": {...}}``
        """
        return await self.client.get("/record.json", {"app": app, "id": id})

    async def add_record(
        self, app: AppID, record: Optional[Record] = None
    ) -> Dict[str, Any]:
        """Add a single record.

        Returns:
            ``{"id": ..., "revision": ...}`` assigned by the server
        """
        return await self.client.post("/record.json", _compact(app=app, record=record))

    async def update_record(
        self,
        app: AppID,
        id: Optional[RecordID] = None,
        update_key: Optional[Dict[str, Any]] = None,
        record: Optional[Record] = None,
        revision: Optional[Revision] = None,
    ) -> Dict[str, Any]:
        """Update a single record identified by ID or by a unique-field key.

        Args:
            app: App ID
            id: Record ID (mutually exclusive with update_key)
            update_key: ``{"field": code, "value": value}`` of a unique field
            record: Fields to update
            revision: Expected revision; omit to skip the concurrency check

        Returns:
            ``{"revision": ...}``

        Raises:
            ValueError: If neither or both of id and update_key are given
        """
        if (id is None) == (update_key is None):
            raise ValueError("Exactly one of id or update_key must be provided")

        params = _compact(
            app=app, id=id, updateKey=update_key, record=record, revision=revision
        )
        return await self.client.put("/record.json", params)

    async def get_records(
        self,
        app: AppID,
        fields: Optional[List[str]] = None,
        query: Optional[str] = None,
        total_count: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Get records matching a query, limited to one response page.

        Args:
            app: App ID
            fields: Field codes to include (all fields when omitted)
            query: Query string in the kintone query language
            total_count: Whether the server should report the total match count

        Returns:
            ``{"records": [...], "totalCount": str or None}``
        """
        params = _compact(app=app, fields=fields, query=query, totalCount=total_count)
        return await self.client.get("/records.json", params)

    async def add_records(self, app: AppID, records: List[Record]) -> Dict[str, Any]:
        """Add several records in one request.

        Returns:
            ``{"ids": [...], "revisions": [...]}``
        """
        return await self.client.post("/records.json", {"app": app, "records": records})

    async def update_records(self, app: AppID, records: List[Dict[str, Any]]) -> Any:
        """Update several records in one request.

        Each entry carries ``id`` or ``updateKey``, plus optional ``record`` and
        ``revision``.
        """
        return await self.client.put("/records.json", {"app": app, "records": records})

    async def delete_records(
        self,
        app: AppID,
        ids: List[RecordID],
        revisions: Optional[List[Revision]] = None,
    ) -> Dict[str, Any]:
        """Delete several records.

        Args:
            app: App ID
            ids: Record IDs to delete
            revisions: Expected revision per ID; omit to skip the concurrency check

        Returns:
            ``{}``
        """
        params = _compact(app=app, ids=ids, revisions=revisions)
        return await self.client.delete("/records.json", params)

    async def create_cursor(
        self,
        app: AppID,
        fields: Optional[List[str]] = None,
        query: Optional[str] = None,
        size: Optional[Union[int, str]] = None,
    ) -> Dict[str, Any]:
        """Create a server-side cursor over the records matching a query.

        Args:
            app: App ID
            fields: Field codes to include
            query: Query string in the kintone query language
            size: Records per page (server default when omitted)

        Returns:
            ``{"id": cursor_id, "totalCount": str}``
        """
        params = _compact(app=app, fields=fields, query=query, size=size)
        return await self.client.post("/records/cursor.json", params)

    async def get_records_by_cursor(self, id: str) -> Dict[str, Any]:
        """Fetch the next page of a cursor.

        Returns:
            ``{"records": [...], "next": bool}``
        """
        return await self.client.get("/records/cursor.json", {"id": id})

    async def delete_cursor(self, id: str) -> Dict[str, Any]:
        """Delete a cursor before it has been walked to the end.

        Returns:
            ``{}``
        """
        return await self.client.delete("/records/cursor.json", {"id": id})

    async def get_all_records_with_cursor(
        self,
        app: AppID,
        fields: Optional[List[str]] = None,
        query: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Get every record matching a query by walking a cursor.

        The cursor is deleted on a best-effort basis if any page fetch fails;
        the original error is then re-raised.

        Returns:
            ``{"records": [...], "totalCount": str}``
        """
        return await fetch_all_records(self, app, fields=fields, query=query)

    async def add_comment(
        self,
        app: AppID,
        record: RecordID,
        comment: Union[CommentContent, Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Post a comment on a record.

        Args:
            app: App ID
            record: Record ID
            comment: Comment text and optional mentions

        Returns:
            ``{"id": comment_id}``
        """
        if isinstance(comment, CommentContent):
            comment = comment.to_params()
        params = {"app": app, "record": record, "comment": comment}
        return await self.client.post("/record/comment.json", params)

    async def delete_comment(
        self, app: AppID, record: RecordID, comment: CommentID
    ) -> Dict[str, Any]:
        """Delete a comment from a record.

        Returns:
            ``{}``
        """
        params = {"app": app, "record": record, "comment": comment}
        return await self.client.delete("/record/comment.json", params)

    async def get_comments(
        self,
        app: AppID,
        record: RecordID,
        order: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Get comments posted on a record.

        Args:
            app: App ID
            record: Record ID
            order: ``"asc"`` or ``"desc"``
            offset: Number of comments to skip
            limit: Maximum number of comments to return

        Returns:
            ``{"comments": [...], "older": bool, "newer": bool}``

        Raises:
            ValueError: If order is not asc or desc
        """
        if order is not None and order not in ("asc", "desc"):
            raise ValueError(f"order must be 'asc' or 'desc'. Got: {order}")

        params = _compact(
            app=app, record=record, order=order, offset=offset, limit=limit
        )
        return await self.client.get("/record/comments.json", params)

    async def update_assignees(
        self,
        app: AppID,
        id: RecordID,
        assignees: List[str],
        revision: Optional[Revision] = None,
    ) -> Dict[str, Any]:
        """Replace the workflow assignees of a record."""
        params = _compact(app=app, id=id, assignees=assignees, revision=revision)
        return await self.client.put("/record/assignees.json", params)

    async def update_status(
        self,
        action: str,
        app: AppID,
        id: RecordID,
        assignee: Optional[str] = None,
        revision: Optional[Revision] = None,
    ) -> Dict[str, Any]:
        """Run a workflow action on a record.

        Args:
            action: Name of the workflow action
            app: App ID
            id: Record ID
            assignee: Next assignee, when the action requires one
            revision: Expected revision; omit to skip the concurrency check

        Returns:
            ``{"revision": ...}``
        """
        params = _compact(
            action=action, app=app, assignee=assignee, id=id, revision=revision
        )
        return await self.client.put("/record/status.json", params)

    async def update_statuses(
        self, app: AppID, records: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Run workflow actions on several records.

        Each entry carries ``action`` and ``id``, plus optional ``assignee``
        and ``revision``.

        Returns:
            ``{"records": [{"id": ..., "revision": ...}, ...]}``
        """
        return await self.client.put(
            "/records/status.json", {"app": app, "records": records}
        )
