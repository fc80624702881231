"""API client abstractions for the kintone REST API.

The record client builds requests and delegates them to an injected transport;
the cursor module owns multi-page retrieval and cursor cleanup.
"""

from .errors import (
    APIClientError,
    KintoneAPIError,
    NetworkError,
    RequestTimeoutError,
    ResponseDecodeError,
    ServerError,
)
from .http_client import HttpTransport, KintoneHttpClient
from .models import (
    AppID,
    Comment,
    CommentContent,
    CommentCreator,
    CommentID,
    Mention,
    MentionType,
    Record,
    RecordID,
    Revision,
)
from .cursor import RecordCursor, fetch_all_records
from .record_client import RecordClient

__all__ = [
    # Errors
    "APIClientError",
    "KintoneAPIError",
    "NetworkError",
    "RequestTimeoutError",
    "ResponseDecodeError",
    "ServerError",
    # Transport
    "HttpTransport",
    "KintoneHttpClient",
    # Models
    "AppID",
    "Comment",
    "CommentContent",
    "CommentCreator",
    "CommentID",
    "Mention",
    "MentionType",
    "Record",
    "RecordID",
    "Revision",
    # Record operations
    "RecordClient",
    "RecordCursor",
    "fetch_all_records",
]
