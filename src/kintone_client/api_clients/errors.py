"""Error types raised by the kintone HTTP transport.

Every failure surfaced by the transport derives from APIClientError so callers
can catch the whole family, while the subclasses keep connectivity problems,
timeouts, server rejections and undecodable bodies distinguishable.
"""

from typing import Any, Dict, Optional


class APIClientError(Exception):
    """Base exception for API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class KintoneAPIError(APIClientError):
    """Exception raised when the server answers with a non-2xx status.

    The server reports failures as a JSON body of the form
    ``{"code": ..., "id": ..., "message": ..., "errors": {...}}``. The fields
    are exposed as attributes when present.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        error_id: Optional[str] = None,
        errors: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code)
        self.code = code
        self.error_id = error_id
        self.errors = errors or {}

    @classmethod
    def from_response_body(
        cls, status_code: int, body: Any, fallback_text: str = ""
    ) -> "KintoneAPIError":
        """Build an error from a decoded error body.

        Args:
            status_code: HTTP status code of the response
            body: Decoded JSON body, or None if the body was not JSON
            fallback_text: Raw response text used when no message is available

        Returns:
            KintoneAPIError (ServerError for 5xx statuses)
        """
        error_cls = ServerError if status_code >= 500 else KintoneAPIError

        if not isinstance(body, dict):
            detail = fallback_text or f"HTTP {status_code}"
            return error_cls(f"HTTP {status_code}: {detail}", status_code)

        message = body.get("message") or fallback_text or f"HTTP {status_code}"
        code = body.get("code")
        prefix = f"[{status_code}] [{code}]" if code else f"[{status_code}]"
        return error_cls(
            f"{prefix} {message}",
            status_code,
            code=code,
            error_id=body.get("id"),
            errors=body.get("errors"),
        )


class ServerError(KintoneAPIError):
    """Exception raised for server-side errors (5xx responses)."""

    pass


class NetworkError(APIClientError):
    """Exception raised when network operations fail."""

    pass


class RequestTimeoutError(NetworkError):
    """Exception raised when a request times out."""

    pass


class ResponseDecodeError(APIClientError):
    """Exception raised when a successful response body is not valid JSON."""

    pass
