"""
Client exceptions and user-facing error descriptions.
"""

from typing import Any, Dict, List, Optional

import httpx

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
VALIDATION_FALLBACK_MESSAGE = "Invalid data submitted. Please check your input."


class ChatClientError(Exception):
    """Base class for every error raised by the client."""


class TransportError(ChatClientError):
    """The request never produced a response (connect, read or timeout failure)."""


class ApiError(ChatClientError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, detail: Optional[str] = None, payload: Any = None):
        self.status_code = status_code
        self.detail = detail
        self.payload = payload
        super().__init__(detail or f"HTTP error! status: {status_code}")


class AuthenticationError(ApiError):
    """401 - the credential was rejected."""


class NotFoundError(ApiError):
    """404 - the resource does not exist."""


class RequestValidationError(ApiError):
    """422 - the server rejected the submitted fields."""

    def __init__(self, status_code: int, detail: Optional[str] = None, payload: Any = None,
                 field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(status_code, detail, payload)
        self.field_errors = field_errors or []


def _parse_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _detail_text(payload: Any) -> Optional[str]:
    """Flatten a `detail` value (string or list of {msg}) to a single line."""
    if not isinstance(payload, dict):
        return None
    detail = payload.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        messages = [str(item.get("msg")) for item in detail if isinstance(item, dict) and item.get("msg")]
        return ", ".join(messages) or None
    return None


def _field_errors(payload: Any) -> List[Dict[str, str]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("errors"), list):
        return []
    errors = []
    for item in payload["errors"]:
        if isinstance(item, dict) and item.get("message"):
            errors.append({"field": str(item.get("field") or "Error"), "message": str(item["message"])})
    return errors


def raise_for_response(response: httpx.Response) -> None:
    """
    Raise the matching ApiError subclass for a non-success response.

    The response body must already be read.

    Args:
        response: Completed httpx response

    Raises:
        ApiError: If the status code is 4xx or 5xx
    """
    if not response.is_error:
        return

    payload = _parse_payload(response)
    detail = _detail_text(payload)
    status_code = response.status_code

    if status_code == 401:
        raise AuthenticationError(status_code, detail, payload)
    if status_code == 404:
        raise NotFoundError(status_code, detail, payload)
    if status_code == 422:
        raise RequestValidationError(status_code, detail, payload, field_errors=_field_errors(payload))
    raise ApiError(status_code, detail, payload)


def describe_error(error: BaseException, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Build a human-readable message for an error raised by a client call.

    Structured field errors win over `detail`; anything unrecognized yields the fallback.
    """
    if isinstance(error, RequestValidationError):
        if error.field_errors:
            return "; ".join(f"{item['field']}: {item['message']}" for item in error.field_errors)
        return error.detail or VALIDATION_FALLBACK_MESSAGE
    if isinstance(error, ApiError):
        return error.detail or fallback
    if isinstance(error, TransportError):
        return f"Network error: {error}" if str(error) else fallback
    return fallback
