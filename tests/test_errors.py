"""
Unit tests for response-to-exception mapping and error descriptions.
"""

import httpx
import pytest

from chat_client.errors import (
    ApiError,
    AuthenticationError,
    GENERIC_ERROR_MESSAGE,
    NotFoundError,
    RequestValidationError,
    TransportError,
    describe_error,
    raise_for_response,
)


class TestRaiseForResponse:
    """Tests for raise_for_response."""

    def test_success_does_not_raise(self):
        raise_for_response(httpx.Response(200, json={}))

    @pytest.mark.parametrize("status_code,error_type", [
        (401, AuthenticationError),
        (404, NotFoundError),
        (422, RequestValidationError),
        (500, ApiError),
    ])
    def test_status_mapping(self, status_code, error_type):
        with pytest.raises(error_type) as exc_info:
            raise_for_response(httpx.Response(status_code, json={"detail": "nope"}))
        assert exc_info.value.status_code == status_code
        assert exc_info.value.detail == "nope"

    def test_non_json_body(self):
        with pytest.raises(ApiError) as exc_info:
            raise_for_response(httpx.Response(502, text="<html>Bad gateway</html>"))
        assert exc_info.value.detail is None
        assert str(exc_info.value) == "HTTP error! status: 502"


class TestDescribeError:
    """Tests for describe_error."""

    def test_structured_field_errors(self):
        response = httpx.Response(422, json={
            "detail": "Validation error",
            "errors": [
                {"field": "email", "message": "invalid email"},
                {"field": "password", "message": "too short"},
            ],
        })
        with pytest.raises(RequestValidationError) as exc_info:
            raise_for_response(response)
        assert describe_error(exc_info.value) == "email: invalid email; password: too short"

    def test_detail_list_joined(self):
        response = httpx.Response(422, json={"detail": [{"msg": "field required"}, {"msg": "bad value"}]})
        with pytest.raises(RequestValidationError) as exc_info:
            raise_for_response(response)
        assert describe_error(exc_info.value) == "field required, bad value"

    def test_validation_without_details_uses_fallback(self):
        with pytest.raises(RequestValidationError) as exc_info:
            raise_for_response(httpx.Response(422, json={}))
        assert describe_error(exc_info.value) == "Invalid data submitted. Please check your input."

    def test_string_detail(self):
        assert describe_error(ApiError(400, "Email already registered")) == "Email already registered"

    def test_transport_error(self):
        assert describe_error(TransportError("connection refused")) == "Network error: connection refused"

    def test_unknown_error(self):
        assert describe_error(RuntimeError("boom")) == GENERIC_ERROR_MESSAGE
