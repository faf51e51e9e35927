"""Tests for rate-limit detection and response error classification."""

import pytest

from core.errors.classifiers import (
    MAX_BODY_CHARS,
    body_as_text,
    error_from_response,
    is_rate_limit_response,
    truncate_body,
)
from core.errors.exceptions import RateLimitedError, RemoteApiError, UnauthorizedError
from core.types import ErrorCategory

URL = "https://api.example.com/inventory/v1/items"


class TestBodyAsText:
    def test_bytes(self):
        assert body_as_text(b'{"code": 1}') == '{"code": 1}'

    def test_str(self):
        assert body_as_text("plain") == "plain"

    def test_decoded_json(self):
        assert body_as_text({"message": "hi"}) == '{"message": "hi"}'

    def test_none(self):
        assert body_as_text(None) == ""


class TestTruncateBody:
    def test_short_unchanged(self):
        assert truncate_body("abc") == "abc"

    def test_long_truncated(self):
        text = truncate_body("x" * (MAX_BODY_CHARS + 10))
        assert text == "x" * MAX_BODY_CHARS + "..."


class TestIsRateLimitResponse:
    def test_429_always(self):
        assert is_rate_limit_response(429)
        assert is_rate_limit_response(429, b"anything")

    @pytest.mark.parametrize(
        "body",
        [
            b'{"code":45,"message":"You have made too many requests continuously."}',
            "Too Many Requests",
            {"message": "You have MADE TOO MANY REQUESTS"},
        ],
    )
    def test_400_with_rate_limit_phrase(self, body):
        assert is_rate_limit_response(400, body)

    def test_400_without_phrase(self):
        assert not is_rate_limit_response(400, b'{"message":"Invalid value passed for rate"}')

    def test_other_status_with_phrase(self):
        assert not is_rate_limit_response(500, b"too many requests")

    def test_401_is_not_rate_limit(self):
        assert not is_rate_limit_response(401, b"too many requests")


class TestErrorFromResponse:
    def test_401_unauthorized(self):
        error = error_from_response(401, b'{"code":57}', URL, "GET")

        assert isinstance(error, UnauthorizedError)
        assert error.status_code == 401
        assert error.category == ErrorCategory.AUTH
        assert str(error) == f"Unauthorized (401): GET {URL}"

    def test_429_rate_limited(self):
        error = error_from_response(429, b"", URL, "POST")

        assert isinstance(error, RateLimitedError)
        assert error.status_code == 429
        assert error.context == {"url": URL, "method": "POST"}

    def test_400_rate_limited_by_body(self):
        error = error_from_response(400, b"You have made too many requests", URL)

        assert isinstance(error, RateLimitedError)
        assert error.status_code == 400

    def test_plain_400(self):
        error = error_from_response(400, b"bad rate", URL, "PUT")

        assert isinstance(error, RemoteApiError)
        assert error.category == ErrorCategory.PERMANENT
        assert str(error) == f"Bad request (400): PUT {URL}"
        assert error.response_body == "bad rate"

    def test_404(self):
        error = error_from_response(404, b"", URL)
        assert isinstance(error, RemoteApiError)
        assert "Not found (404)" in str(error)

    def test_other_4xx(self):
        error = error_from_response(409, b"", URL)
        assert "Client error (409)" in str(error)
        assert error.category == ErrorCategory.PERMANENT

    def test_5xx_transient(self):
        error = error_from_response(503, b"", URL)
        assert isinstance(error, RemoteApiError)
        assert error.category == ErrorCategory.TRANSIENT
        assert "HTTP error (503)" in str(error)

    def test_body_truncated(self):
        error = error_from_response(500, b"y" * 2000, URL)
        assert len(error.response_body) == MAX_BODY_CHARS + 3
