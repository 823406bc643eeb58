"""Tests for status classification and the response formatting bridge."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from routerkit.client.response import (
    classify_status,
    extract_response_data,
    format_api_response,
    raise_for_status,
)
from routerkit.exceptions import InvalidResponseError, InvalidResponseKind
from routerkit.exit_codes import EXIT_AUTH_FAILURE, EXIT_NOT_FOUND, EXIT_SERVER_ERROR
from routerkit.output import OutputManager, set_output


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(
    status_code: int = 200,
    content: bytes | None = None,
    json_data: object | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build an httpx.Response bound to a dummy request."""
    request = httpx.Request("GET", "https://api.example.com/test")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, headers=headers, request=request)
    return httpx.Response(status_code, content=content or b"", headers=headers, request=request)


# ---------------------------------------------------------------------------
# classify_status
# ---------------------------------------------------------------------------


class TestClassifyStatus:
    @pytest.mark.parametrize("status", [200, 201, 204, 301, 304, 399])
    def test_success(self, status):
        assert classify_status(status) is None

    @pytest.mark.parametrize(
        "status, kind",
        [
            (400, InvalidResponseKind.BAD_REQUEST),
            (401, InvalidResponseKind.UNAUTHORIZED),
            (403, InvalidResponseKind.ACCESS_DENIED),
            (404, InvalidResponseKind.NOT_FOUND),
            (409, InvalidResponseKind.INTERNAL_ERROR),
            (422, InvalidResponseKind.INTERNAL_ERROR),
            (499, InvalidResponseKind.INTERNAL_ERROR),
        ],
    )
    def test_client_errors(self, status, kind):
        assert classify_status(status) is kind

    @pytest.mark.parametrize("status", [100, 199, 500, 502, 503, 599])
    def test_out_of_range_is_invalid_response_code(self, status):
        assert classify_status(status) is InvalidResponseKind.INVALID_RESPONSE_CODE


# ---------------------------------------------------------------------------
# raise_for_status
# ---------------------------------------------------------------------------


class TestRaiseForStatus:
    def test_success_does_not_raise(self):
        raise_for_status(_make_response(200, json_data={"ok": True}))

    def test_message_from_json_body(self):
        response = _make_response(400, content=b'{"message": "name is required"}')
        with pytest.raises(InvalidResponseError) as exc_info:
            raise_for_status(response)
        err = exc_info.value
        assert str(err) == "HTTP 400: name is required"
        assert err.kind is InvalidResponseKind.BAD_REQUEST
        assert err.status_code == 400
        assert err.body == b'{"message": "name is required"}'

    def test_message_from_text_body(self):
        response = _make_response(502, content=b"Bad Gateway")
        with pytest.raises(InvalidResponseError) as exc_info:
            raise_for_status(response)
        assert str(exc_info.value) == "HTTP 502: Bad Gateway"
        assert exc_info.value.is_transient

    def test_empty_body(self):
        with pytest.raises(InvalidResponseError) as exc_info:
            raise_for_status(_make_response(404))
        assert str(exc_info.value) == "HTTP 404"

    @pytest.mark.parametrize(
        "status, exit_code",
        [
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (400, EXIT_SERVER_ERROR),
            (500, EXIT_SERVER_ERROR),
        ],
    )
    def test_exit_code_follows_kind(self, status, exit_code):
        with pytest.raises(InvalidResponseError) as exc_info:
            raise_for_status(_make_response(status))
        assert exc_info.value.exit_code == exit_code

    def test_unauthorized_flag(self):
        with pytest.raises(InvalidResponseError) as exc_info:
            raise_for_status(_make_response(401))
        assert exc_info.value.is_unauthorized
        assert not exc_info.value.is_transient


# ---------------------------------------------------------------------------
# format_api_response
# ---------------------------------------------------------------------------


class TestFormatApiResponse:
    def test_json_response_formatting(self) -> None:
        """JSON body is passed to output.format_response."""
        mock_output = MagicMock(spec=OutputManager)
        set_output(mock_output)

        response = _make_response(200, json_data={"users": [{"id": 1, "name": "Alice"}]})
        format_api_response(response)

        status_call = mock_output.info.call_args_list[0]
        assert "200" in status_call.args[0]
        mock_output.format_response.assert_called_once_with(
            {"users": [{"id": 1, "name": "Alice"}]}
        )

    def test_plain_text_response_formatting(self) -> None:
        mock_output = MagicMock(spec=OutputManager)
        set_output(mock_output)

        format_api_response(_make_response(200, content=b"Hello, plain text"))
        mock_output.format_response.assert_called_once_with("Hello, plain text")

    def test_empty_response_body(self) -> None:
        """Empty body prints the status line only."""
        mock_output = MagicMock(spec=OutputManager)
        set_output(mock_output)

        format_api_response(_make_response(204))

        mock_output.info.assert_called()
        mock_output.format_response.assert_not_called()


class TestExtractResponseData:
    def test_json_parse(self) -> None:
        response = _make_response(200, json_data={"key": "value", "nested": {"a": 1}})
        assert extract_response_data(response) == {"key": "value", "nested": {"a": 1}}

    def test_json_list_parse(self) -> None:
        assert extract_response_data(_make_response(200, json_data=[1, 2, 3])) == [1, 2, 3]

    def test_fallback_to_text(self) -> None:
        response = _make_response(200, content=b"This is not JSON")
        assert extract_response_data(response) == "This is not JSON"

    def test_empty_is_none(self) -> None:
        assert extract_response_data(_make_response(204)) is None
