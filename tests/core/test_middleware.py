"""Tests for request context middleware."""

import pytest
from fastapi.testclient import TestClient

from edutrack.core.context import (
    clear_context,
    get_context,
    set_request_id,
    set_user_id,
    set_video_id,
)
from edutrack.core.middleware import trace_id_from_traceparent


class TestRequestId:
    def test_echoes_request_id(self, client: TestClient) -> None:
        response = client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_generates_request_id(self, client: TestClient) -> None:
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]

    def test_error_envelope_has_request_id(self, client: TestClient) -> None:
        response = client.get(
            "/v1/unknown", headers={"X-Request-ID": "req-456"}
        )

        assert response.status_code == 404
        assert response.json()["request_id"] == "req-456"


class TestTraceparent:
    @pytest.mark.parametrize(
        "header,expected",
        [
            (
                "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01",
                "4bf92f3577b34da6a3ce929d0e0e4736",
            ),
            ("garbage", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, header: str | None, expected: str | None) -> None:
        assert trace_id_from_traceparent(header) == expected


class TestContext:
    def test_only_set_values(self) -> None:
        clear_context()
        set_request_id("r-1")
        set_video_id(None)

        assert get_context() == {"request_id": "r-1"}
        clear_context()

    def test_clear(self) -> None:
        set_user_id("u-1")
        set_video_id("v-1")
        clear_context()

        assert get_context() == {}
