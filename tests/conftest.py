"""Shared pytest fixtures for scienceio tests."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from scienceio.config import ScienceIOConfig, load_config
from scienceio.models import Chunk


@pytest.fixture(autouse=True)
def clear_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached config and API URL override around each test."""
    monkeypatch.delenv("SCIENCEIO_API_URL", raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def fast_config() -> ScienceIOConfig:
    """Config with a tiny poll interval so poll loops finish quickly."""
    return ScienceIOConfig(
        api_url="https://api.test/v2",
        poll_interval_seconds=0.001,
        max_poll_duration_seconds=5.0,
        timeout_seconds=10.0,
    )


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Factory fixture building mocked httpx responses.

    Usage:
        response = make_response(200, {"request_id": "abc"})
    """

    def _make(status_code: int, body: Any = None) -> MagicMock:
        return MagicMock(status_code=status_code, json=lambda: body, text=str(body))

    return _make


@pytest.fixture
def poll_body() -> Callable[..., dict[str, Any]]:
    """Factory fixture building poll endpoint payloads."""

    def _body(
        status: str,
        request_id: str = "job-1",
        result: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"request_id": request_id, "inference_status": status}
        if result is not None:
            body["inference_result"] = result
        if message is not None:
            body["message"] = message
        return body

    return _body


@pytest.fixture
def chunk() -> Chunk:
    """A single chunk of clinical text."""
    return Chunk(index=0, text="ALS is often called Lou Gehrig's disease.", start=0)


@pytest.fixture
def mock_http() -> AsyncMock:
    """An AsyncMock standing in for an open httpx.AsyncClient."""
    return AsyncMock()
