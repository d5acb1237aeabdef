"""Unit tests for the HTTP helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from tenacity import wait_none

from railtube.core.errors import FetchError
from railtube.system.fetch import FETCH_ATTEMPTS, _check_status, _with_session, is_remote

URL = "https://example.com/env.toml"


class TestIsRemote:
    """Tests for is_remote function."""

    def test_urls(self) -> None:
        assert is_remote("https://example.com/env.toml")
        assert is_remote("http://example.com/env.toml")

    def test_local_path(self) -> None:
        assert not is_remote("configs/env.toml")


class TestCheckStatus:
    """Tests for _check_status function."""

    def test_error_status(self) -> None:
        with pytest.raises(FetchError) as exc_info:
            _check_status(URL, MagicMock(status=404))
        assert exc_info.value.status == 404
        assert str(exc_info.value) == f"Failed to fetch {URL}: HTTP 404"

    def test_success_status(self) -> None:
        _check_status(URL, MagicMock(status=204))


class TestWithSession:
    """Tests for _with_session function."""

    @pytest.mark.asyncio
    async def test_returns_request_result(self) -> None:
        func = AsyncMock(return_value="body")

        assert await _with_session(URL, func) == "body"
        func.assert_awaited_once()
        assert isinstance(func.call_args.args[0], aiohttp.ClientSession)

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self) -> None:
        func = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with patch("railtube.system.fetch.wait_exponential", return_value=wait_none()):
            with pytest.raises(FetchError, match="refused"):
                await _with_session(URL, func)

        assert func.await_count == FETCH_ATTEMPTS

    @pytest.mark.asyncio
    async def test_other_client_errors_fail_immediately(self) -> None:
        func = AsyncMock(side_effect=aiohttp.ClientPayloadError("truncated"))

        with pytest.raises(FetchError) as exc_info:
            await _with_session(URL, func)

        assert exc_info.value.status is None
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_http_status_is_not_retried(self) -> None:
        func = AsyncMock(side_effect=FetchError(URL, "HTTP 500", status=500))

        with pytest.raises(FetchError) as exc_info:
            await _with_session(URL, func)

        assert exc_info.value.status == 500
        func.assert_awaited_once()
