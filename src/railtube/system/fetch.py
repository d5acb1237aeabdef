"""HTTP helpers for remote manifests and .deb archives."""

from collections.abc import Awaitable, Callable
from pathlib import Path

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from railtube.core.errors import FetchError
from railtube.core.logging import get_logger

logger = get_logger(__name__)

FETCH_ATTEMPTS = 3
CHUNK_SIZE = 64 * 1024


def is_remote(source: str) -> bool:
    """Check whether a source refers to a network location.

    Args:
        source: Local path or URL

    Returns:
        True for http:// and https:// sources
    """
    return source.startswith(("http://", "https://"))


async def fetch_text(url: str) -> str:
    """Download a text document.

    Args:
        url: HTTP(S) URL to fetch

    Returns:
        Response body decoded as text

    Raises:
        FetchError: On a non-2xx status or network failure
    """

    async def _attempt(session: aiohttp.ClientSession) -> str:
        async with session.get(url) as response:
            _check_status(url, response)
            return await response.text()

    return await _with_session(url, _attempt)


async def download(url: str, dest: Path) -> Path:
    """Stream a remote file to disk.

    Args:
        url: HTTP(S) URL to download
        dest: Destination file path

    Returns:
        The destination path

    Raises:
        FetchError: On a non-2xx status or network failure
        OSError: If the file cannot be written
    """

    async def _attempt(session: aiohttp.ClientSession) -> Path:
        async with session.get(url) as response:
            _check_status(url, response)
            with dest.open("wb") as f:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    f.write(chunk)
        return dest

    return await _with_session(url, _attempt)


def _check_status(url: str, response: aiohttp.ClientResponse) -> None:
    if not 200 <= response.status < 300:
        raise FetchError(url, f"HTTP {response.status}", status=response.status)


async def _with_session[T](
    url: str, func: Callable[[aiohttp.ClientSession], Awaitable[T]]
) -> T:
    """Run a request function with connection-error retries.

    Only connection-level failures are retried; HTTP error statuses are
    returned by the server and fail immediately.
    """
    timeout = aiohttp.ClientTimeout(total=300)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async for attempt in AsyncRetrying(
                wait=wait_exponential(multiplier=1, min=1, max=10),
                stop=stop_after_attempt(FETCH_ATTEMPTS),
                retry=retry_if_exception_type(aiohttp.ClientConnectionError),
                reraise=True,
            ):
                with attempt:
                    logger.debug("Fetching", url=url, attempt=attempt.retry_state.attempt_number)
                    return await func(session)
    except RetryError as e:
        raise FetchError(url, str(e.last_attempt.exception())) from e
    except (aiohttp.ClientError, TimeoutError) as e:
        raise FetchError(url, str(e) or type(e).__name__) from e

    raise RuntimeError("Unexpected retry error")
