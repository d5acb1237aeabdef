"""Error types raised by railtube."""


class RailtubeError(Exception):
    """Base class for all railtube errors."""


class ManifestParseError(RailtubeError):
    """Raised when a manifest cannot be parsed or validated."""


class FetchError(RailtubeError):
    """Raised when a remote resource cannot be fetched.

    Attributes:
        url: The URL that failed
        status: HTTP status code, or None for network-level failures
    """

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class UnknownScriptError(RailtubeError):
    """Raised when a named script is not defined in the manifest."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Script '{name}' not found in [scripts] section")


class UnsupportedCapability(RailtubeError):
    """Raised when a backend is asked for something it cannot report."""
