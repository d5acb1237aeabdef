"""Manifest loading, parsing and serialization for railtube."""

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import tomli_w
import yaml
from pydantic import ValidationError

from railtube.config.models import ConfigOverrides, Manifest
from railtube.core.errors import ManifestParseError
from railtube.core.logging import get_logger
from railtube.system import fetch

logger = get_logger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


async def load_manifest(source: str) -> Manifest:
    """Load a manifest from a local path or an HTTP(S) URL.

    The format is chosen from the file extension: ``.yaml``/``.yml`` are
    parsed as YAML, everything else as TOML.

    Args:
        source: Local path or URL

    Returns:
        Parsed and validated manifest

    Raises:
        FileNotFoundError: If a local manifest doesn't exist
        FetchError: If a remote manifest cannot be fetched
        ManifestParseError: If the manifest is malformed
    """
    if fetch.is_remote(source):
        logger.info("Fetching remote manifest", url=source)
        text = await fetch.fetch_text(source)
        suffix = Path(urlparse(source).path).suffix
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Manifest file not found: {path}")
        logger.info("Loading manifest file", path=str(path))
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix

    return parse_manifest(text, fmt=_format_for(suffix))


def parse_manifest(text: str, fmt: str = "toml") -> Manifest:
    """Parse manifest text.

    Args:
        text: Document contents
        fmt: "toml" or "yaml"

    Returns:
        Validated manifest

    Raises:
        ManifestParseError: If the text is malformed or doesn't match the schema
    """
    data: Any
    if fmt == "yaml":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ManifestParseError(f"Invalid YAML in manifest: {e}") from e
        # Treat empty files as an empty manifest
        if data is None:
            data = {}
    else:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestParseError(f"Invalid TOML in manifest: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseError("Manifest must contain a mapping of sections")

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(f"Invalid manifest: {e}") from e


def dump_manifest(manifest: Manifest, fmt: str = "toml", header: str = "") -> str:
    """Serialize a manifest.

    Args:
        manifest: Manifest to serialize
        fmt: "toml" or "yaml"
        header: Comment lines to put at the top of the document

    Returns:
        Serialized document
    """
    data = manifest.model_dump(mode="json", by_alias=True, exclude_none=True)

    if fmt == "yaml":
        body = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    else:
        body = tomli_w.dumps(data)

    comment = "".join(f"# {line}\n" if line else "#\n" for line in header.splitlines())
    return comment + body


def write_manifest(manifest: Manifest, path: Path, header: str = "") -> None:
    """Write a manifest to disk, choosing the format from the extension.

    Args:
        manifest: Manifest to write
        path: Destination file
        header: Comment lines to put at the top of the document

    Raises:
        OSError: If the file cannot be written
    """
    contents = dump_manifest(manifest, fmt=_format_for(path.suffix), header=header)
    path.write_text(contents, encoding="utf-8")
    logger.debug("Wrote manifest", path=str(path))


def _format_for(suffix: str) -> str:
    return "yaml" if suffix.lower() in YAML_SUFFIXES else "toml"


def get_env_overrides() -> ConfigOverrides:
    """Get run overrides from environment variables.

    Environment variables are prefixed with RAILTUBE_ (e.g., RAILTUBE_ONLY=apt,snap).

    Returns:
        ConfigOverrides populated from environment variables
    """

    def get_bool(key: str) -> bool:
        val = os.getenv(f"RAILTUBE_{key.upper()}")
        return val is not None and val.lower() in ("1", "true", "yes")

    def get_str(key: str) -> str:
        return os.getenv(f"RAILTUBE_{key.upper()}", "")

    def get_list(key: str) -> list[str]:
        val = os.getenv(f"RAILTUBE_{key.upper()}", "")
        return [item.strip() for item in val.split(",") if item.strip()]

    return ConfigOverrides(
        yes=get_bool("yes"),
        only=get_list("only"),
        log_file=get_str("log_file"),
    )
