"""Unit tests for exporting the installed state."""

import pytest

from railtube.config.loader import dump_manifest, parse_manifest
from railtube.core.doctor import run_doctor
from railtube.core.export import EXPORT_HEADER, export_manifest
from railtube.packages.factory import create_all_backends
from railtube.system.command import CommandError

APT_LISTING = r"dpkg-query -W -f=${Package} ${Version}\n"


def respond_all(system) -> None:
    system.respond(APT_LISTING, "git 1:2.43.0\ncurl 8.5.0\n")
    system.respond("snap list", "Name  Version  Rev\nlxd  5.21  1\ncore22  2024  2\n")
    system.respond("flatpak list --app --columns=application", "org.gimp.GIMP\n")
    system.respond(
        "cargo install --list",
        "ripgrep v14.1.0:\n    rg\nbat v0.24.0:\n    bat\n",
    )


class TestExportManifest:
    """Tests for export_manifest function."""

    @pytest.mark.asyncio
    async def test_sections_are_sorted_names(self, system) -> None:
        respond_all(system)

        manifest = await export_manifest(create_all_backends(system))

        assert manifest.apt.packages == ["curl", "git"]
        assert manifest.snap.packages == ["core22", "lxd"]
        assert manifest.flatpak.packages == ["org.gimp.GIMP"]
        assert manifest.cargo.packages == ["bat", "ripgrep"]
        assert manifest.system is None
        assert manifest.deb is None
        assert manifest.scripts is None

    @pytest.mark.asyncio
    async def test_listing_failure_is_fatal(self, system) -> None:
        respond_all(system)
        system.respond("cargo install --list", returncode=101)

        with pytest.raises(CommandError):
            await export_manifest(create_all_backends(system))

    @pytest.mark.asyncio
    async def test_export_then_doctor_is_clean(self, system) -> None:
        """Test that an exported manifest reports no drift on the same system."""
        respond_all(system)
        backends = create_all_backends(system)

        exported = await export_manifest(backends)
        text = dump_manifest(exported, header=EXPORT_HEADER)
        report = await run_doctor(parse_manifest(text), backends)

        assert len(report.backends) == 4
        assert report.clean
        assert system.runs == []

    @pytest.mark.asyncio
    async def test_header_is_a_comment(self, system) -> None:
        respond_all(system)

        exported = await export_manifest(create_all_backends(system))
        text = dump_manifest(exported, header=EXPORT_HEADER)

        assert text.startswith("# Exported by railtube.\n")
        assert "# NOTE: the system, deb and scripts sections are not exported." in text
