"""Unit tests for package backends."""

from pathlib import Path

import pytest

from railtube.config.models import ExecutionMode
from railtube.core.errors import UnsupportedCapability
from railtube.packages.apt_handler import AptHandler, parse_dpkg_listing
from railtube.packages.base import ExecutionStrategy
from railtube.packages.cargo_handler import CargoHandler, parse_cargo_listing
from railtube.packages.deb_handler import DebHandler, archive_name
from railtube.packages.flatpak_handler import FlatpakHandler
from railtube.packages.snap_handler import SnapHandler, parse_snap_listing
from railtube.packages.system_handler import SystemHandler
from railtube.system.command import CommandError
from railtube.system.models import PackageSpec

APT_LISTING = r"dpkg-query -W -f=${Package} ${Version}\n"


class TestExecutionStrategy:
    """Tests for ExecutionStrategy."""

    def test_parallel_only_when_unattended(self) -> None:
        strategy = ExecutionStrategy.PARALLEL_WHEN_UNATTENDED
        assert strategy.is_parallel(ExecutionMode.UNATTENDED)
        assert not strategy.is_parallel(ExecutionMode.INTERACTIVE)
        assert not strategy.is_parallel(ExecutionMode.DRY_RUN)

    def test_sequential_never_parallel(self) -> None:
        for mode in ExecutionMode:
            assert not ExecutionStrategy.SEQUENTIAL.is_parallel(mode)

    def test_backend_strategies(self, system) -> None:
        assert AptHandler(system).strategy is ExecutionStrategy.SEQUENTIAL
        assert DebHandler(system).strategy is ExecutionStrategy.SEQUENTIAL
        assert SnapHandler(system).strategy is ExecutionStrategy.PARALLEL_WHEN_UNATTENDED
        assert FlatpakHandler(system).strategy is ExecutionStrategy.PARALLEL_WHEN_UNATTENDED
        assert CargoHandler(system).strategy is ExecutionStrategy.PARALLEL_WHEN_UNATTENDED


class TestAptHandler:
    """Tests for AptHandler."""

    def test_parse_dpkg_listing(self) -> None:
        output = "git 1:2.43.0-1ubuntu7\nlibc6 2.39-0ubuntu8\n\nbroken-line\n"
        assert parse_dpkg_listing(output) == {
            "git": "1:2.43.0-1ubuntu7",
            "libc6": "2.39-0ubuntu8",
        }

    @pytest.mark.asyncio
    async def test_list_installed(self, system) -> None:
        system.respond(APT_LISTING, "git 1:2.43.0\n")

        state = await AptHandler(system).list_installed()

        assert state.versioned
        assert state.version_of("git") == "1:2.43.0"

    @pytest.mark.asyncio
    async def test_list_installed_failure(self, system) -> None:
        with pytest.raises(CommandError):
            await AptHandler(system).list_installed()

    @pytest.mark.asyncio
    async def test_installed_version(self, system) -> None:
        system.respond("dpkg-query -W -f=${Version} git", "1:2.43.0")
        handler = AptHandler(system)

        assert await handler.installed_version("git") == "1:2.43.0"
        assert await handler.installed_version("htop") is None
        assert await handler.is_installed("git")

    def test_install_command_keeps_pin(self, system) -> None:
        handler = AptHandler(system)
        cmd = handler.install_command(handler.parse_spec("curl=7.81.0-1"))
        assert cmd.argv == ["sudo", "apt", "install", "-y", "curl=7.81.0-1"]

    @pytest.mark.asyncio
    async def test_install_dry_run(self, system) -> None:
        handler = AptHandler(system)

        outcome = await handler.install(handler.parse_spec("git"), dry_run=True)

        assert outcome.command == "sudo apt install -y git"
        assert system.runs == []

    @pytest.mark.asyncio
    async def test_install_failure(self, system) -> None:
        system.fail_on("git")
        handler = AptHandler(system)

        with pytest.raises(CommandError):
            await handler.install(handler.parse_spec("git"), dry_run=False)


class TestSnapHandler:
    """Tests for SnapHandler."""

    def test_parse_snap_listing(self) -> None:
        output = (
            "Name    Version   Rev    Tracking       Publisher   Notes\n"
            "core22  20240111  1122   latest/stable  canonical✓  base\n"
            "lxd     5.21.1    28463  5.21/stable    canonical✓  -\n"
        )
        assert parse_snap_listing(output) == ["core22", "lxd"]

    def test_parse_empty_listing(self) -> None:
        assert parse_snap_listing("") == []

    def test_spec_flags(self, system) -> None:
        spec = SnapHandler(system).parse_spec("code --classic")
        assert spec.name == "code"
        assert spec.flags == ["--classic"]

    @pytest.mark.asyncio
    async def test_is_installed_probes_by_name(self, system) -> None:
        system.respond("snap list jq", "Name Version\njq 1.5\n")
        handler = SnapHandler(system)

        assert await handler.is_installed("jq")
        assert not await handler.is_installed("lxd")
        assert system.probes == ["snap list jq", "snap list lxd"]

    @pytest.mark.asyncio
    async def test_is_installed_when_snap_missing(self, system) -> None:
        """Test that a probe that cannot run reports not installed."""
        system.respond("snap list jq", returncode=None)

        assert not await SnapHandler(system).is_installed("jq")

    @pytest.mark.asyncio
    async def test_no_version_support(self, system) -> None:
        with pytest.raises(UnsupportedCapability):
            await SnapHandler(system).installed_version("jq")

    def test_install_command_with_flags(self, system) -> None:
        handler = SnapHandler(system)
        cmd = handler.install_command(handler.parse_spec("lxd --channel=5.21/stable"))
        assert cmd.argv == ["sudo", "snap", "install", "lxd", "--channel=5.21/stable"]


class TestFlatpakHandler:
    """Tests for FlatpakHandler."""

    @pytest.mark.asyncio
    async def test_list_installed(self, system) -> None:
        system.respond(
            "flatpak list --app --columns=application",
            "org.gimp.GIMP\norg.mozilla.firefox\n\n",
        )

        state = await FlatpakHandler(system).list_installed()

        assert state.installed_names() == {"org.gimp.GIMP", "org.mozilla.firefox"}
        assert not state.versioned

    @pytest.mark.asyncio
    async def test_is_installed(self, system) -> None:
        system.respond("flatpak info org.gimp.GIMP")
        handler = FlatpakHandler(system)

        assert await handler.is_installed("org.gimp.GIMP")
        assert not await handler.is_installed("org.inkscape.Inkscape")

    @pytest.mark.asyncio
    async def test_no_version_support(self, system) -> None:
        with pytest.raises(UnsupportedCapability):
            await FlatpakHandler(system).installed_version("org.gimp.GIMP")

    def test_install_command(self, system) -> None:
        handler = FlatpakHandler(system)
        cmd = handler.install_command(handler.parse_spec("org.gimp.GIMP"))
        assert cmd.argv == ["flatpak", "install", "-y", "org.gimp.GIMP"]


class TestCargoHandler:
    """Tests for CargoHandler."""

    def test_parse_cargo_listing(self) -> None:
        output = (
            "bat v0.24.0:\n"
            "    bat\n"
            "ripgrep v14.1.0:\n"
            "    rg\n"
            "local-tool v0.1.0 (/home/me/src/local-tool):\n"
            "    local-tool\n"
        )
        assert parse_cargo_listing(output) == {
            "bat": "0.24.0",
            "ripgrep": "14.1.0",
            "local-tool": "0.1.0",
        }

    @pytest.mark.asyncio
    async def test_installed_version(self, system) -> None:
        system.respond("cargo install --list", "ripgrep v14.1.0:\n    rg\n")
        handler = CargoHandler(system)

        assert await handler.installed_version("ripgrep") == "14.1.0"
        assert await handler.installed_version("bat") is None

    @pytest.mark.asyncio
    async def test_is_installed_when_cargo_fails(self, system) -> None:
        assert not await CargoHandler(system).is_installed("ripgrep")

    def test_install_command_unpinned(self, system) -> None:
        handler = CargoHandler(system)
        cmd = handler.install_command(handler.parse_spec("ripgrep"))
        assert cmd.argv == ["cargo", "install", "--locked", "--force", "ripgrep"]

    def test_install_command_pinned(self, system) -> None:
        handler = CargoHandler(system)
        cmd = handler.install_command(handler.parse_spec("bat=0.24.0"))
        assert cmd.argv == [
            "cargo", "install", "--locked", "--force", "bat", "--version", "0.24.0"
        ]


class TestDebHandler:
    """Tests for DebHandler."""

    def test_archive_name(self) -> None:
        assert archive_name("https://example.com/pool/tool_1.0_amd64.deb") == "tool_1.0_amd64.deb"
        assert archive_name("https://example.com/dl/tool.deb?token=x") == "tool.deb"

    def test_archive_name_fallback(self) -> None:
        assert archive_name("https://example.com/") == "package.deb"
        assert archive_name("https://example.com") == "package.deb"

    def test_scratch_dir_is_removed(self, system) -> None:
        handler = DebHandler(system)
        with handler.scratch_dir() as scratch:
            assert scratch.is_dir()
            (scratch / "tool.deb").write_bytes(b"data")
        assert not scratch.exists()

    def test_scratch_dir_is_removed_on_error(self, system) -> None:
        handler = DebHandler(system)
        with pytest.raises(RuntimeError):
            with handler.scratch_dir() as scratch:
                raise RuntimeError("boom")
        assert not scratch.exists()

    def test_install_commands(self, system) -> None:
        cmds = DebHandler(system).install_commands(Path("/tmp/x/tool.deb"))
        assert [cmd.argv for cmd in cmds] == [
            ["sudo", "dpkg", "-i", "/tmp/x/tool.deb"],
            ["sudo", "apt", "--fix-broken", "install", "-y"],
        ]

    @pytest.mark.asyncio
    async def test_install_stops_when_dpkg_fails(self, system) -> None:
        system.fail_on("dpkg -i")

        with pytest.raises(CommandError):
            await DebHandler(system).install(Path("/tmp/x/tool.deb"), dry_run=False)

        assert system.runs == ["sudo dpkg -i /tmp/x/tool.deb"]

    @pytest.mark.asyncio
    async def test_fetch(self, system, tmp_path: Path) -> None:
        archive = await DebHandler(system).fetch("https://example.com/tool.deb", tmp_path)

        assert archive == tmp_path / "tool.deb"
        assert archive.exists()


class TestSystemHandler:
    """Tests for SystemHandler."""

    @pytest.mark.asyncio
    async def test_update(self, system) -> None:
        await SystemHandler(system).update(dry_run=False)
        assert system.runs == ["sudo apt update"]

    @pytest.mark.asyncio
    async def test_update_dry_run(self, system) -> None:
        outcome = await SystemHandler(system).update(dry_run=True)
        assert outcome.command == "sudo apt update"
        assert system.runs == []


class TestPackageSpecParsing:
    """Tests for how each backend reads its manifest entries."""

    def test_flatpak_id_verbatim(self, system) -> None:
        assert FlatpakHandler(system).parse_spec("org.gimp.GIMP") == PackageSpec(
            raw="org.gimp.GIMP", name="org.gimp.GIMP"
        )

    def test_cargo_pin(self, system) -> None:
        spec = CargoHandler(system).parse_spec("bat=0.24.0")
        assert (spec.name, spec.version) == ("bat", "0.24.0")
