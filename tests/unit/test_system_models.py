"""Unit tests for package spec and installed state models."""

import pytest

from railtube.core.errors import UnsupportedCapability
from railtube.system.models import InstalledState, PackageSpec


class TestPackageSpecPinned:
    """Tests for PackageSpec.from_pinned."""

    def test_name_only(self) -> None:
        spec = PackageSpec.from_pinned("git")
        assert spec.name == "git"
        assert spec.version is None
        assert spec.raw == "git"

    def test_name_and_version(self) -> None:
        spec = PackageSpec.from_pinned("ripgrep=14.1.0")
        assert spec.name == "ripgrep"
        assert spec.version == "14.1.0"
        assert spec.raw == "ripgrep=14.1.0"

    def test_version_with_equals_is_kept_whole(self) -> None:
        """Test that only the first '=' separates name and version."""
        spec = PackageSpec.from_pinned("pkg=1:2.0=x")
        assert spec.name == "pkg"
        assert spec.version == "1:2.0=x"

    def test_empty_version(self) -> None:
        """Test that a trailing '=' pins an empty version."""
        spec = PackageSpec.from_pinned("pkg=")
        assert spec.version == ""


class TestPackageSpecFlagged:
    """Tests for PackageSpec.from_flagged."""

    def test_name_only(self) -> None:
        spec = PackageSpec.from_flagged("jq")
        assert spec.name == "jq"
        assert spec.flags == []

    def test_name_with_flags(self) -> None:
        spec = PackageSpec.from_flagged("code --classic")
        assert spec.name == "code"
        assert spec.flags == ["--classic"]
        assert spec.version is None

    def test_multiple_flags_and_whitespace(self) -> None:
        spec = PackageSpec.from_flagged("  lxd   --channel=5.21/stable --classic ")
        assert spec.name == "lxd"
        assert spec.flags == ["--channel=5.21/stable", "--classic"]


class TestInstalledState:
    """Tests for InstalledState."""

    def test_versioned_state(self) -> None:
        state = InstalledState.from_versions({"git": "1:2.43.0", "curl": "8.5.0"})
        assert state.versioned is True
        assert state.installed_names() == {"git", "curl"}
        assert state.contains("git")
        assert state.version_of("git") == "1:2.43.0"

    def test_versioned_state_absent_package(self) -> None:
        """Test that an absent package has no version."""
        state = InstalledState.from_versions({"git": "1"})
        assert state.version_of("curl") is None

    def test_presence_state(self) -> None:
        state = InstalledState.from_names(["jq", "yq"])
        assert state.versioned is False
        assert state.installed_names() == {"jq", "yq"}
        assert state.contains("jq")
        assert not state.contains("lxd")

    def test_presence_state_has_no_versions(self) -> None:
        """Test that unsupported and absent are distinguishable."""
        state = InstalledState.from_names(["jq"])
        with pytest.raises(UnsupportedCapability):
            state.version_of("jq")
