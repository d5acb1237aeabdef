"""Data models for package specs and installed state."""

from dataclasses import dataclass, field

from railtube.core.errors import UnsupportedCapability


@dataclass
class PackageSpec:
    """A package requested by the manifest.

    Attributes:
        raw: The spec exactly as written in the manifest
        name: Identifier used for lookups
        version: Desired version, if pinned
        flags: Extra install flags (Snap only)
    """

    raw: str
    name: str
    version: str | None = None
    flags: list[str] = field(default_factory=list)

    @staticmethod
    def from_pinned(spec_str: str) -> "PackageSpec":
        """Parse a spec in 'name' or 'name=version' form.

        Args:
            spec_str: Spec string

        Returns:
            PackageSpec instance
        """
        name, sep, version = spec_str.partition("=")
        return PackageSpec(raw=spec_str, name=name, version=version if sep else None)

    @staticmethod
    def from_flagged(spec_str: str) -> "PackageSpec":
        """Parse a spec in 'name --flag ...' form (e.g., 'code --classic').

        Args:
            spec_str: Spec string

        Returns:
            PackageSpec instance
        """
        parts = spec_str.split()
        if not parts:
            return PackageSpec(raw=spec_str, name=spec_str)
        return PackageSpec(raw=spec_str, name=parts[0], flags=parts[1:])


@dataclass
class InstalledState:
    """What a backend reports as currently installed.

    Versioned backends carry a name to version mapping; presence-only
    backends carry names only.

    Attributes:
        versioned: Whether the backend can report versions
        versions: Name to version mapping (versioned backends)
        names: Installed names (presence-only backends)
    """

    versioned: bool
    versions: dict[str, str] = field(default_factory=dict)
    names: set[str] = field(default_factory=set)

    @classmethod
    def from_versions(cls, versions: dict[str, str]) -> "InstalledState":
        return cls(versioned=True, versions=dict(versions))

    @classmethod
    def from_names(cls, names: list[str] | set[str]) -> "InstalledState":
        return cls(versioned=False, names=set(names))

    def installed_names(self) -> set[str]:
        """All installed package names."""
        return set(self.versions) if self.versioned else set(self.names)

    def contains(self, name: str) -> bool:
        return name in self.installed_names()

    def version_of(self, name: str) -> str | None:
        """Get the installed version of a package.

        Args:
            name: Package name

        Returns:
            Installed version, or None if the package is absent

        Raises:
            UnsupportedCapability: If the backend has no version information
        """
        if not self.versioned:
            raise UnsupportedCapability("Backend does not report package versions")
        return self.versions.get(name)
