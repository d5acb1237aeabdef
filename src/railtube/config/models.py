"""Manifest and run option models for railtube using Pydantic."""

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)

# Sections the reconciliation engine processes, in execution order.
APPLY_SECTIONS = ("system", "apt", "snap", "flatpak", "cargo", "deb")

# Sections that hold a list of package specs.
PACKAGE_SECTIONS = ("apt", "snap", "flatpak", "cargo")


class ExecutionMode(str, Enum):
    """How mutating actions are carried out."""

    DRY_RUN = "dry-run"
    INTERACTIVE = "interactive"
    UNATTENDED = "unattended"


class SystemSection(BaseModel):
    """System-wide actions."""

    model_config = ConfigDict(extra="forbid")

    update: bool = False


class PackageSection(BaseModel):
    """Ordered list of package specs for one backend.

    Serialized under the manifest key ``list``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    packages: list[str] = Field(default_factory=list, alias="list")


class DebSection(BaseModel):
    """Ordered list of .deb archive URLs."""

    model_config = ConfigDict(extra="forbid")

    urls: list[str] = Field(default_factory=list)


class ScriptsSection(BaseModel):
    """Named shell commands.

    In the manifest the table is flat (``name = "command"``); the model
    keeps the mapping under ``commands``.
    """

    commands: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _wrap_flat_table(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (
            set(data) == {"commands"} and isinstance(data["commands"], dict)
        ):
            return {"commands": data}
        return data

    @model_serializer
    def _flatten(self) -> dict[str, str]:
        return dict(self.commands)


class Manifest(BaseModel):
    """The declared desired state of a host.

    Every section is optional; an absent section leaves that backend alone.
    """

    model_config = ConfigDict(extra="forbid")

    system: SystemSection | None = None
    apt: PackageSection | None = None
    snap: PackageSection | None = None
    flatpak: PackageSection | None = None
    cargo: PackageSection | None = None
    deb: DebSection | None = None
    scripts: ScriptsSection | None = None

    def package_section(self, name: str) -> PackageSection | None:
        """Get a package-list section by backend name.

        Args:
            name: One of PACKAGE_SECTIONS

        Returns:
            The section, or None if absent
        """
        if name not in PACKAGE_SECTIONS:
            raise ValueError(f"Unknown package section: {name}")
        return getattr(self, name)


class ConfigOverrides(BaseModel):
    """CLI flag and environment variable overrides for a run."""

    yes: bool = False
    only: list[str] = Field(default_factory=list)
    log_file: str = ""


class RunOptions(BaseModel):
    """Interaction mode and section selector for one invocation."""

    mode: ExecutionMode = ExecutionMode.INTERACTIVE
    only: frozenset[str] | None = None

    @field_validator("only", mode="before")
    @classmethod
    def _normalize_only(cls, value: Any) -> Any:
        if value is None:
            return None
        names = frozenset(str(item).strip().lower() for item in value if str(item).strip())
        if not names:
            return None
        unknown = names - set(APPLY_SECTIONS)
        if unknown:
            raise ValueError(
                f"Unknown section(s) {', '.join(sorted(unknown))}. "
                f"Available sections: {', '.join(APPLY_SECTIONS)}"
            )
        return names

    @classmethod
    def from_flags(
        cls, dry_run: bool = False, yes: bool = False, only: list[str] | None = None
    ) -> "RunOptions":
        """Build run options from command-line style flags.

        A dry run takes precedence over ``yes``.

        Args:
            dry_run: Simulate only
            yes: Skip confirmation prompts
            only: Section names to restrict processing to

        Returns:
            RunOptions instance
        """
        if dry_run:
            mode = ExecutionMode.DRY_RUN
        elif yes:
            mode = ExecutionMode.UNATTENDED
        else:
            mode = ExecutionMode.INTERACTIVE
        return cls(mode=mode, only=only)

    def selects(self, section: str) -> bool:
        """Check whether a section should be processed.

        Args:
            section: Section name

        Returns:
            True if no selector is set or the selector names the section
        """
        return self.only is None or section.lower() in self.only
