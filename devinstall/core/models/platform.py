"""
Platform models — what kind of host we are installing onto.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class PlatformType(str, Enum):
    """Host platform kinds the installers dispatch on."""

    MACOS = "macos"
    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    WSL = "wsl"
    RASPBIAN = "raspbian"
    AMAZON_LINUX = "amazon_linux"
    RHEL = "rhel"
    FEDORA = "fedora"
    WINDOWS = "windows"
    GITBASH = "gitbash"
    # Detected but never dispatched to
    LINUX = "linux"
    UNKNOWN = "unknown"


APT_PLATFORMS = frozenset({
    PlatformType.UBUNTU,
    PlatformType.DEBIAN,
    PlatformType.WSL,
    PlatformType.RASPBIAN,
})

RPM_PLATFORMS = frozenset({
    PlatformType.AMAZON_LINUX,
    PlatformType.RHEL,
    PlatformType.FEDORA,
})

LINUX_PLATFORMS = APT_PLATFORMS | RPM_PLATFORMS | {PlatformType.LINUX}


class PlatformDescriptor(BaseModel):
    """Immutable description of the host, computed by detect().

    ``type`` is normally a PlatformType. Any other string is kept
    as-is so an unknown host can still be named in messages; it
    simply never matches a dispatch table.
    """

    model_config = ConfigDict(frozen=True)

    type: PlatformType | str
    architecture: str = ""
    package_manager: str | None = None
    distro: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, PlatformType):
            try:
                return PlatformType(value)
            except ValueError:
                return value
        return value

    @property
    def name(self) -> str:
        """Platform type as a plain string, for messages."""
        if isinstance(self.type, PlatformType):
            return self.type.value
        return str(self.type)

    @property
    def kind(self) -> PlatformType | None:
        """The PlatformType member, or None for an unrecognized host."""
        if isinstance(self.type, PlatformType):
            return self.type
        try:
            return PlatformType(self.type)
        except ValueError:
            return None
