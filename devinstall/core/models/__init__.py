"""
Domain models — Pydantic types for devinstall.

All models are re-exported here for convenient access:

    from devinstall.core.models import PlatformDescriptor, InstallOutcome
"""

from devinstall.core.models.platform import (
    APT_PLATFORMS,
    LINUX_PLATFORMS,
    RPM_PLATFORMS,
    PlatformDescriptor,
    PlatformType,
)
from devinstall.core.models.result import (
    CommandResult,
    FailureKind,
    InstallOutcome,
    InstallResult,
    InstallState,
    PackageInfo,
)

__all__ = [
    # platform.py
    "APT_PLATFORMS",
    "LINUX_PLATFORMS",
    "PlatformDescriptor",
    "PlatformType",
    "RPM_PLATFORMS",
    # result.py
    "CommandResult",
    "FailureKind",
    "InstallOutcome",
    "InstallResult",
    "InstallState",
    "PackageInfo",
]
