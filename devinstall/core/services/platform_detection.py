"""
Platform detection — classify the host installers run on.

detect() is a pure function of host state: the OS name, environment
variables and marker files. Nothing is cached, so every call reflects
the host as it is now. Tests pass ``system``, ``env`` and ``root`` to
simulate other hosts.
"""

from __future__ import annotations

import logging
import os
import platform as _platform
from pathlib import Path
from typing import Mapping

from devinstall.adapters.shell import command as shell_command
from devinstall.adapters.shell.command import ShellRunner
from devinstall.core.models.platform import (
    LINUX_PLATFORMS,
    PlatformDescriptor,
    PlatformType,
)

logger = logging.getLogger(__name__)

# Raw machine strings -> normalized architecture names
_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "AMD64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "ARM64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "armhf": "arm",
    "i386": "i386",
    "i686": "i386",
    "x86": "i386",
}

_GITBASH_MSYSTEM_PREFIXES = ("MINGW", "MSYS")
_GITBASH_OSTYPES = ("msys", "cygwin")
_GITBASH_SYSTEM_PREFIXES = ("MINGW", "MSYS", "CYGWIN")

_DESKTOP_PLATFORMS = frozenset({
    PlatformType.MACOS,
    PlatformType.WINDOWS,
    PlatformType.GITBASH,
})


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _read_key(path: Path, key: str) -> str | None:
    """Value of ``KEY=value`` in a shell-style release file."""
    text = _read_text(path)
    if text is None:
        return None
    prefix = f"{key}="
    for line in text.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):].strip().strip('"').strip("'")
    return None


def get_distro(root: str | Path = "/") -> str | None:
    """Lower-case distro ID from /etc/os-release, else /etc/lsb-release."""
    base = Path(root)
    value = _read_key(base / "etc" / "os-release", "ID")
    if not value:
        value = _read_key(base / "etc" / "lsb-release", "DISTRIB_ID")
    return value.lower() if value else None


def get_arch() -> str:
    """Raw machine architecture, e.g. ``x86_64`` or ``aarch64``."""
    return _platform.machine()


def normalize_arch(arch: str | None = None) -> str | None:
    """Map a raw machine string to ``amd64``, ``arm64``, ``arm`` or ``i386``.

    Returns None for architectures no installer downloads for.
    """
    raw = arch if arch is not None else get_arch()
    return _ARCH_MAP.get(raw, _ARCH_MAP.get(raw.lower()))


def _is_gitbash(system: str, env: Mapping[str, str]) -> bool:
    msystem = env.get("MSYSTEM", "").upper()
    if msystem.startswith(_GITBASH_MSYSTEM_PREFIXES):
        return True
    if env.get("OSTYPE", "").lower().startswith(_GITBASH_OSTYPES):
        return True
    return system.upper().startswith(_GITBASH_SYSTEM_PREFIXES)


def _is_wsl(env: Mapping[str, str], root: Path) -> bool:
    if env.get("WSL_DISTRO_NAME"):
        return True
    version = _read_text(root / "proc" / "version")
    return version is not None and "microsoft" in version.lower()


def _detect_linux(env: Mapping[str, str], root: Path) -> tuple[PlatformType, str | None, str | None]:
    """Linux family, package manager and distro ID."""
    distro = get_distro(root)

    if _is_wsl(env, root):
        return PlatformType.WSL, "apt", distro

    if (root / "etc" / "debian_version").exists():
        if distro in ("raspbian", "raspberry"):
            return PlatformType.RASPBIAN, "apt", distro
        if distro == "ubuntu":
            return PlatformType.UBUNTU, "apt", distro
        return PlatformType.DEBIAN, "apt", distro

    if (root / "etc" / "redhat-release").exists() or (root / "etc" / "system-release").exists():
        manager = "dnf" if (root / "usr" / "bin" / "dnf").exists() else "yum"
        if distro in ("amzn", "amazon"):
            return PlatformType.AMAZON_LINUX, manager, distro
        if distro == "fedora":
            return PlatformType.FEDORA, manager, distro
        return PlatformType.RHEL, manager, distro

    return PlatformType.LINUX, None, distro


def detect(
    system: str | None = None,
    env: Mapping[str, str] | None = None,
    root: str | Path = "/",
    machine: str | None = None,
) -> PlatformDescriptor:
    """Detect the host platform.

    Args:
        system: OS name as ``platform.system()`` reports it.
        env: Environment variables (default: ``os.environ``).
        root: Filesystem root marker files are looked up under.
        machine: Raw architecture (default: ``platform.machine()``).

    Returns:
        Immutable PlatformDescriptor.
    """
    system = system if system is not None else _platform.system()
    env = env if env is not None else os.environ
    base = Path(root)
    arch = machine if machine is not None else get_arch()

    distro: str | None = None
    if system == "Darwin":
        kind, manager = PlatformType.MACOS, "brew"
    elif _is_gitbash(system, env):
        kind, manager = PlatformType.GITBASH, "choco"
    elif system == "Windows":
        kind, manager = PlatformType.WINDOWS, "winget"
    elif system == "Linux":
        kind, manager, distro = _detect_linux(env, base)
    else:
        kind, manager = PlatformType.UNKNOWN, None

    descriptor = PlatformDescriptor(
        type=kind,
        architecture=arch,
        package_manager=manager,
        distro=distro,
    )
    logger.debug("Detected platform: %s", descriptor)
    return descriptor


def is_desktop_available(
    platform: PlatformDescriptor | None = None,
    env: Mapping[str, str] | None = None,
    root: str | Path = "/",
) -> bool:
    """Whether a graphical session is available for GUI applications."""
    platform = platform or detect(env=env, root=root)
    env = env if env is not None else os.environ
    kind = platform.kind

    if kind in _DESKTOP_PLATFORMS:
        return True
    if kind not in LINUX_PLATFORMS:
        return False

    if env.get("WAYLAND_DISPLAY") or env.get("DISPLAY"):
        return True
    if env.get("XDG_SESSION_TYPE", "").lower() in ("x11", "wayland"):
        return True
    if env.get("XDG_CURRENT_DESKTOP") or env.get("DESKTOP_SESSION"):
        return True
    if kind == PlatformType.WSL and (Path(root) / "mnt" / "wslg").exists():
        return True
    return False


def get_macos_major_version(shell: ShellRunner | None = None) -> int | None:
    """Major macOS version from ``sw_vers``, or None when unknown."""
    if shell is not None:
        result = shell.run("sw_vers -productVersion")
    else:
        result = shell_command.run("sw_vers -productVersion")
    if not result.ok:
        return None
    head = result.stdout.strip().split(".", 1)[0]
    return int(head) if head.isdigit() else None
