"""
Installer steps — small building blocks shared by the tool installers.

Architecture selection for vendor downloads, idempotent shell-profile
edits and version comparison. None of these raise for expected
failures.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

from devinstall.core.services.platform_detection import normalize_arch

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+){0,2})")


# ── Architecture selection ──────────────────────────────────────


def select_asset(assets: Mapping[str, str], arch: str) -> str | None:
    """Pick the download for a raw machine string.

    Args:
        assets: Normalized arch (``amd64``, ``arm64``, ``arm``) -> URL or
            asset name.
        arch: Raw machine string, e.g. ``aarch64`` or ``armv7l``.

    Returns:
        The matching entry, or None when the architecture is unmapped.
    """
    normalized = normalize_arch(arch)
    if normalized is None:
        return None
    return assets.get(normalized)


def unsupported_arch_message(arch: str, assets: Mapping[str, str]) -> str:
    supported = ", ".join(sorted(assets))
    return f"Unsupported architecture: {arch}. Supported architectures: {supported}"


# ── Shell profiles ──────────────────────────────────────────────


def shell_config_line(
    *,
    path_entry: str | None = None,
    env_var: tuple[str, str] | None = None,
) -> str:
    """POSIX export line for a PATH entry or an environment variable.

    Args:
        path_entry: Directory to add to PATH, e.g. ``"/usr/local/go/bin"``.
        env_var: ``(name, value)`` pair, e.g. ``("MAGIC", "/usr/local/share/misc/magic.mgc")``.
    """
    if path_entry:
        return f'export PATH="{path_entry}:$PATH"'
    if env_var:
        return f'export {env_var[0]}="{env_var[1]}"'
    return ""


def append_to_profile(profile: Path, line: str, marker: str | None = None) -> bool:
    """Append ``line`` to a shell profile unless ``marker`` is already there.

    Args:
        profile: Profile file, created when missing.
        line: Line to append.
        marker: Substring whose presence means the edit was made before.
            Defaults to ``line`` itself.

    Returns:
        True if the file was changed.
    """
    marker = marker or line
    try:
        existing = profile.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = ""

    if marker in existing:
        logger.debug("%s already contains %r", profile, marker)
        return False

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    profile.parent.mkdir(parents=True, exist_ok=True)
    with profile.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    logger.info("Appended to %s: %s", profile, line)
    return True


# ── Versions ────────────────────────────────────────────────────


def parse_version(text: str) -> tuple[int, ...] | None:
    """First dotted version number in ``text`` as an int tuple.

    ``"go version go1.24.2 linux/amd64"`` -> ``(1, 24, 2)``.
    """
    match = _VERSION_RE.search(text or "")
    if not match:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def version_at_least(current: str, minimum: str) -> bool:
    """Whether the version found in ``current`` is >= ``minimum``."""
    have = parse_version(current)
    want = parse_version(minimum)
    if have is None or want is None:
        return False
    width = max(len(have), len(want))
    return have + (0,) * (width - len(have)) >= want + (0,) * (width - len(want))
