"""Rejection of request paths that obfuscate file names.

Some filesystems resolve several spellings to the same file: NTFS
addresses alternate data streams with ``name:stream``, aliases long
names with 8.3 short names such as ``SECRET~1.TXT`` and ignores trailing
dots and spaces. Any of these can slip a hidden file past name-based
matching, so such paths are refused before the filesystem is touched.
"""
import sys
from typing import Literal, Protocol

from fileserver.files.schemas import Result

GuardMode = Literal["auto", "windows", "none"]

SHORT_NAME_MAX_LENGTH = 12
SHORT_NAME_PLATFORMS = frozenset({"win32", "cygwin"})


class NameGuard(Protocol):
    """Pre-filesystem check of a request path."""

    def check(self, request_path: str) -> Result: ...


class PassthroughGuard:
    """Accepts every path, for platforms without name aliasing."""

    def check(self, request_path: str) -> Result:
        return Result.SUCCESS


class WindowsNameGuard:
    """Rejects alternate data stream and 8.3 short-name request paths."""

    def check(self, request_path: str) -> Result:
        """Check a request path for obfuscated names.

        Args:
            request_path: URL-decoded request path.

        Returns:
            ``ILLEGAL_ADS_PATH`` for paths containing a colon,
            ``ILLEGAL_SHORT_NAME`` for short-name lookalikes, otherwise
            ``SUCCESS``.
        """
        if ":" in request_path:
            return Result.ILLEGAL_ADS_PATH

        trimmed = request_path.rstrip(". ")
        if len(_url_base(trimmed)) <= SHORT_NAME_MAX_LENGTH and "~" in trimmed:
            return Result.ILLEGAL_SHORT_NAME

        return Result.SUCCESS


def _url_base(path: str) -> str:
    """Return the last element of a slash-separated path."""
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def select_guard(mode: GuardMode = "auto", platform: str | None = None) -> NameGuard:
    """Choose the name guard once for the running platform.

    Args:
        mode: ``auto`` picks by platform; ``windows`` and ``none`` force a
            strategy.
        platform: Platform identifier, defaults to ``sys.platform``.

    Returns:
        Guard instance to reuse for every request.
    """
    if mode == "windows":
        return WindowsNameGuard()
    if mode == "none":
        return PassthroughGuard()
    if (platform or sys.platform) in SHORT_NAME_PLATFORMS:
        return WindowsNameGuard()
    return PassthroughGuard()
