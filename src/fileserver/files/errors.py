"""Classification of filesystem errors into a closed taxonomy."""
import errno
import os
from enum import Enum

import structlog

from fileserver.files.filesystem import FileSystem

logger = structlog.get_logger()

SEPARATOR = os.sep


class ErrorKind(str, Enum):
    """Terminal error categories of a file request."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INTERNAL = "internal"


def map_dir_open_error(fs: FileSystem, err: Exception, name: str) -> Exception:
    """Turn errors about children of non-directories into not-found.

    Opening ``root/file.txt/sub`` fails with ENOTDIR rather than ENOENT.
    Walking the path and finding a prefix that exists but is not a
    directory shows the target cannot exist.

    Args:
        fs: Filesystem the error came from.
        err: Error raised by stat or open.
        name: Path that was being accessed.

    Returns:
        A ``FileNotFoundError`` when the path crosses a regular file,
        otherwise ``err`` unchanged.
    """
    if isinstance(err, (FileNotFoundError, PermissionError)):
        return err

    parts = name.split(SEPARATOR)
    # only proper prefixes; the last part is the target itself
    for i, part in enumerate(parts[:-1]):
        if part == "":
            continue
        prefix = SEPARATOR.join(parts[: i + 1])
        try:
            info = fs.stat(prefix)
        except (OSError, ValueError):
            return err
        if not info.is_dir:
            return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)

    return err


def classify_error(fs: FileSystem, err: Exception, name: str) -> ErrorKind:
    """Classify a stat or open failure.

    Args:
        fs: Filesystem the error came from.
        err: Error raised by stat or open.
        name: Path that was being accessed.

    Returns:
        ``NOT_FOUND``, ``PERMISSION_DENIED`` or ``INTERNAL``.
    """
    mapped = map_dir_open_error(fs, err, name)
    if isinstance(mapped, (FileNotFoundError, ValueError)):
        return ErrorKind.NOT_FOUND
    if isinstance(mapped, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    logger.debug("unclassified_file_error", filename=name, error=str(err))
    return ErrorKind.INTERNAL
