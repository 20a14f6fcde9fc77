"""Response metadata for served files: validators, methods, content types."""
import math
import mimetypes
import os

from fileserver.files.filesystem import FileInfo

ALLOWED_METHODS: frozenset[str] = frozenset({"GET", "HEAD"})
ALLOW_HEADER = "GET, HEAD"

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def format_base36(value: int) -> str:
    """Format an integer in lower-case base 36.

    Args:
        value: Integer to format.

    Returns:
        Base-36 digits, prefixed with ``-`` for negative values.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def calculate_etag(info: FileInfo) -> str:
    """Compute a strong ETag from modification time and size.

    File contents are not hashed. Files with equal mtime (in whole
    seconds) and size get equal tags. Prefix the result with ``W/`` for
    a weak validator.

    Args:
        info: Metadata of the served file.

    Returns:
        Quoted entity tag.
    """
    modified = format_base36(math.floor(info.mod_time.timestamp()))
    size = format_base36(info.size)
    return f'"{modified}{size}"'


def check_method(method: str) -> bool:
    """Check whether a request method may receive file content.

    Args:
        method: HTTP request method.

    Returns:
        True for GET and HEAD.
    """
    return method in ALLOWED_METHODS


def content_type(filename: str, current: str | None = None) -> str | None:
    """Decide the Content-Type of a served file.

    Args:
        filename: Served filesystem path.
        current: Content type already chosen upstream, if any.

    Returns:
        ``current`` when set, else the type registered for the file
        extension, else None to send no Content-Type at all.
    """
    if current:
        return current
    _, ext = os.path.splitext(filename)
    if not ext:
        return None
    mime_type, _ = mimetypes.guess_type("file" + ext, strict=False)
    return mime_type
