"""Conditional and range-aware delivery of an opened file."""
import math
import re
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from email.utils import formatdate, parsedate_to_datetime
from typing import BinaryIO

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from fileserver.files.schemas import FileResult

RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")

CHUNK_SIZE = 64 * 1024


def _etag_values(header: str) -> list[str]:
    return [value.strip() for value in header.split(",") if value.strip()]


def _weak_match(a: str, b: str) -> bool:
    return a.removeprefix("W/") == b.removeprefix("W/")


def _strong_match(a: str, b: str) -> bool:
    return not a.startswith("W/") and not b.startswith("W/") and a == b


def _parse_http_date(value: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    # "-0000" dates come back without a zone
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _modified_since(mod_time: datetime, since: datetime) -> bool:
    return math.floor(mod_time.timestamp()) > math.floor(since.timestamp())


def check_preconditions(request: Request, etag: str, mod_time: datetime) -> int | None:
    """Evaluate conditional request headers.

    Args:
        request: Incoming HTTP request.
        etag: Entity tag of the file.
        mod_time: Modification time of the file.

    Returns:
        304 or 412 when a precondition decides the response, else None.
    """
    if_match = request.headers.get("if-match")
    if if_match is not None:
        values = _etag_values(if_match)
        if "*" not in values and not any(_strong_match(v, etag) for v in values):
            return 412
    else:
        if_unmodified = request.headers.get("if-unmodified-since")
        since = _parse_http_date(if_unmodified) if if_unmodified else None
        if since is not None and _modified_since(mod_time, since):
            return 412

    if_none_match = request.headers.get("if-none-match")
    if if_none_match is not None:
        values = _etag_values(if_none_match)
        if "*" in values or any(_weak_match(v, etag) for v in values):
            if request.method in ("GET", "HEAD"):
                return 304
            return 412
        return None

    if request.method in ("GET", "HEAD"):
        if_modified = request.headers.get("if-modified-since")
        since = _parse_http_date(if_modified) if if_modified else None
        if since is not None and not _modified_since(mod_time, since):
            return 304

    return None


def parse_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse a single byte range.

    Args:
        header: Value of the Range header.
        size: Size of the file.

    Returns:
        Inclusive (start, end) offsets, or None for a header that should be
        ignored (malformed or multiple ranges).

    Raises:
        ValueError: If the range cannot be satisfied.
    """
    match = RANGE_PATTERN.match(header.strip())
    if match is None:
        return None
    first, last = match.groups()
    if first == "" and last == "":
        return None

    if first == "":
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise ValueError("unsatisfiable range")
        return max(size - suffix, 0), size - 1

    start = int(first)
    if start >= size:
        raise ValueError("unsatisfiable range")
    end = size - 1 if last == "" else min(int(last), size - 1)
    if end < start:
        return None
    return start, end


def _range_applies(request: Request, etag: str, mod_time: datetime) -> bool:
    if_range = request.headers.get("if-range")
    if if_range is None:
        return True
    if_range = if_range.strip()
    if if_range.startswith('"') or if_range.startswith("W/"):
        return _strong_match(if_range, etag)
    since = _parse_http_date(if_range)
    return since is not None and not _modified_since(mod_time, since)


def iter_file(
    file: BinaryIO,
    start: int,
    length: int,
    release: Callable[[], None],
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield ``length`` bytes of ``file`` from ``start`` in chunks.

    ``release`` runs when the stream is exhausted or abandoned.
    """
    try:
        file.seek(start)
        remaining = length
        while remaining > 0:
            chunk = file.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
    finally:
        release()


def serve_content(
    request: Request,
    result: FileResult,
    release: Callable[[], None] | None = None,
) -> Response:
    """Build the response for a successfully resolved file.

    The body is streamed from the handle held by ``result``. Ownership of
    the handle passes to the response: ``release`` is called right away
    for responses without a body, and once the stream ends or the client
    goes away otherwise.

    Args:
        request: Incoming HTTP request.
        result: Successful file server outcome.
        release: Closes the handle. Defaults to closing ``result.file``.

    Returns:
        200, 206, 304, 412 or 416 response.

    Raises:
        ValueError: If the result holds no open file.
    """
    if result.file is None or result.info is None or result.etag is None:
        raise ValueError("serve_content requires a successful file result")
    if release is None:
        release = result.file.close
    info = result.info
    headers = dict(result.headers)
    headers["Last-Modified"] = formatdate(info.mod_time.timestamp(), usegmt=True)
    headers["Accept-Ranges"] = "bytes"

    status = check_preconditions(request, result.etag, info.mod_time)
    if status == 304:
        release()
        headers.pop("Content-Type", None)
        return Response(status_code=304, headers=headers)
    if status is not None:
        release()
        return Response(status_code=status, headers={"ETag": result.etag})

    size = info.size
    start, end = 0, size - 1
    status_code = 200

    range_header = request.headers.get("range")
    if range_header is not None and _range_applies(request, result.etag, info.mod_time):
        try:
            byte_range = parse_range(range_header, size)
        except ValueError:
            release()
            return Response(
                status_code=416,
                headers={"Content-Range": f"bytes */{size}", "ETag": result.etag},
            )
        if byte_range is not None:
            start, end = byte_range
            status_code = 206
            headers["Content-Range"] = f"bytes {start}-{end}/{size}"

    length = max(end - start + 1, 0)
    headers["Content-Length"] = str(length)

    if request.method == "HEAD":
        release()
        return Response(status_code=status_code, headers=headers)

    return StreamingResponse(
        iter_file(result.file, start, length, release),
        status_code=status_code,
        headers=headers,
        background=BackgroundTask(release),
    )
