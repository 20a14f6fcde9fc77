"""File resolution module for serving files from a trusted root."""

from fileserver.files.delivery import serve_content
from fileserver.files.errors import ErrorKind, classify_error, map_dir_open_error
from fileserver.files.filesystem import (
    FileInfo,
    FileSystem,
    MemoryFileSystem,
    OSFileSystem,
)
from fileserver.files.guard import (
    NameGuard,
    PassthroughGuard,
    WindowsNameGuard,
    select_guard,
)
from fileserver.files.hidden import file_hidden, glob_match, transform_hide_paths
from fileserver.files.index import resolve_index
from fileserver.files.metadata import (
    ALLOW_HEADER,
    ALLOWED_METHODS,
    calculate_etag,
    check_method,
    content_type,
)
from fileserver.files.paths import sanitized_join
from fileserver.files.replacer import Replacer
from fileserver.files.schemas import (
    RESULTS,
    FileResult,
    FileServerSpec,
    Result,
)
from fileserver.files.server import FileServer

__all__ = [
    "ALLOW_HEADER",
    "ALLOWED_METHODS",
    "ErrorKind",
    "FileInfo",
    "FileResult",
    "FileServer",
    "FileServerSpec",
    "FileSystem",
    "MemoryFileSystem",
    "NameGuard",
    "OSFileSystem",
    "PassthroughGuard",
    "RESULTS",
    "Replacer",
    "Result",
    "WindowsNameGuard",
    "calculate_etag",
    "check_method",
    "classify_error",
    "content_type",
    "file_hidden",
    "glob_match",
    "map_dir_open_error",
    "resolve_index",
    "sanitized_join",
    "select_guard",
    "serve_content",
    "transform_hide_paths",
]
