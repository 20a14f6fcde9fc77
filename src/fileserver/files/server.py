"""Request flow that maps a request path to the file to serve."""
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from fileserver.files.errors import ErrorKind, classify_error
from fileserver.files.filesystem import FileSystem, OSFileSystem
from fileserver.files.guard import NameGuard, select_guard
from fileserver.files.hidden import file_hidden, transform_hide_paths
from fileserver.files.index import resolve_index
from fileserver.files.metadata import (
    ALLOW_HEADER,
    calculate_etag,
    check_method,
    content_type,
)
from fileserver.files.paths import sanitized_join
from fileserver.files.replacer import Replacer
from fileserver.files.schemas import FileResult, FileServerSpec, Result

logger = structlog.get_logger()

GUARD_TAGS: dict[Result, str] = {
    Result.ILLEGAL_ADS_PATH: "illegal ADS path",
    Result.ILLEGAL_SHORT_NAME: "illegal short name",
}

ERROR_RESULTS: dict[ErrorKind, tuple[Result, int]] = {
    ErrorKind.NOT_FOUND: (Result.NOT_FOUND, 404),
    ErrorKind.PERMISSION_DENIED: (Result.ERR_PERMISSION, 403),
    ErrorKind.INTERNAL: (Result.ERR_HANDLE_FILE, 500),
}


class FileServer:
    """Resolves request paths to files under a configured root.

    Holds only read-only configuration, so one instance serves any number
    of concurrent requests. Everything derived from the request is
    recomputed per call.

    Attributes:
        spec: Root, hide patterns and index names.
        fs: Filesystem files are served from.
        guard: Obfuscated-name check chosen for the platform.
    """

    def __init__(
        self,
        spec: FileServerSpec,
        fs: FileSystem | None = None,
        guard: NameGuard | None = None,
    ) -> None:
        """Initialize file server.

        Args:
            spec: File server configuration.
            fs: Filesystem to serve from. Uses the local disk if None.
            guard: Name guard. Selected for the running platform if None.
        """
        self.spec = spec
        self.fs: FileSystem = fs if fs is not None else OSFileSystem()
        self.guard: NameGuard = guard if guard is not None else select_guard()

    @contextmanager
    def handle(
        self,
        method: str,
        request_path: str,
        replacer: Replacer | None = None,
    ) -> Iterator[FileResult]:
        """Resolve a request and hold the served file open.

        The file handle of a successful result is closed when the context
        exits, however it exits.

        Args:
            method: HTTP request method.
            request_path: URL-decoded request path.
            replacer: Request-scoped placeholder values.

        Yields:
            The outcome of the request.
        """
        result = self._resolve(method, request_path, replacer or Replacer())
        try:
            yield result
        finally:
            if result.file is not None:
                result.file.close()

    def _resolve(self, method: str, request_path: str, replacer: Replacer) -> FileResult:
        guard_result = self.guard.check(request_path)
        if guard_result is not Result.SUCCESS:
            return FileResult(guard_result, 400, tag=GUARD_TAGS[guard_result])

        files_to_hide = transform_hide_paths(self.spec.hide, replacer)
        root = replacer.replace_all(self.spec.root, ".")

        filename = sanitized_join(root, request_path)
        logger.debug(
            "sanitized_path_join",
            site_root=root,
            request_path=request_path,
            result=filename,
        )

        try:
            info = self.fs.stat(filename)
        except (OSError, ValueError) as e:
            return self._error_result(e, filename)

        # the request path is left alone; only the served file changes
        if info.is_dir and self.spec.index_names:
            index = resolve_index(
                self.fs, filename, self.spec.index_names, files_to_hide, replacer
            )
            if index is not None:
                filename, info = index

        if info.is_dir:
            logger.debug(
                "no_index_file",
                path=filename,
                index_filenames=list(self.spec.index_names),
            )
            return FileResult(Result.NOT_FOUND, 404, tag="not found", filename=filename)

        # the filename may have changed to an index file since the stat
        if file_hidden(filename, files_to_hide):
            logger.debug("hiding_file", filename=filename, files_to_hide=files_to_hide)
            return FileResult(Result.NOT_FOUND, 404, tag="not found", filename=filename)

        if not check_method(method):
            return FileResult(
                Result.METHOD_NOT_ALLOWED,
                405,
                tag="method not allowed",
                headers={"Allow": ALLOW_HEADER},
                filename=filename,
                info=info,
            )

        logger.debug("opening_file", filename=filename)
        try:
            file = self.fs.open(filename)
        except (OSError, ValueError) as e:
            return self._error_result(e, filename)

        etag = calculate_etag(info)
        headers = {"ETag": etag}
        mime_type = content_type(filename)
        if mime_type is not None:
            headers["Content-Type"] = mime_type

        return FileResult(
            Result.SUCCESS,
            200,
            headers=headers,
            filename=filename,
            info=info,
            file=file,
            etag=etag,
        )

    def _error_result(self, err: Exception, filename: str) -> FileResult:
        kind = classify_error(self.fs, err, filename)
        result, status = ERROR_RESULTS[kind]
        if kind is ErrorKind.NOT_FOUND:
            logger.debug("file_not_found", filename=filename, error=str(err))
            tag = "not found"
        elif kind is ErrorKind.PERMISSION_DENIED:
            logger.debug("permission_denied", filename=filename, error=str(err))
            tag = "permission denied"
        else:
            tag = str(err)
        return FileResult(result, status, tag=tag, filename=filename)
