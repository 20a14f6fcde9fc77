"""Result codes and value types for file serving."""

from enum import Enum
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict, Field

from fileserver.files.errors import ErrorKind
from fileserver.files.filesystem import FileInfo


class Result(str, Enum):
    """Outcome codes handed back to the request pipeline."""

    ILLEGAL_ADS_PATH = "illegalADSPath"
    ILLEGAL_SHORT_NAME = "illegalShortName"
    NOT_FOUND = "notFound"
    ERR_PERMISSION = "errPermission"
    ERR_HANDLE_FILE = "errHandleFile"
    METHOD_NOT_ALLOWED = "methodNotAllowed"
    SUCCESS = ""


RESULTS: tuple[Result, ...] = (
    Result.ILLEGAL_ADS_PATH,
    Result.ILLEGAL_SHORT_NAME,
    Result.METHOD_NOT_ALLOWED,
    Result.NOT_FOUND,
    Result.ERR_PERMISSION,
    Result.ERR_HANDLE_FILE,
)

RESULT_KINDS: dict[Result, ErrorKind] = {
    Result.NOT_FOUND: ErrorKind.NOT_FOUND,
    Result.ERR_PERMISSION: ErrorKind.PERMISSION_DENIED,
    Result.ERR_HANDLE_FILE: ErrorKind.INTERNAL,
    Result.METHOD_NOT_ALLOWED: ErrorKind.METHOD_NOT_ALLOWED,
}

DEFAULT_INDEX_NAMES: tuple[str, ...] = ("index.html", "index.txt")


class FileServerSpec(BaseModel):
    """Static configuration of a file server.

    Attributes:
        root: Site root; may contain placeholders. Empty means ``.``.
        hide: Patterns of paths to treat as nonexistent.
        index_names: Files to try, in order, when a directory is requested.
    """

    model_config = ConfigDict(frozen=True)

    root: str = ""
    hide: tuple[str, ...] = ()
    index_names: tuple[str, ...] = Field(default=DEFAULT_INDEX_NAMES)


class FileResult:
    """Outcome of resolving one request.

    Attributes:
        result: Outcome code.
        status: HTTP status to report.
        tag: Short description for request logs.
        headers: Response headers decided by the file server.
        filename: Resolved filesystem path, when one was reached.
        info: Metadata of the file to serve.
        file: Open handle on success, closed when the request scope ends.
        etag: Strong validator of the file on success.
    """

    def __init__(
        self,
        result: Result,
        status: int,
        tag: str = "",
        headers: dict[str, str] | None = None,
        filename: str | None = None,
        info: FileInfo | None = None,
        file: BinaryIO | None = None,
        etag: str | None = None,
    ) -> None:
        """Initialize file result.

        Args:
            result: Outcome code.
            status: HTTP status to report.
            tag: Short description for request logs.
            headers: Response headers decided by the file server.
            filename: Resolved filesystem path.
            info: Metadata of the file to serve.
            file: Open handle for the file to serve.
            etag: Strong validator of the file.
        """
        self.result = result
        self.status = status
        self.tag = tag
        self.headers: dict[str, str] = headers or {}
        self.filename = filename
        self.info = info
        self.file = file
        self.etag = etag

    @property
    def ok(self) -> bool:
        """Whether the file is ready to be served."""
        return self.result is Result.SUCCESS

    @property
    def error_kind(self) -> ErrorKind | None:
        """Error category of a failed lookup.

        None on success and for rejected request paths, which fail
        before the filesystem is consulted.
        """
        return RESULT_KINDS.get(self.result)
