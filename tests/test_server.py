"""File server request flow tests against an in-memory filesystem."""

import pytest

from fileserver.files import (
    RESULTS,
    ErrorKind,
    FileServer,
    FileServerSpec,
    MemoryFileSystem,
    PassthroughGuard,
    Replacer,
    Result,
    WindowsNameGuard,
)


@pytest.fixture
def server(memory_fs: MemoryFileSystem) -> FileServer:
    """File server rooted at /site with a hidden private directory."""
    spec = FileServerSpec(root="/site", hide=("/site/private", ".env"))
    return FileServer(spec, fs=memory_fs, guard=PassthroughGuard())


def test_root_request_serves_index(server: FileServer) -> None:
    """A request for / resolves to the root index file."""
    with server.handle("GET", "/") as result:
        assert result.result is Result.SUCCESS
        assert result.status == 200
        assert result.filename == "/site/index.html"
        assert result.file is not None
        assert result.file.read() == b"<h1>home</h1>"
        assert result.headers["Content-Type"] == "text/html"
        assert result.headers["ETag"] == result.etag


def test_traversal_stays_inside_root(server: FileServer, memory_fs: MemoryFileSystem) -> None:
    """Dot-dot segments cannot reach files outside the root."""
    with server.handle("GET", "/../../etc/passwd") as result:
        assert result.result is Result.NOT_FOUND
        assert result.status == 404
        assert result.filename == "/site/etc/passwd"

    assert "/etc/passwd" not in memory_fs.stat_calls
    assert all(name.startswith("/site") for name in memory_fs.stat_calls)


def test_directory_falls_back_to_later_index(server: FileServer) -> None:
    """Only index.txt exists in docs, so it is served."""
    with server.handle("GET", "/docs/") as result:
        assert result.ok
        assert result.filename == "/site/docs/index.txt"


def test_directory_without_index_is_not_found(server: FileServer) -> None:
    """Directories are never listed."""
    with server.handle("GET", "/empty/") as result:
        assert result.result is Result.NOT_FOUND
        assert result.tag == "not found"


def test_no_index_names_means_not_found(memory_fs: MemoryFileSystem) -> None:
    """Without index names a directory cannot be served."""
    server = FileServer(FileServerSpec(root="/site", index_names=()), fs=memory_fs)
    with server.handle("GET", "/") as result:
        assert result.result is Result.NOT_FOUND


def test_hidden_index_falls_through(memory_fs: MemoryFileSystem) -> None:
    """A hidden index.html is skipped in favour of index.txt."""
    spec = FileServerSpec(root="/site", hide=("/site/both/index.html",))
    server = FileServer(spec, fs=memory_fs, guard=PassthroughGuard())

    with server.handle("GET", "/both") as result:
        assert result.ok
        assert result.filename == "/site/both/index.txt"


@pytest.mark.parametrize("path", ["/private/secret.txt", "/private/", "/private"])
def test_hidden_paths_are_not_found(server: FileServer, path: str) -> None:
    """Hidden files look exactly like missing files."""
    with server.handle("GET", path) as result:
        assert result.result is Result.NOT_FOUND
        assert result.status == 404
        assert result.file is None


def test_file_below_regular_file_is_not_found(server: FileServer) -> None:
    """ENOTDIR is reclassified as not-found."""
    with server.handle("GET", "/file.txt/sub") as result:
        assert result.result is Result.NOT_FOUND


def test_trailing_slash_on_file_is_not_found(server: FileServer) -> None:
    """A file requested as a directory does not exist."""
    with server.handle("GET", "/file.txt/") as result:
        assert result.result is Result.NOT_FOUND


def test_permission_error(server: FileServer) -> None:
    """Denied files map to 403."""
    with server.handle("GET", "/locked.txt") as result:
        assert result.result is Result.ERR_PERMISSION
        assert result.status == 403
        assert result.error_kind is ErrorKind.PERMISSION_DENIED


def test_unclassified_error_is_internal(server: FileServer, memory_fs: MemoryFileSystem) -> None:
    """Errors that are neither not-found nor permission map to 500."""

    def failing_open(name: str):
        raise OSError(5, "Input/output error", name)

    memory_fs.open = failing_open  # type: ignore[method-assign]

    with server.handle("GET", "/file.txt") as result:
        assert result.result is Result.ERR_HANDLE_FILE
        assert result.status == 500
        assert result.error_kind is ErrorKind.INTERNAL


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
def test_other_methods_are_rejected_before_open(
    server: FileServer, memory_fs: MemoryFileSystem, method: str
) -> None:
    """Disallowed methods get 405 and the file is never opened."""
    with server.handle(method, "/file.txt") as result:
        assert result.result is Result.METHOD_NOT_ALLOWED
        assert result.status == 405
        assert result.headers == {"Allow": "GET, HEAD"}
        assert result.error_kind is ErrorKind.METHOD_NOT_ALLOWED
        assert result.file is None

    assert memory_fs.open_calls == []


def test_missing_file_with_other_method_is_not_found(server: FileServer) -> None:
    """The file lookup happens before the method check."""
    with server.handle("POST", "/missing.txt") as result:
        assert result.result is Result.NOT_FOUND


def test_head_is_allowed(server: FileServer) -> None:
    """HEAD requests succeed like GET."""
    with server.handle("HEAD", "/file.txt") as result:
        assert result.ok


def test_handle_is_closed_after_scope(server: FileServer) -> None:
    """The file handle is released when the request scope ends."""
    with server.handle("GET", "/file.txt") as result:
        handle = result.file
        assert handle is not None and not handle.closed
    assert handle.closed


def test_handle_is_closed_when_consumer_raises(server: FileServer) -> None:
    """The file handle is released on error paths too."""
    with pytest.raises(RuntimeError):
        with server.handle("GET", "/file.txt") as result:
            handle = result.file
            raise RuntimeError("client went away")
    assert handle is not None and handle.closed


def test_guard_rejects_before_filesystem_access(memory_fs: MemoryFileSystem) -> None:
    """Obfuscated names never reach the filesystem."""
    server = FileServer(FileServerSpec(root="/site"), fs=memory_fs, guard=WindowsNameGuard())

    with server.handle("GET", "/file.txt::$DATA") as result:
        assert result.result is Result.ILLEGAL_ADS_PATH
        assert result.status == 400
    with server.handle("GET", "/PRIVAT~1/secret.txt") as result:
        assert result.result is Result.ILLEGAL_SHORT_NAME
        assert result.status == 400

    assert memory_fs.stat_calls == []


def test_root_placeholder_is_resolved_per_request(memory_fs: MemoryFileSystem) -> None:
    """Root may depend on the request."""
    memory_fs.write_file("/sites/a.example/index.html", "site a")
    memory_fs.write_file("/sites/b.example/index.html", "site b")
    server = FileServer(
        FileServerSpec(root="/sites/{http.request.host}"),
        fs=memory_fs,
        guard=PassthroughGuard(),
    )

    for host in ("a.example", "b.example"):
        replacer = Replacer({"http.request.host": host})
        with server.handle("GET", "/", replacer) as result:
            assert result.filename == f"/sites/{host}/index.html"


def test_empty_root_is_current_directory() -> None:
    """An empty root serves from the current directory."""
    fs = MemoryFileSystem(files={"index.html": "cwd"})
    server = FileServer(FileServerSpec(root=""), fs=fs, guard=PassthroughGuard())

    with server.handle("GET", "/") as result:
        assert result.ok
        assert result.filename == "index.html"


def test_results_list_excludes_success() -> None:
    """Every non-success outcome is declared."""
    assert Result.SUCCESS not in RESULTS
    assert set(RESULTS) == set(Result) - {Result.SUCCESS}
