"""Filesystem capability used by the file server core."""

import errno
import glob as globlib
import io
import os
import posixpath
import stat as statlib
from datetime import UTC, datetime
from typing import BinaryIO, Protocol

from pydantic import BaseModel, ConfigDict

from fileserver.files.hidden import glob_match


class FileInfo(BaseModel):
    """Metadata of a single filesystem entry.

    Attributes:
        name: Base name of the entry.
        size: Size in bytes (0 for directories).
        mod_time: Last modification time (UTC).
        is_dir: Whether the entry is a directory.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size: int
    mod_time: datetime
    is_dir: bool


class FileSystem(Protocol):
    """Operations the file server needs from a filesystem."""

    def open(self, name: str) -> BinaryIO: ...

    def stat(self, name: str) -> FileInfo: ...

    def read_dir(self, name: str) -> list[FileInfo]: ...

    def read_file(self, name: str) -> bytes: ...

    def glob(self, pattern: str) -> list[str]: ...


class OSFileSystem:
    """FileSystem backed by the local disk."""

    def open(self, name: str) -> BinaryIO:
        """Open a regular file for binary reading.

        Args:
            name: Filesystem path.

        Returns:
            Readable, seekable binary handle.

        Raises:
            IsADirectoryError: If the path is a directory.
            OSError: For any other failure reported by the OS.
        """
        if os.path.isdir(name):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), name)
        return open(name, "rb")

    def stat(self, name: str) -> FileInfo:
        """Stat a path, following symlinks.

        Args:
            name: Filesystem path.

        Returns:
            Metadata of the entry.
        """
        st = os.stat(name)
        return _info_from_stat(_base_name(name), st)

    def read_dir(self, name: str) -> list[FileInfo]:
        """List a directory sorted by entry name.

        Args:
            name: Directory path.

        Returns:
            Metadata for every entry.
        """
        entries: list[FileInfo] = []
        with os.scandir(name) as it:
            for entry in it:
                entries.append(_info_from_stat(entry.name, entry.stat()))
        entries.sort(key=lambda info: info.name)
        return entries

    def read_file(self, name: str) -> bytes:
        with self.open(name) as f:
            return f.read()

    def glob(self, pattern: str) -> list[str]:
        return sorted(globlib.glob(pattern))


def _info_from_stat(name: str, st: os.stat_result) -> FileInfo:
    is_dir = statlib.S_ISDIR(st.st_mode)
    return FileInfo(
        name=name,
        size=0 if is_dir else st.st_size,
        mod_time=datetime.fromtimestamp(st.st_mtime, tz=UTC),
        is_dir=is_dir,
    )


def _base_name(name: str) -> str:
    stripped = name.rstrip(os.sep) or name
    return os.path.basename(stripped) or stripped


class MemoryFileSystem:
    """In-memory FileSystem with POSIX error semantics.

    Paths use ``/`` separators. Parent directories of every file are
    created implicitly. Failures raise the same ``OSError`` subclasses the
    operating system would raise for the equivalent on-disk layout.

    Attributes:
        mod_time: Modification time reported for every entry.
        stat_calls: Paths passed to stat, in call order.
        open_calls: Paths passed to open, in call order.
    """

    def __init__(
        self,
        files: dict[str, bytes | str] | None = None,
        dirs: list[str] | None = None,
        denied: list[str] | None = None,
        mod_time: datetime | None = None,
    ) -> None:
        """Initialize the in-memory tree.

        Args:
            files: Mapping of file path to content.
            dirs: Extra (possibly empty) directories to create.
            denied: Paths whose access raises PermissionError.
            mod_time: Modification time for all entries.
        """
        self.mod_time = mod_time or datetime(2024, 1, 1, tzinfo=UTC)
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/", "."}
        self._denied = {self._clean(p) for p in denied or []}
        self.stat_calls: list[str] = []
        self.open_calls: list[str] = []

        for path in dirs or []:
            self.mkdir(path)
        for path, content in (files or {}).items():
            self.write_file(path, content)

    @staticmethod
    def _clean(name: str) -> str:
        return posixpath.normpath(name) if name else "."

    def mkdir(self, name: str) -> None:
        """Create a directory and its parents.

        Args:
            name: Directory path.
        """
        path = self._clean(name)
        while path not in self._dirs:
            self._dirs.add(path)
            path = posixpath.dirname(path) or "."

    def write_file(self, name: str, content: bytes | str) -> None:
        """Create or replace a file, creating parent directories.

        Args:
            name: File path.
            content: File content; text is UTF-8 encoded.
        """
        path = self._clean(name)
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.mkdir(posixpath.dirname(path) or ".")
        self._files[path] = content

    def _lookup(self, name: str) -> str:
        """Validate a path the way the kernel walks it.

        Args:
            name: Path as passed by the caller.

        Returns:
            Normalised key of an existing entry.

        Raises:
            ValueError: If the path contains a NUL byte.
            FileNotFoundError: If a component does not exist.
            NotADirectoryError: If a non-final component is a file.
            PermissionError: If a component is in the denied set.
        """
        if "\0" in name:
            raise ValueError("embedded null byte")

        absolute = name.startswith("/")
        parts = [p for p in name.split("/") if p and p != "."]
        trailing = name.endswith("/") and len(parts) > 0
        current = "/" if absolute else "."
        for i, part in enumerate(parts):
            if part == "..":
                current = posixpath.dirname(current) if current not in ("/", ".") else current
                continue
            current = posixpath.join(current, part) if current != "." else part
            if current in self._denied:
                raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), name)
            is_last = i == len(parts) - 1
            if current in self._files:
                if not is_last or trailing:
                    raise NotADirectoryError(
                        errno.ENOTDIR, os.strerror(errno.ENOTDIR), name
                    )
            elif current not in self._dirs:
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)
        return current

    def stat(self, name: str) -> FileInfo:
        self.stat_calls.append(name)
        path = self._lookup(name)
        base = posixpath.basename(path) or path
        if path in self._files:
            return FileInfo(
                name=base,
                size=len(self._files[path]),
                mod_time=self.mod_time,
                is_dir=False,
            )
        return FileInfo(name=base, size=0, mod_time=self.mod_time, is_dir=True)

    def open(self, name: str) -> BinaryIO:
        self.open_calls.append(name)
        path = self._lookup(name)
        if path not in self._files:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), name)
        return io.BytesIO(self._files[path])

    def read_dir(self, name: str) -> list[FileInfo]:
        path = self._lookup(name)
        if path in self._files:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), name)
        children = {
            entry
            for entry in self._files.keys() | self._dirs
            if entry != path and (posixpath.dirname(entry) or ".") == path
        }
        return [self.stat(child) for child in sorted(children)]

    def read_file(self, name: str) -> bytes:
        with self.open(name) as f:
            return f.read()

    def glob(self, pattern: str) -> list[str]:
        return sorted(
            entry
            for entry in self._files.keys() | self._dirs
            if glob_match(pattern, entry, sep="/")
        )
