"""Index file lookup for requests that resolve to a directory."""
from collections.abc import Sequence

import structlog

from fileserver.files.filesystem import FileInfo, FileSystem
from fileserver.files.hidden import file_hidden
from fileserver.files.paths import sanitized_join
from fileserver.files.replacer import Replacer

logger = structlog.get_logger()


def resolve_index(
    fs: FileSystem,
    directory: str,
    index_names: Sequence[str],
    hide: list[str],
    replacer: Replacer,
) -> tuple[str, FileInfo] | None:
    """Find the first usable index file of a directory.

    Candidates are tried in configured order. Hidden candidates are
    skipped without touching the filesystem; candidates that cannot be
    stat'ed are skipped too.

    Args:
        fs: Filesystem to look in.
        directory: Resolved directory path.
        index_names: Candidate file names in priority order.
        hide: Request-scoped hide patterns.
        replacer: Request-scoped placeholder replacer.

    Returns:
        Tuple of (index path, index metadata), or None if no candidate
        exists.
    """
    for index_page in index_names:
        index_page = replacer.replace_all(index_page, "")
        index_path = sanitized_join(directory, index_page)
        if file_hidden(index_path, hide):
            logger.debug("hiding_index_file", filename=index_path, files_to_hide=hide)
            continue

        try:
            index_info = fs.stat(index_path)
        except (OSError, ValueError):
            continue

        logger.debug("located_index_file", filename=index_path)
        return index_path, index_info

    return None
