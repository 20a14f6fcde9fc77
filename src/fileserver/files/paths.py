"""Security-first joining of request paths onto a site root."""
import os

SEPARATOR = os.sep


def sanitized_join(root: str, request_path: str) -> str:
    """Join an untrusted request path onto a trusted root.

    The request path is made absolute and cleaned on its own before the
    join, so ``..`` segments are resolved against the request path only
    and can never climb above ``root``.

    Args:
        root: Trusted base directory. Empty means the current directory.
        request_path: Untrusted, URL-decoded request path.

    Returns:
        Filesystem path inside ``root``. Keeps a trailing separator when
        the request path had one, unless it denotes the root itself.
    """
    if root == "":
        root = "."

    # normpath keeps a leading "//" on POSIX, so strip every leading separator
    relative = os.path.normpath("/" + request_path).lstrip("/" + SEPARATOR)
    path = os.path.normpath(os.path.join(root, relative))

    if request_path.endswith("/") and len(request_path) > 1:
        path += SEPARATOR

    return path
