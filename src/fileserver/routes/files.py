"""Catch-all route serving files from the site root."""
from contextlib import ExitStack
from http import HTTPStatus

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from fileserver.files.delivery import serve_content
from fileserver.files.replacer import Replacer
from fileserver.files.server import FileServer

logger = structlog.get_logger()

router = APIRouter(tags=["files"])

METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def request_replacer(request: Request) -> Replacer:
    """Build the placeholder replacer for a request.

    Known placeholders: ``http.request.method``, ``http.request.scheme``,
    ``http.request.host``, ``http.request.port``, ``http.request.uri``,
    ``http.request.uri.path``, ``http.request.uri.query``,
    ``http.request.remote.host`` and ``http.request.header.<Name>``.

    Args:
        request: Incoming HTTP request.

    Returns:
        Replacer scoped to this request.
    """
    url = request.url
    uri = url.path + (f"?{url.query}" if url.query else "")
    replacer = Replacer(
        {
            "http.request.method": request.method,
            "http.request.scheme": url.scheme,
            "http.request.host": url.hostname or "",
            "http.request.port": str(url.port) if url.port else "",
            "http.request.uri": uri,
            "http.request.uri.path": url.path,
            "http.request.uri.query": url.query,
            "http.request.remote.host": request.client.host if request.client else "",
        }
    )

    def header_value(key: str) -> str | None:
        prefix = "http.request.header."
        if not key.startswith(prefix):
            return None
        return request.headers.get(key[len(prefix):], "")

    replacer.map(header_value)
    return replacer


def _error_response(status: int, headers: dict[str, str]) -> Response:
    return PlainTextResponse(HTTPStatus(status).phrase, status_code=status, headers=headers)


@router.api_route("/{path:path}", methods=METHODS, include_in_schema=False)
def serve_file(request: Request) -> Response:
    """Serve the file a request path resolves to.

    Runs in the threadpool since filesystem calls block. The file stays
    open past the return and is streamed by the response.

    Args:
        request: Incoming HTTP request.

    Returns:
        File response, or a plain-text error with the mapped status.
    """
    file_server: FileServer = request.app.state.file_server
    request_path = request.scope["path"]

    with ExitStack() as stack:
        result = stack.enter_context(
            file_server.handle(request.method, request_path, request_replacer(request))
        )
        request.state.file_result = result.result.value
        request.state.file_tag = result.tag
        if not result.ok:
            return _error_response(result.status, result.headers)

        # the response closes the file once the body has been sent
        held = stack.pop_all()
        try:
            return serve_content(request, result, release=held.close)
        except Exception:
            held.close()
            raise
