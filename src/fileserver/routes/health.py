"""Health check endpoints for liveness and readiness probes."""
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fileserver.files.filesystem import FileSystem
from fileserver.files.server import FileServer

router = APIRouter(prefix="/_health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


def _check_root(fs: FileSystem, root: str) -> ReadinessCheck:
    """Verify the site root is a listable directory.

    Roots with request placeholders cannot be checked up front and are
    reported as ok.

    Args:
        fs: Filesystem the root lives on.
        root: Configured site root.

    Returns:
        Check result with status and optional error message.
    """
    if "{" in root:
        return ReadinessCheck(name="root", status="ok")
    path = root or "."
    try:
        info = fs.stat(path)
        if not info.is_dir:
            return ReadinessCheck(
                name="root",
                status="failed",
                message="Root is not a directory",
            )
        fs.read_dir(path)
        return ReadinessCheck(name="root", status="ok")
    except FileNotFoundError:
        return ReadinessCheck(
            name="root",
            status="failed",
            message="Directory not found",
        )
    except PermissionError:
        return ReadinessCheck(
            name="root",
            status="failed",
            message="Permission denied",
        )
    except OSError as e:
        return ReadinessCheck(
            name="root",
            status="failed",
            message=e.strerror or "Unreadable",
        )
    except ValueError:
        return ReadinessCheck(
            name="root",
            status="failed",
            message="Invalid root path",
        )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 if the site root can be listed, 503 otherwise.

    Args:
        request: Incoming HTTP request.

    Returns:
        Readiness status with individual check results.
    """
    file_server: FileServer = request.app.state.file_server
    checks = [_check_root(file_server.fs, file_server.spec.root)]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
