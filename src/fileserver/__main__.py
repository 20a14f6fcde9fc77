"""Entry point for the file server."""

import contextlib
import sys

import structlog
import uvicorn

from fileserver.app import create_app
from fileserver.config import Settings
from fileserver.logging import configure_logging

logger = structlog.get_logger()


def main() -> None:
    """Entry point for python -m fileserver."""
    settings = Settings()
    configure_logging(debug=settings.debug)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)

    with contextlib.suppress(KeyboardInterrupt):
        server.run()

    logger.info("fileserver_stopped")
    sys.exit(0)


if __name__ == "__main__":
    main()
