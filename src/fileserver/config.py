"""File server configuration loaded from environment variables."""
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """File server configuration loaded from environment variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging and API documentation.
        root: Site root to serve; may contain request placeholders.
        hide_raw: Raw comma-separated hide patterns.
        index_names_raw: Raw comma-separated index file names.
        name_guard: Obfuscated file name check (auto, windows or none).
    """

    model_config = SettingsConfigDict(
        env_prefix="FILESERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    root: str = ""
    hide_raw: str = ""
    index_names_raw: str = "index.html,index.txt"
    name_guard: Literal["auto", "windows", "none"] = "auto"

    @computed_field
    @property
    def hide(self) -> list[str]:
        """Parse hide patterns from comma-separated string.

        Returns:
            List of hide patterns in configured order.
        """
        return [
            pattern.strip()
            for pattern in self.hide_raw.split(",")
            if pattern.strip()
        ]

    @computed_field
    @property
    def index_names(self) -> list[str]:
        """Parse index file names from comma-separated string.

        Returns:
            List of index file names in priority order.
        """
        return [
            name.strip()
            for name in self.index_names_raw.split(",")
            if name.strip()
        ]
