"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from fileserver.app import create_app
from fileserver.config import Settings
from fileserver.files import MemoryFileSystem


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Create a small site tree on disk."""
    root = tmp_path / "site"
    (root / "docs").mkdir(parents=True)
    (root / "private").mkdir()
    (root / "empty").mkdir()
    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "hello.txt").write_text("hello world", encoding="utf-8")
    (root / "docs" / "index.txt").write_text("docs index", encoding="utf-8")
    (root / "private" / "secret.txt").write_text("secret", encoding="utf-8")
    (root / ".env").write_text("KEY=value", encoding="utf-8")
    (root / "blob.unknownbinaryextension").write_bytes(b"\x00\x01\x02")
    (tmp_path / "outside.txt").write_text("outside", encoding="utf-8")
    return root


@pytest.fixture
def settings(site: Path) -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8080,
        debug=True,
        root=str(site),
        hide_raw=f".env,{site / 'private'}",
        name_guard="none",
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app."""
    app = create_app(settings)
    return TestClient(app)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    """Create an in-memory site rooted at /site."""
    return MemoryFileSystem(
        files={
            "/site/index.html": "<h1>home</h1>",
            "/site/file.txt": "plain",
            "/site/docs/index.txt": "docs index",
            "/site/both/index.html": "hidden index",
            "/site/both/index.txt": "visible index",
            "/site/private/secret.txt": "secret",
            "/etc/passwd": "root:x:0:0",
        },
        dirs=["/site/empty"],
        denied=["/site/locked.txt"],
    )
