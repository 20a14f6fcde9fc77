"""Response metadata tests."""

from datetime import UTC, datetime

import pytest

from fileserver.files import FileInfo, calculate_etag, check_method, content_type
from fileserver.files.metadata import format_base36

MOD_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def _info(name: str = "a.txt", size: int = 100, mod_time: datetime = MOD_TIME) -> FileInfo:
    return FileInfo(name=name, size=size, mod_time=mod_time, is_dir=False)


def test_format_base36() -> None:
    """Integers are rendered in lower-case base 36."""
    assert format_base36(0) == "0"
    assert format_base36(35) == "z"
    assert format_base36(36) == "10"
    assert format_base36(-36) == "-10"


def test_etag_encodes_mtime_and_size() -> None:
    """The tag is the quoted base-36 mtime followed by the base-36 size."""
    # 1704067200 == 2024-01-01T00:00:00Z, 100 == "2s"
    assert calculate_etag(_info()) == '"s6k2o02s"'


def test_etag_ignores_name_and_content() -> None:
    """Files sharing mtime and size share a tag."""
    assert calculate_etag(_info("a.txt")) == calculate_etag(_info("b.bin"))


def test_etag_changes_with_mtime_or_size() -> None:
    """Changing either input changes the tag."""
    base = calculate_etag(_info())
    assert calculate_etag(_info(size=101)) != base
    assert calculate_etag(_info(mod_time=datetime(2024, 1, 1, 0, 0, 1, tzinfo=UTC))) != base


def test_etag_uses_whole_seconds() -> None:
    """Sub-second differences do not change the tag."""
    later = datetime(2024, 1, 1, 0, 0, 0, 900000, tzinfo=UTC)
    assert calculate_etag(_info(mod_time=later)) == calculate_etag(_info())


@pytest.mark.parametrize("method", ["GET", "HEAD"])
def test_get_and_head_are_allowed(method: str) -> None:
    """Read methods pass the method check."""
    assert check_method(method) is True


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH", "OPTIONS", "get"])
def test_other_methods_are_not_allowed(method: str) -> None:
    """Anything but GET and HEAD is refused."""
    assert check_method(method) is False


def test_content_type_from_extension() -> None:
    """Known extensions map to their registered type."""
    assert content_type("/site/index.html") == "text/html"
    assert content_type("/site/data.json") == "application/json"


def test_content_type_keeps_existing_value() -> None:
    """An upstream content type is not replaced."""
    assert content_type("/site/index.html", "text/plain") == "text/plain"


def test_content_type_unknown_is_none() -> None:
    """Unknown or missing extensions yield no type rather than a guess."""
    assert content_type("/site/blob.unknownbinaryextension") is None
    assert content_type("/site/README") is None
