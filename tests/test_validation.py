from pathlib import Path

import pytest

from src.dayreport.domain.exceptions import InputValidationError
from src.dayreport.domain.validation import resolve_inside_root, validate_api_url


@pytest.mark.parametrize(
    "url",
    ["http://example.com/api", "https://example.com:8443/v1/items?x=1", "http://127.0.0.1:9000"],
)
def test_http_urls_are_accepted(url: str) -> None:
    assert validate_api_url(url) == url


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "   ",
        123,
        "ftp://example.com/file",
        "file:///etc/passwd",
        "javascript:alert(1)",
        "data:text/plain,hello",
        "not a url",
        "http://",
        "http://example.com:99999/",
    ],
)
def test_unsafe_or_malformed_urls_are_rejected(url: object) -> None:
    with pytest.raises(InputValidationError):
        validate_api_url(url)


def test_traversal_outside_root_is_rejected(tmp_path: Path) -> None:
    root = tmp_path / "dataZip"
    root.mkdir()

    with pytest.raises(InputValidationError):
        resolve_inside_root("../../etc/passwd", root)
    with pytest.raises(InputValidationError):
        resolve_inside_root(str(root / "task_1" / ".." / ".." / "secret"), root)
    with pytest.raises(InputValidationError):
        resolve_inside_root("/etc/passwd", root)


def test_root_itself_is_not_strictly_inside(tmp_path: Path) -> None:
    with pytest.raises(InputValidationError):
        resolve_inside_root(str(tmp_path), tmp_path)


def test_paths_inside_root_are_accepted(tmp_path: Path) -> None:
    root = tmp_path / "dataZip"
    (root / "task_1").mkdir(parents=True)

    assert resolve_inside_root("task_1/2024-03-05.docx", root) == (
        root / "task_1" / "2024-03-05.docx"
    ).resolve()
    assert resolve_inside_root(str(root / "task_1"), root) == (root / "task_1").resolve()


def test_symlink_escaping_root_is_rejected(tmp_path: Path) -> None:
    root = tmp_path / "dataZip"
    root.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (root / "link").symlink_to(outside, target_is_directory=True)

    with pytest.raises(InputValidationError):
        resolve_inside_root("link/file.txt", root)
