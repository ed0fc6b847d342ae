import pytest

from utils.core.paths import (
    concat_unix_path,
    get_localized_data_dir,
    get_repo_cache_path,
    is_safe_repo_path,
    repo_path_to_fs,
)


@pytest.mark.parametrize("path", [
    "",
    "..",
    "../x",
    "a/../../x",
    "a/..",
    "/abs",
    "\\abs",
    "C:\\x",
    "d:relative",
    "//server/share/x",
])
def test_unsafe_paths(path):
    assert not is_safe_repo_path(path)


@pytest.mark.parametrize("path", ["a", "a/b/c.json", "dir.with.dots/file", "a/.hidden"])
def test_safe_paths(path):
    assert is_safe_repo_path(path)


def test_concat_unix_path():
    assert concat_unix_path("https://h/base", "a/b.json") == "https://h/base/a/b.json"
    assert concat_unix_path("https://h/base/", "/a") == "https://h/base/a"
    assert concat_unix_path("", "a/b") == "a/b"
    assert concat_unix_path("root", "") == "root"


def test_repo_path_to_fs(tmp_path):
    assert repo_path_to_fs(tmp_path, "a/b/c.json") == tmp_path / "a" / "b" / "c.json"


def test_data_dir_layout(tmp_path):
    assert get_localized_data_dir(tmp_path) == tmp_path / "localized_data"
    assert get_repo_cache_path(tmp_path) == tmp_path / ".tl_repo_cache"
