import pytest

import config
from gresources.errors import ValidationError
from gresources.services.path_semantics import (
    content_byte_length,
    folder_of,
    normalize_path,
    validate_content_size,
    validate_path,
)


def test_normalize_path():
    assert normalize_path("/path/") == "/path"
    assert normalize_path("/") == "/"
    assert normalize_path("/path/to/resource") == "/path/to/resource"
    assert normalize_path("//") == "/"


def test_normalize_path_collapses_repeated_slashes():
    assert normalize_path("/a//b") == "/a/b"
    assert normalize_path("//x") == "/x"
    assert normalize_path("///a///b///") == "/a/b"


@pytest.mark.parametrize("path", ["/", "/a", "/a/", "/a//", "/a/b///", "/a//b", "//x", "", "no-slash/"])
def test_normalize_path_is_idempotent(path):
    once = normalize_path(path)
    assert normalize_path(once) == once


def test_valid_paths():
    validate_path("/resource")
    validate_path("/folder/resource")
    validate_path("/")
    validate_path("/a/b/c/d/e")


@pytest.mark.parametrize("path, reason", [
    ("", "Path cannot be empty"),
    ("no-leading-slash", "Path must start with '/'"),
    ("/a/b/c/d/e/f", "Maximum folder depth is 5"),
    ("/" + "x" * 101, "Resource name cannot exceed 100 characters"),
    ("/a/..", "Invalid characters in path"),
    ("/a/b..c", "Invalid characters in path"),
    ("/a/b\0c", "Invalid characters in path"),
])
def test_invalid_paths(path, reason):
    with pytest.raises(ValidationError) as exc_info:
        validate_path(path)
    assert str(exc_info.value) == reason


@pytest.mark.parametrize("char", list('<>:"|?*'))
def test_reserved_characters_rejected(char):
    with pytest.raises(ValidationError, match="Path contains reserved characters"):
        validate_path(f"/folder/name{char}x")


def test_checks_fail_fast_in_order():
    # Too deep and containing reserved characters: depth is reported first
    with pytest.raises(ValidationError, match="Maximum folder depth"):
        validate_path("/a/b/c/d/e/f?")


def test_segment_length_counts_characters():
    validate_path("/" + "é" * 100)
    with pytest.raises(ValidationError):
        validate_path("/" + "é" * 101)


def test_limits_follow_config(monkeypatch):
    monkeypatch.setattr(config, "MAX_FOLDER_DEPTH", 2)
    validate_path("/a/b")
    with pytest.raises(ValidationError, match="Maximum folder depth is 2"):
        validate_path("/a/b/c")


def test_content_validation():
    validate_content_size("small content")
    validate_content_size("x" * config.MAX_RESOURCE_SIZE)

    with pytest.raises(ValidationError, match="Content size cannot exceed 5242880 bytes"):
        validate_content_size("x" * (config.MAX_RESOURCE_SIZE + 1))


def test_content_size_is_measured_in_bytes(monkeypatch):
    monkeypatch.setattr(config, "MAX_RESOURCE_SIZE", 4)
    assert content_byte_length("éé") == 4
    validate_content_size("éé")
    with pytest.raises(ValidationError):
        validate_content_size("ééa")


def test_folder_of():
    assert folder_of("/folder/subfolder/resource") == "/folder/subfolder"
    assert folder_of("/resource") == "/"
    assert folder_of("/") == "/"
