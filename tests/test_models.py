from datetime import datetime, timezone

import pytest

from gresources.models.resource import (
    FolderView,
    Resource,
    format_timestamp,
    parse_timestamp,
    utc_now,
)


def test_resource_creation():
    resource = Resource.new("/test/resource", "test content")

    assert resource.path == "/test/resource"
    assert resource.content == "test content"
    assert resource.size == 12
    assert resource.owner_id == 1
    assert resource.id is None
    assert resource.created_at == resource.updated_at


def test_resource_size_counts_utf8_bytes():
    resource = Resource.new("/notes", "héllo")
    assert resource.size == 6


def test_folder_path_extraction():
    resource = Resource.new("/folder/subfolder/resource", "content")
    assert resource.folder_path == "/folder/subfolder"


def test_root_level_resource():
    resource = Resource.new("/resource", "content")
    assert resource.folder_path == "/"


def test_resource_path_must_be_absolute():
    with pytest.raises(ValueError):
        Resource.new("relative", "content")


def test_folder_view_parent():
    folder = FolderView(path="/a/b", created_at=utc_now(), children=["/a/b/x"])
    assert folder.folder_path == "/a"


def test_format_timestamp_uses_milliseconds_and_z():
    value = datetime(2024, 5, 1, 12, 30, 0, 123456, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-05-01T12:30:00.123Z"


def test_utc_now_survives_round_trip():
    now = utc_now()
    assert parse_timestamp(format_timestamp(now)) == now


@pytest.mark.parametrize("raw, expected", [
    ("2024-05-01T12:30:00.123Z", datetime(2024, 5, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)),
    ("2024-05-01T14:30:00.123+02:00", datetime(2024, 5, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)),
    ("2024-05-01 12:30:00", datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)),
])
def test_parse_timestamp_accepts_rfc3339_and_legacy(raw, expected):
    assert parse_timestamp(raw) == expected


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")
