from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

import config
from gresources.services.path_semantics import content_byte_length, folder_of

# Timestamps are stored as RFC3339 with millisecond precision, e.g. 2024-05-01T12:30:00.123Z
LEGACY_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds, so it survives a storage round trip."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp.

    RFC3339 is the canonical format. Rows written by older builds used the
    SQLite ``datetime('now')`` layout, which carries no offset and is read as UTC.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in LEGACY_TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            raise ValueError(f"Unrecognized timestamp format: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Resource(BaseModel):
    id: Optional[int] = None
    owner_id: int = config.DEFAULT_OWNER_ID
    path: str
    content: Optional[str] = None
    size: int = 0
    created_at: datetime
    updated_at: datetime

    @field_validator('path')
    @classmethod
    def validate_path_shape(cls, v):
        if not v.startswith('/'):
            raise ValueError("Resource path must start with '/'")
        return v

    @classmethod
    def new(cls, path: str, content: str, owner_id: Optional[int] = None) -> "Resource":
        now = utc_now()
        return cls(
            owner_id=config.DEFAULT_OWNER_ID if owner_id is None else owner_id,
            path=path,
            content=content,
            size=content_byte_length(content),
            created_at=now,
            updated_at=now,
        )

    @property
    def folder_path(self) -> str:
        return folder_of(self.path)


class FolderView(BaseModel):
    """A folder derived from the resource paths stored beneath it."""

    path: str
    created_at: datetime
    children: List[str] = Field(default_factory=list)

    @property
    def folder_path(self) -> str:
        return folder_of(self.path)
