"""Pure helpers for hierarchical resource paths. No I/O happens here."""
import re

import config
from gresources.errors import ValidationError

RESERVED_CHARACTERS = frozenset('<>:"|?*')


def normalize_path(path: str) -> str:
    """Collapse repeated slashes and drop trailing ones, keeping the root as ``/``."""
    if not path:
        return path
    return re.sub(r"/+", "/", path).rstrip("/") or "/"


def split_segments(path: str) -> list:
    """Return the non-empty segments of a path."""
    return [segment for segment in path.split('/') if segment]


def validate_path(path: str) -> None:
    """Check a path and raise ValidationError describing the first problem found."""
    if not path:
        raise ValidationError("Path cannot be empty")

    if not path.startswith('/'):
        raise ValidationError("Path must start with '/'")

    segments = split_segments(path)
    if len(segments) > config.MAX_FOLDER_DEPTH:
        raise ValidationError(f"Maximum folder depth is {config.MAX_FOLDER_DEPTH}")

    for segment in segments:
        if len(segment) > config.MAX_RESOURCE_NAME_LENGTH:
            raise ValidationError(
                f"Resource name cannot exceed {config.MAX_RESOURCE_NAME_LENGTH} characters"
            )

        if '..' in segment or '\0' in segment:
            raise ValidationError("Invalid characters in path")

        if any(char in RESERVED_CHARACTERS for char in segment):
            raise ValidationError("Path contains reserved characters")


def content_byte_length(content: str) -> int:
    return len(content.encode('utf-8'))


def validate_content_size(content: str) -> None:
    """Reject content whose UTF-8 encoding is larger than MAX_RESOURCE_SIZE bytes."""
    if content_byte_length(content) > config.MAX_RESOURCE_SIZE:
        raise ValidationError(f"Content size cannot exceed {config.MAX_RESOURCE_SIZE} bytes")


def folder_of(path: str) -> str:
    """Return the parent folder of a path; root-level paths live in ``/``."""
    last_slash = path.rfind('/')
    if last_slash <= 0:
        return '/'
    return path[:last_slash]
