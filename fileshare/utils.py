"""Utility helper functions for the file sharing server."""

import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath, PureWindowsPath
from typing import Callable
from urllib.parse import quote

Clock = Callable[[], datetime]


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def clean_filename(filename: str) -> str:
    """
    Reduce a client-supplied filename to its final path component.

    Args:
        filename: Name as sent by the client (may contain directories)

    Returns:
        Base name, or "untitled" when nothing usable remains
    """
    name = PureWindowsPath(PurePosixPath(filename or "").name).name.strip()
    return name or "untitled"


def content_disposition(filename: str) -> str:
    """
    Build an ``attachment`` Content-Disposition header value.

    Includes an ASCII fallback plus the RFC 5987 ``filename*`` form so
    non-ASCII names survive.
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "").replace("\\", "") or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def file_suffix(filename: str) -> str:
    """
    Extension of a filename including the dot (e.g. ".pdf"), or "".
    """
    return PurePosixPath(filename).suffix
