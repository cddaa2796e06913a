"""Input normalization and formatting helpers."""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.\-_]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    """Loose shape check: something@something.something, no whitespace."""
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def sanitize_filename(name: str) -> str:
    """Replace characters unsafe for storage keys with underscores."""
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def export_filename(title: str, extension: str) -> str:
    """`My Proposal!` -> `my_proposal_.docx`."""
    return f"{_NON_ALNUM.sub('_', (title or 'proposal').lower())}.{extension}"


def format_file_size(num_bytes: int) -> str:
    """Human readable size: 0 Bytes, 1.5 KB, 2.25 MB."""
    if not num_bytes:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    size = float(num_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{round(size, 2):g} {units[index]}"
