"""
Common Utility Functions

Provides utility functions for kubexporter including:
- File and directory operations
- Filesystem-safe path segments
- Duration and size parsing and formatting
"""

import re
from datetime import timedelta
from pathlib import Path
from typing import List, Union

INVALID_FILE_CHARS = re.compile(r'[^a-zA-Z0-9.\-]')

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s|d)')
_DURATION_UNITS = {
    'd': 86400.0,
    'h': 3600.0,
    'm': 60.0,
    's': 1.0,
    'ms': 0.001,
}


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_segment(segment: str) -> str:
    """Replace every character outside [a-zA-Z0-9.-] with an underscore"""
    return INVALID_FILE_CHARS.sub('_', segment)


def safe_relative_path(path: str) -> str:
    """
    Sanitize each segment of a slash separated relative path

    Empty segments and '.' are dropped, so 'a//b/./c' becomes 'a/b/c'.
    """
    segments: List[str] = []
    for segment in path.replace('\\', '/').split('/'):
        if segment in ('', '.'):
            continue
        segments.append(safe_segment(segment))
    return '/'.join(segments)


def parse_duration(value: Union[str, int, float, None]) -> timedelta:
    """
    Parse a Go style duration string ('24h', '1h30m', '90s', '2d')

    Plain numbers are read as seconds. Raises ValueError on garbage.
    """
    if value is None or value == '' or value == 0:
        return timedelta(0)
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip().lower()
    if re.fullmatch(r'\d+(\.\d+)?', text):
        return timedelta(seconds=float(text))

    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(seconds=seconds)


def format_size(size_bytes: int) -> str:
    """
    Format byte size in human-readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)

    while size >= 1024 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    if i == 0:
        return f"{size_bytes} {size_names[i]}"
    return f"{size:.1f} {size_names[i]}"


def format_duration(seconds: float) -> str:
    """
    Format duration in human-readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "2h 30m 15s", "1.2s", "350ms")
    """
    if seconds <= 0:
        return "0s"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"

    parts = []

    if seconds >= 3600:
        hours = int(seconds // 3600)
        parts.append(f"{hours}h")
        seconds %= 3600

    if seconds >= 60:
        minutes = int(seconds // 60)
        parts.append(f"{minutes}m")
        seconds %= 60

    if parts:
        if int(seconds):
            parts.append(f"{int(seconds)}s")
    else:
        parts.append(f"{seconds:.1f}s")

    return " ".join(parts)
