"""
Path checks run before any sprite, palette or ROM file is opened
"""

import pathlib
from typing import Union

from .exceptions import ZSPRError

PathLike = Union[str, pathlib.Path]

URI_SCHEMES = ("file:", "http:", "https:", "ftp:", "sftp:")
PROTECTED_PREFIXES = (
    "/bin/", "/dev/", "/etc/", "/lib/", "/proc/", "/sbin/", "/sys/", "/usr/",
    "/System/", "C:/Windows/", "C:/Program Files/",
)


class SecurityError(ZSPRError):
    """Raised when a path is unsafe to read or write"""


def _safe_resolve(file_path: PathLike, action: str) -> pathlib.Path:
    raw = str(file_path)
    if raw.startswith(URI_SCHEMES):
        raise SecurityError(f"URI schemes not allowed: {raw}")
    if raw.startswith("\\\\") or "\\\\?\\" in raw:
        raise SecurityError(f"UNC paths not allowed: {raw}")
    if ".." in pathlib.PurePath(raw).parts:
        raise SecurityError(f"Path traversal attempt detected: {raw}")

    try:
        path = pathlib.Path(file_path).resolve()
    except (OSError, ValueError, RuntimeError) as e:
        raise SecurityError(f"Invalid path {raw}: {e}") from e

    normalized = str(path).replace("\\", "/")
    if normalized.startswith(PROTECTED_PREFIXES):
        raise SecurityError(f"Cannot {action} system directories: {path}")
    if path.exists() and not path.is_file():
        raise SecurityError(f"Path is not a file: {path}")
    return path


def validate_file_path(file_path: PathLike, max_size: int = 10 * 1024 * 1024) -> str:
    """
    Check a file before reading it.

    Args:
        file_path: File to read
        max_size: Largest accepted size in bytes

    Returns:
        Resolved absolute path

    Raises:
        SecurityError: Unsafe path, directory, or file larger than max_size
        FileNotFoundError: The file does not exist
    """
    path = _safe_resolve(file_path, "read from")
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    size = path.stat().st_size
    if size > max_size:
        raise SecurityError(f"File too large: {size} bytes (max {max_size}): {path}")
    return str(path)


def validate_output_path(file_path: PathLike) -> str:
    """
    Check a file before writing it; its directory must already exist.

    Returns:
        Resolved absolute path
    """
    path = _safe_resolve(file_path, "write to")
    if not path.parent.is_dir():
        raise SecurityError(f"Parent directory does not exist: {path.parent}")
    return str(path)
