"""
Filesystem utilities for forgedeps.

This module provides safe helpers for reading managed module lists and
preparing report destinations. All filesystem errors are normalized to
``FileOperationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from forgedeps.utils.logger import get_logger
from forgedeps.constants import MAX_FILE_SIZE
from forgedeps.exceptions import FileOperationError

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Validate and resolve an existing file path."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def prepare_output_file(file_path: PathLike) -> Path:
    """Resolve an output path, create its parent, and remove any old file.

    Report log files are overwritten on every run.

    Returns:
        The resolved path, ready to be opened for writing.
    """
    path = Path(file_path).expanduser().resolve(strict=False)

    if path.exists() and not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="write",
        )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            path.unlink()
            logger.debug("Removed previous report file: %s", path)
    except OSError as exc:
        raise FileOperationError(
            f"Cannot prepare output file: {exc}",
            file_path=str(path),
            operation="write",
            original_error=exc,
        ) from exc

    return path
