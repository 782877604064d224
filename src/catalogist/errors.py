"""Exception hierarchy and error logging for Catalogist.

Per-item outcomes (no match, ambiguous identity, provider mismatch,
orphaned mapping) are returned as values, never raised. Only conditions
that stop a unit of work, such as an unavailable store, are exceptions.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path


class CatalogError(Exception):
    """Base exception for all Catalogist errors."""

    pass


class ConfigError(CatalogError):
    """Configuration file could not be read or is invalid."""

    pass


class StoreError(CatalogError):
    """The persistent store rejected an operation."""

    pass


class StoreUnavailableError(StoreError):
    """The persistent store cannot be reached.

    Aborts the affected unit of work only; other units continue.
    """

    pass


class RecordNotFoundError(StoreError):
    """A record addressed by key does not exist."""

    def __init__(self, namespace: str, key: str) -> None:
        self.namespace = namespace
        self.key = key
        super().__init__(f"No record {namespace}/{key}")


def get_friendly_message(error: Exception) -> str:
    """Turn an exception into a short message suitable for the console.

    Args:
        error: The exception to describe.

    Returns:
        A human readable message.
    """
    if isinstance(error, StoreUnavailableError):
        return f"Catalog store is unavailable: {error}"
    if isinstance(error, RecordNotFoundError):
        return f"Not found in catalog: {error.namespace}/{error.key}"
    if isinstance(error, ConfigError):
        return f"Configuration problem: {error}"
    if isinstance(error, CatalogError):
        return str(error)
    if isinstance(error, PermissionError):
        return f"Permission denied: {error.filename or error}"
    if isinstance(error, FileNotFoundError):
        return f"File not found: {error.filename or error}"
    return f"Unexpected error: {error}"


def _get_log_file_path() -> Path:
    """Get the path to the error log file (in exe folder or cwd)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent / "catalogist_errors.log"
    return Path.cwd() / "catalogist_errors.log"


def log_error(error: Exception | str, context: str = "") -> None:
    """Append an error line to the log file.

    Args:
        error: The error (exception or string).
        context: Optional context about where the error occurred.
    """
    try:
        log_path = _get_log_file_path()
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        if isinstance(error, str):
            message = error
            error_type = "Message"
        else:
            message = str(error)
            error_type = type(error).__name__

        log_entry = f"[{timestamp}] {error_type}"
        if context:
            log_entry += f" ({context})"
        log_entry += f": {message}\n"

        with open(log_path, "a", encoding="utf-8") as f:
            f.write(log_entry)
    except OSError:
        # Logging must never take down a scan
        pass
