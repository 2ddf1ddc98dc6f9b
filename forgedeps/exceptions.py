"""
Custom exception hierarchy for forgedeps.

This module defines structured exception types used across forgedeps.
All exceptions inherit from :class:`ForgeDepsError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

The taxonomy splits into three groups:

- parse failures (:class:`MalformedVersionError`, :class:`MalformedRangeError`)
  which are always surfaced to the caller of the parse;
- registry failures (:class:`NotFoundError`, :class:`TransientError`)
  which the audit absorbs into per-package report content;
- delivery and setup failures (:class:`DeliveryError`, :class:`ConfigError`,
  :class:`ModuleListError`, :class:`FileOperationError`).
"""

from __future__ import annotations

from typing import Any, List, Mapping, MutableMapping, Optional, Sequence


class ForgeDepsError(Exception):
    """Base exception for all forgedeps errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class ParseError(ForgeDepsError):
    """Raised when a version or version range cannot be parsed.

    Args:
        message: Error description.
        text: The offending input.
    """

    __slots__ = ("text",)

    def __init__(self, message: str, *, text: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "input", text)
        super().__init__(message, details)
        self.text = text


class MalformedVersionError(ParseError):
    """Raised when a string is not a well-formed semantic version."""

    __slots__ = ()


class MalformedRangeError(ParseError):
    """Raised when a version range expression cannot be parsed."""

    __slots__ = ()


# ---------------------------------------------------------------------------
# Registry errors
# ---------------------------------------------------------------------------


class RegistryError(ForgeDepsError):
    """Base class for failures reported by a registry client.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        url: URL being accessed, if any.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("package_name", "url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "package", package_name)
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.package_name = package_name
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class NotFoundError(RegistryError):
    """Raised when the registry has no such package."""

    __slots__ = ()


class TransientError(RegistryError):
    """Raised on network failures or unparsable registry responses."""

    __slots__ = ()


# ---------------------------------------------------------------------------
# Delivery, configuration and input errors
# ---------------------------------------------------------------------------


class DeliveryError(ForgeDepsError):
    """Raised when a report sink fails to deliver a report.

    When several sinks fail during one run, a single aggregated
    :class:`DeliveryError` is raised carrying every failure in ``errors``.

    Args:
        message: Error description.
        sink: Name of the failing sink.
        errors: Individual failures collected from several sinks.
    """

    __slots__ = ("sink", "errors")

    def __init__(
        self,
        message: str,
        *,
        sink: Optional[str] = None,
        errors: Optional[Sequence["DeliveryError"]] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "sink", sink)
        if errors:
            details["failed_sinks"] = ", ".join(e.sink or "?" for e in errors)

        super().__init__(message, details)

        self.sink = sink
        self.errors: List[DeliveryError] = list(errors) if errors else []


class ConfigError(ForgeDepsError):
    """Raised when a configuration file is invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Offending option name, if known.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class ModuleListError(ForgeDepsError):
    """Raised when the managed module list cannot be loaded.

    Args:
        message: Error description.
        source: File path or URL of the list.
    """

    __slots__ = ("source",)

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "source", source)
        super().__init__(message, details)
        self.source = source


class FileOperationError(ForgeDepsError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
