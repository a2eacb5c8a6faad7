"""
Error types for relay diagnostics

The Gelato REST API and most RPC nodes only hand back free text, so the category of a
failure is usually recovered by substring matching. That is fragile: error strings are
not a stable contract of either service. Fakes in tests pass a category explicitly.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    NONCE = "nonce"
    MISSING_FORWARDER = "missing_forwarder"
    FUNCTION_MISMATCH = "function_mismatch"
    REVERT = "revert"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


# Checked in order, first hit wins
_TEXT_PATTERNS = (
    (ErrorCategory.NONCE, ("nonce",)),
    (ErrorCategory.REVERT, ("call revert exception", "execution reverted")),
    (ErrorCategory.MISSING_FORWARDER, ("forwarder", "contract")),
    (ErrorCategory.FUNCTION_MISMATCH, ("function", "method")),
)
_NEEDLES = dict(_TEXT_PATTERNS)


def mentions(text: str, category: ErrorCategory) -> bool:
    """True when `text` contains one of the patterns for `category`, ignoring order."""
    lowered = (text or "").lower()
    return any(needle in lowered for needle in _NEEDLES.get(category, ()))


def matches_category(error: Exception, category: ErrorCategory) -> bool:
    """
    An explicitly tagged category decides. Otherwise the message is searched for
    `category`'s patterns directly, without the ordered fallback.
    """
    if getattr(error, "tagged", False):
        return error.category is category
    text = str(error)
    body = getattr(error, "body", None)
    if body:
        text = f"{text} {body}"
    return mentions(text, category)


def classify_error(text: str) -> ErrorCategory:
    """Best-effort category from an error message."""
    lowered = (text or "").lower()
    for category, needles in _TEXT_PATTERNS:
        if any(needle in lowered for needle in needles):
            return category
    return ErrorCategory.UNKNOWN


class DiagnosticsError(Exception):
    """Base class for everything this package raises on purpose."""


class ConfigurationError(DiagnosticsError):
    """Missing credentials or malformed configuration, detected before any network call."""


class ChainCallError(DiagnosticsError):
    def __init__(self, message: str, category: Optional[ErrorCategory] = None):
        super().__init__(message)
        self.message = message
        self.tagged = category is not None
        self.category = category or classify_error(message)


class RelayError(DiagnosticsError):
    """A relay submission or lookup that did not produce a task."""

    def __init__(
        self,
        message: str,
        category: Optional[ErrorCategory] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.tagged = category is not None
        self.category = category or classify_error(f"{message} {body or ''}")

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message
