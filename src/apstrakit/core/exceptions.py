"""apstrakit exception hierarchy."""

from __future__ import annotations

from typing import Any


class ApstraKitError(Exception):
    """Base exception for all apstrakit errors."""


class ConfigError(ApstraKitError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


# ---------------------------------------------------------------------------
# Parse errors: returned immediately, never retried
# ---------------------------------------------------------------------------


class ParseError(ApstraKitError, ValueError):
    """Raised when a raw value cannot be converted. ``raw`` holds the offending input."""

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw


class PortRangeParseError(ParseError):
    """Raised for a malformed or out-of-range port token."""


class EnumParseError(ParseError):
    """Raised when a wire string is not a member of a closed enum."""


class IdentityError(ParseError):
    """Raised when a new object id cannot be minted."""


class PolicyParseError(ParseError):
    """Raised when a policy or rule document cannot be parsed or fails validation."""


class CtParseError(ParseError):
    """Raised when a connectivity template document cannot be parsed."""


# ---------------------------------------------------------------------------
# Programmer-error guards: fail fast, never retried
# ---------------------------------------------------------------------------


class BuildError(ApstraKitError):
    """Raised when a policy tree is built in an illegal way."""


class AlreadyBuiltError(BuildError):
    """Raised when a pipeline or batch sibling is built a second time."""


class StructuralPolicyTypeError(BuildError):
    """Raised when wrapping a policy whose declared type is pipeline, batch or none."""


class AttributeEncodingError(BuildError):
    """Raised when an attribute payload cannot be marshaled to its wire form."""


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class NotFoundError(ApstraKitError):
    """Raised when a remote object does not exist."""


class RuleLookupTimeoutError(NotFoundError):
    """Raised when a freshly written rule never shows up in its policy."""

    def __init__(self, label: str, policy_id: str, attempts: int, elapsed: float) -> None:
        super().__init__(
            f"rule {label!r} not found in policy {policy_id!r} "
            f"after {attempts} attempts within {elapsed:.3f}s"
        )
        self.label = label
        self.policy_id = policy_id
        self.attempts = attempts
        self.elapsed = elapsed


class MultipleMatchError(ApstraKitError):
    """Raised when a lookup expected one match and found several."""


class QueryError(ApstraKitError):
    """Raised when a graph query cannot be executed or decoded."""


# ---------------------------------------------------------------------------
# Transport and cancellation
# ---------------------------------------------------------------------------


class ApiError(ApstraKitError):
    """
    Raised by request executors for a failed API call.

    apstrakit passes these through unmodified.
    """

    def __init__(self, status: int, message: str = "", body: Any = None) -> None:
        super().__init__(f"API error {status}: {message}" if message else f"API error {status}")
        self.status = status
        self.message = message
        self.body = body


class OperationCancelledError(ApstraKitError):
    """Raised when the caller cancels the request context."""


class DeadlineExceededError(OperationCancelledError):
    """Raised when the request context deadline passes."""
