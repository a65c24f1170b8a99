"""
Staking-specific exception hierarchy for vestake.

Provides typed exceptions for lock, vault, stream and factory operations so
that callers can tell bad input, missing permissions, invalid state and
exhausted resources apart. Every error is raised before any state changes.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class StakingError(Exception):
    """Base exception for all staking-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(StakingError):
    """Raised when operation parameters fail validation.

    Examples: zero amount, non-increasing schedule, out-of-range weights.
    """
    pass


class InvalidScheduleError(ValidationError):
    """Raised when reward schedule times or amounts are malformed."""
    pass


class InvalidWeightBoundsError(ValidationError):
    """Raised when weight parameters are negative or have inverted bounds."""
    pass


class InvalidUnlockTimeError(ValidationError):
    """Raised when an unlock time is not in the future or does not extend a lock."""
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when an account lacks the token balance or allowance for a transfer."""
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(StakingError):
    """Raised when the caller is not allowed to perform an operation."""
    pass


class NotLockOwnerError(AuthorizationError):
    """Raised when a caller operates on a lock it does not own."""
    pass


class UnauthorizedError(AuthorizationError):
    """Raised when a caller lacks the role an operation requires."""
    pass


# ==================== State Errors ====================


class StateError(StakingError):
    """Raised when the current state does not permit an operation."""
    pass


class AlreadyInitializedError(StateError):
    """Raised when a one-time initializer is called twice."""
    pass


class NotInitializedError(StateError):
    """Raised when a component is used before it was initialized."""
    pass


class DuplicateTemplateError(StateError):
    """Raised when a staking template key is registered twice."""
    pass


class UnknownTemplateError(StateError):
    """Raised when a staking template key is not registered."""
    pass


class LockNotFoundError(StateError):
    """Raised when a lock id does not exist."""
    pass


class AlreadyWithdrawnError(StateError):
    """Raised when operating on a lock that has already been withdrawn."""
    pass


class LockLimitExceededError(StateError):
    """Raised when an account already holds the maximum number of active locks."""
    pass


class NothingToClaimError(StateError):
    """Raised when a claim would transfer zero rewards."""
    pass


class UnknownStreamError(StateError):
    """Raised when a reward stream id does not exist or is not active."""
    pass


class AlreadySupportedError(StateError):
    """Raised by strict callers when a vault token is registered twice."""
    pass


class UnsupportedTokenError(StateError):
    """Raised when a vault operation names a token the vault does not support."""
    pass


# ==================== Resource Errors ====================


class ResourceError(StakingError):
    """Raised when a shared resource cannot cover an operation."""
    pass


class InsufficientVaultBalanceError(ResourceError):
    """Raised when a vault withdrawal exceeds the recorded token balance."""
    pass


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the error is recoverable and the operation can be retried
    """
    if isinstance(exc, StakingError):
        return exc.recoverable
    return False


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, StakingError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    return context
