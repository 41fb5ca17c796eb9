"""Exception hierarchy for retryable.

All exceptions inherit from :class:`RetryableError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`retryable.exit_codes`.
The CLI entry point in :func:`retryable.app.main` catches ``RetryableError``
and exits with the appropriate code.

Transport faults raised by :mod:`httpx` never escape the request layer on
their own: the orchestrator retries them and only reports their exhaustion
as :class:`RetriesExceeded`.

Subclass hierarchy::

    RetryableError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- AuthenticationFailed  (exit 3)
    +-- RetriesExceeded       (exit 6)
    +-- ProviderError         (exit 10)
    +-- OperationCancelled    (exit 130)
    +-- ConfigError           (exit 1)
"""

from __future__ import annotations

from typing import Any

from retryable.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROVIDER_ERROR,
    EXIT_RETRIES_EXCEEDED,
)


class RetryableError(Exception):
    """Base exception for all retryable errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`retryable.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RetryableError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthenticationFailed(RetryableError):
    """Raised when the authorization provider could not produce a token.

    Terminal: the credentials do not change between attempts, so the
    orchestrator never retries this.
    """

    exit_code = EXIT_AUTH_FAILURE


class RetriesExceeded(RetryableError):
    """Raised when every attempt ended unauthorized or with a transport fault.

    Args:
        message: Human-readable error description.
        attempts: Number of physical attempts that were made.
        last_outcome: The classified outcome of the final attempt.
    """

    exit_code = EXIT_RETRIES_EXCEEDED

    def __init__(self, message: str, attempts: int = 0, last_outcome: Any = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_outcome = last_outcome


class ProviderError(RetryableError):
    """Raised when an authorization provider cannot be found, loaded, or configured."""

    exit_code = EXIT_PROVIDER_ERROR


class OperationCancelled(RetryableError):
    """Raised by :meth:`~retryable.cancellation.CancellationSignal.guard` when the signal fires.

    The orchestrator converts this into the
    :data:`~retryable.client.outcome.CANCELLED` result, so callers of the
    request layer never see it raised.
    """

    exit_code = EXIT_CANCELLED


class ConfigError(RetryableError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
