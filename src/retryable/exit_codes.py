"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~retryable.exceptions.RetryableError` subclass.
Shell wrappers can inspect the exit code to tell an authentication
failure apart from an exhausted retry budget without parsing stderr.

Example::

    $ retryable get /orders
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no token could be obtained
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The authorization provider could not produce a token."""

EXIT_RETRIES_EXCEEDED = 6
"""Every attempt failed with a transport fault or an unauthorized response."""

EXIT_PROVIDER_ERROR = 10
"""An authorization provider failed to load or was misconfigured."""

EXIT_CANCELLED = 130
"""The operation was cancelled (Ctrl-C or deadline) before it completed."""
