"""Built-in CLI sub-commands for retryable.

* :mod:`~retryable.commands.profile` -- create, list, show, and remove
  API profiles.

The request commands (``get``, ``post``, ...) live in :mod:`retryable.app`
because they share the root callback's options directly.
"""
