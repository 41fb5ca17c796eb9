"""Built-in authorization providers.

Each provider lives in its own sub-package and is registered with
:class:`~retryable.auth.manager.AuthManager` by
:func:`~retryable.auth.manager.create_default_manager`.
"""
