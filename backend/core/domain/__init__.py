"""
core.domain: Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler translating those exceptions into responses.
notifications      Synchronous notification creation helper.
transactions       Row locking and post-commit side-effect helpers.
access             Permission guards and permission-scoped queryset selectors.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import defer_until_commit, lock_for_update
    from core.domain.access import require_permission
"""
