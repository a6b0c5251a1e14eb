"""
core.domain.transactions: Helpers for safe state transitions.

Wraps ``select_for_update`` and ``transaction.on_commit`` into reusable
patterns so that every service layer follows the same concurrency-safe
approach.

Design goals
------------
* State-transition reads always lock the row first (``select_for_update``)
  so two actors racing on the same record are serialised and neither
  observes a stale status.
* Side effects that must only happen for committed work (notifications,
  pushes) are deferred with ``defer_until_commit`` and can never roll the
  transaction back.

Usage::

    from django.db import transaction
    from core.domain.transactions import defer_until_commit, lock_for_update

    with transaction.atomic():
        locked = lock_for_update(Report, report.pk)
        ...
        defer_until_commit(publish, event)
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from django.db import models, transaction

from core.domain.exceptions import NotFound

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")


def defer_until_commit(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """
    Run ``fn(*args, **kwargs)`` once the surrounding transaction commits.

    Nothing runs if the transaction rolls back.  An exception raised by
    ``fn`` is logged with its traceback and swallowed: the work it
    follows is already committed.
    """

    @functools.wraps(fn)
    def _run() -> None:
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.exception("Post-commit callback %s failed", getattr(fn, "__qualname__", fn))

    transaction.on_commit(_run)
