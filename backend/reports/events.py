"""
reports.events: Domain events raised by the report workflow.

A committed transition is announced with the ``report_transitioned``
signal carrying a frozen ``ReportTransitioned`` record.  Receivers
(notifications today, push delivery later) run after the transaction
commits and are isolated from each other: ``send_robust`` collects their
exceptions, which are logged and never reach the workflow caller.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Receivers are called as ``receiver(sender=ReportTransitioned, event=<ReportTransitioned>)``.
report_transitioned = Signal()


@dataclass(frozen=True)
class ReportTransitioned:
    report_id: str
    from_status: str
    to_status: str
    actor_id: int | None
    timestamp: datetime
    message: str = ""

    def as_payload(self) -> dict[str, Any]:
        """JSON-safe dict for storing alongside a notification."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


def publish_transition(event: ReportTransitioned) -> None:
    """Send ``report_transitioned`` and log every receiver that failed."""
    responses = report_transitioned.send_robust(sender=ReportTransitioned, event=event)
    for receiver, result in responses:
        if isinstance(result, Exception):
            logger.error(
                "Receiver %s failed for report %s (%s → %s)",
                getattr(receiver, "__qualname__", receiver),
                event.report_id,
                event.from_status,
                event.to_status,
                exc_info=(type(result), result, result.__traceback__),
            )
