"""
Notification dispatch for announcements.

WHAT: Sends the announcement e-mail to every member of a resolved audience.

WHY: One bad address or one mail server hiccup must not stop the rest of
the company from being notified, and the caller needs an honest account of
what happened to each recipient.

HOW: Every recipient produces exactly one RecipientResult:
- SKIPPED_INVALID_EMAIL: empty or malformed address, no send attempted
- FAILED: the renderer or transport raised, or the transport reported failure
- SENT: the transport accepted the message

The DispatchReport is folded from those results. There is no retry and
no queue; dispatch runs inside the triggering request.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from app.core.config import settings
from app.models.announcement import Announcement
from app.services.audience import Employee, is_valid_email
from app.services.email import EmailService
from app.services.email_template_service import AnnouncementEmailRenderer

logger = logging.getLogger(__name__)


class RecipientOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED_INVALID_EMAIL = "skipped_invalid_email"


@dataclass(frozen=True)
class RecipientResult:
    """What happened to one recipient."""

    employee_id: int
    email: Optional[str]
    outcome: RecipientOutcome
    error: Optional[str] = None
    message_id: Optional[str] = None


@dataclass(frozen=True)
class DispatchReport:
    """
    Aggregate dispatch outcome.

    ``attempted`` is the audience size; ``sent + failed +
    skipped_invalid_email == attempted`` always holds.
    """

    announcement_id: int
    attempted: int
    sent: int
    failed: int
    skipped_invalid_email: int
    results: List[RecipientResult] = field(default_factory=list)

    @classmethod
    def from_results(
        cls,
        announcement_id: int,
        results: List[RecipientResult],
    ) -> "DispatchReport":
        return cls(
            announcement_id=announcement_id,
            attempted=len(results),
            sent=sum(1 for r in results if r.outcome == RecipientOutcome.SENT),
            failed=sum(1 for r in results if r.outcome == RecipientOutcome.FAILED),
            skipped_invalid_email=sum(
                1 for r in results if r.outcome == RecipientOutcome.SKIPPED_INVALID_EMAIL
            ),
            results=results,
        )


class NotificationDispatcher:
    """
    Sends announcement notifications to an audience.

    Example:
        dispatcher = NotificationDispatcher()
        report = await dispatcher.dispatch(announcement, audience, renderer, transport)
    """

    def __init__(self, max_concurrency: Optional[int] = None):
        """
        Args:
            max_concurrency: Sends in flight at once (defaults to
                DISPATCH_MAX_CONCURRENCY, 1 means sequential)
        """
        self.max_concurrency = max(1, max_concurrency or settings.DISPATCH_MAX_CONCURRENCY)

    async def dispatch(
        self,
        announcement: Announcement,
        audience: Iterable[Employee],
        renderer: AnnouncementEmailRenderer,
        transport: EmailService,
        context: Optional[Dict[str, Any]] = None,
    ) -> DispatchReport:
        """
        Notify every recipient of the audience.

        Args:
            announcement: Announcement being sent
            audience: Resolved audience (snapshotted once, deduplicated by id)
            renderer: Produces (subject, html) per recipient
            transport: Delivers the message
            context: Extra template variables

        Returns:
            DispatchReport, never raises for recipient-level problems
        """
        recipients = _unique_by_id(audience)

        if not recipients:
            logger.info(
                "No recipients to notify",
                extra={"announcement_id": announcement.id},
            )
            return DispatchReport.from_results(announcement.id, [])

        logger.info(
            f"Dispatching announcement to {len(recipients)} recipients",
            extra={
                "announcement_id": announcement.id,
                "recipients": len(recipients),
                "is_company_wide": announcement.is_company_wide,
            },
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(recipient: Employee) -> RecipientResult:
            async with semaphore:
                return await self._deliver_one(
                    announcement, recipient, renderer, transport, context
                )

        if self.max_concurrency == 1:
            results = [await bounded(recipient) for recipient in recipients]
        else:
            results = list(await asyncio.gather(*(bounded(r) for r in recipients)))

        report = DispatchReport.from_results(announcement.id, results)

        logger.info(
            "Announcement dispatch completed",
            extra={
                "announcement_id": announcement.id,
                "attempted": report.attempted,
                "sent": report.sent,
                "failed": report.failed,
                "skipped_invalid_email": report.skipped_invalid_email,
            },
        )

        return report

    async def _deliver_one(
        self,
        announcement: Announcement,
        recipient: Employee,
        renderer: AnnouncementEmailRenderer,
        transport: EmailService,
        context: Optional[Dict[str, Any]],
    ) -> RecipientResult:
        log_context = {
            "announcement_id": announcement.id,
            "employee_id": recipient.id,
            "employee_email": recipient.email,
        }

        if not is_valid_email(recipient.email):
            logger.warning("Skipping employee with invalid email", extra=log_context)
            return RecipientResult(
                employee_id=recipient.id,
                email=recipient.email,
                outcome=RecipientOutcome.SKIPPED_INVALID_EMAIL,
            )

        try:
            subject, html = renderer.render(announcement, recipient, context)
            result = await transport.send(recipient.email, recipient.name, subject, html)
        except Exception as e:
            logger.error(
                f"Failed to send announcement email: {e}",
                extra={**log_context, "error": str(e)},
            )
            return RecipientResult(
                employee_id=recipient.id,
                email=recipient.email,
                outcome=RecipientOutcome.FAILED,
                error=str(e),
            )

        if not result.success:
            logger.error(
                "Announcement email rejected by provider",
                extra={**log_context, "error": result.error, "provider": result.provider},
            )
            return RecipientResult(
                employee_id=recipient.id,
                email=recipient.email,
                outcome=RecipientOutcome.FAILED,
                error=result.error,
            )

        logger.debug("Announcement email sent", extra=log_context)
        return RecipientResult(
            employee_id=recipient.id,
            email=recipient.email,
            outcome=RecipientOutcome.SENT,
            message_id=result.message_id,
        )


def _unique_by_id(audience: Iterable[Employee]) -> List[Employee]:
    """Snapshot the audience in id order, one entry per employee id."""
    seen = set()
    unique = []
    for employee in sorted(audience, key=lambda e: e.id):
        if employee.id in seen:
            continue
        seen.add(employee.id)
        unique.append(employee)
    return unique
