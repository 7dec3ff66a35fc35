"""
Announcement view statistics.

WHAT: Reach figures for an announcement, scoped to its audience.

WHY: "30% of Mumbai has read this" is only meaningful when the
denominator is the population the announcement actually targeted, and the
numerator only counts views from that population.

HOW: The caller resolves the audience once; the aggregator intersects it
with the recorded views. Scoped announcements additionally report one
representative branch and one representative department (lowest id of
each targeting set).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, List, Optional, Set

from app.models.announcement import Announcement
from app.services.audience import Employee
from app.services.view_tracker import ViewTracker

logger = logging.getLogger(__name__)


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Percentage of ``numerator`` over ``denominator``, rounded half up.

    Returns 0 when the denominator is 0.
    """
    if denominator == 0:
        return 0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class TargetBreakdown:
    """Figures for one branch or department."""

    id: int
    name: str
    total: int
    viewed: int
    percentage: int


@dataclass(frozen=True)
class AnnouncementStatistics:
    view_count: int
    total_employees: int
    view_percentage: int
    department_stats: List[TargetBreakdown] = field(default_factory=list)
    branch_stats: List[TargetBreakdown] = field(default_factory=list)


class StatisticsAggregator:
    """
    Aggregates view records over a resolved audience.

    Example:
        aggregator = StatisticsAggregator(ViewTracker(session))
        stats = await aggregator.aggregate(announcement, audience)
    """

    def __init__(self, view_tracker: ViewTracker):
        self.view_tracker = view_tracker

    async def aggregate(
        self,
        announcement: Announcement,
        audience: Iterable[Employee],
    ) -> AnnouncementStatistics:
        """
        Compute statistics for an announcement.

        Args:
            announcement: Announcement with departments/branches loaded
            audience: Resolved audience of the announcement

        Returns:
            AnnouncementStatistics
        """
        audience = frozenset(audience)
        viewed_ids = await self.view_tracker.viewed_employee_ids(announcement.id)

        view_count = sum(1 for employee in audience if employee.id in viewed_ids)
        total = len(audience)

        department_stats: List[TargetBreakdown] = []
        branch_stats: List[TargetBreakdown] = []

        if not announcement.is_company_wide:
            branch = _lowest_id(announcement.branches)
            if branch is not None:
                branch_stats.append(
                    _breakdown(
                        branch.id,
                        branch.name,
                        audience,
                        viewed_ids,
                        lambda employee: employee.branch_id == branch.id,
                    )
                )

            department = _lowest_id(announcement.departments)
            if department is not None:
                department_stats.append(
                    _breakdown(
                        department.id,
                        department.name,
                        audience,
                        viewed_ids,
                        lambda employee: employee.department_id == department.id,
                    )
                )

        statistics = AnnouncementStatistics(
            view_count=view_count,
            total_employees=total,
            view_percentage=round_half_up(view_count, total),
            department_stats=department_stats,
            branch_stats=branch_stats,
        )

        logger.debug(
            "Aggregated announcement statistics",
            extra={
                "announcement_id": announcement.id,
                "view_count": statistics.view_count,
                "total_employees": statistics.total_employees,
            },
        )

        return statistics


def _lowest_id(targets: Iterable) -> Optional[object]:
    targets = list(targets)
    if not targets:
        return None
    return min(targets, key=lambda target: target.id)


def _breakdown(
    target_id: int,
    name: str,
    audience: Iterable[Employee],
    viewed_ids: Set[int],
    matches: Callable[[Employee], bool],
) -> TargetBreakdown:
    members = [employee for employee in audience if matches(employee)]
    viewed = sum(1 for employee in members if employee.id in viewed_ids)
    return TargetBreakdown(
        id=target_id,
        name=name,
        total=len(members),
        viewed=viewed,
        percentage=round_half_up(viewed, len(members)),
    )
