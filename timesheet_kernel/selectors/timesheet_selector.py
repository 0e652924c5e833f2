"""
Module: timesheet_kernel.selectors.timesheet_selector
Responsibility: Read-side queries over timesheets: an employee's submitted
    history, the approval queue, dashboard counts and the utilization report.
Architecture position: Kernel > Selectors.  Read-only; returns frozen DTOs.

Invariants enforced:
    - Pending means SUBMITTED or APPROVED_L1 (awaiting level 1 or level 2).
    - Utilization counts only fully approved sheets whose whole period lies
      inside the requested window.

Failure modes:
    - ValueError for page < 1, page_size < 1, or an inverted date window.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from timesheet_kernel.domain.clock import Clock, SystemClock
from timesheet_kernel.domain.timesheet import Timesheet, TimesheetStatus, awaiting_level
from timesheet_kernel.logging_config import get_logger
from timesheet_kernel.models.timesheet import TimesheetModel
from timesheet_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.timesheet")

_PENDING = (TimesheetStatus.SUBMITTED.value, TimesheetStatus.APPROVED_L1.value)
_CENT = Decimal("0.01")

DEFAULT_REPORT_DAYS = 30


@dataclass(frozen=True)
class PendingApproval:
    """A sheet in the approval queue."""

    timesheet: Timesheet
    awaiting_level: int
    days_waiting: int

    @property
    def label(self) -> str:
        return f"Awaiting Level {self.awaiting_level}"


@dataclass(frozen=True)
class Page:
    """One page of the approval queue."""

    items: tuple[PendingApproval, ...]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


@dataclass(frozen=True)
class DashboardSummary:
    pending: int
    level1_approved: int
    fully_approved: int
    rejected: int
    drafts: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "level1_approved": self.level1_approved,
            "fully_approved": self.fully_approved,
            "rejected": self.rejected,
            "drafts": self.drafts,
        }


@dataclass(frozen=True)
class EmployeeUtilization:
    employee_id: int
    total_hours: Decimal
    timesheet_count: int
    average_hours: Decimal


@dataclass(frozen=True)
class UtilizationReport:
    """Fully approved hours per employee inside [from_date, to_date]."""

    from_date: date
    to_date: date
    employees: tuple[EmployeeUtilization, ...]

    @property
    def total_hours(self) -> Decimal:
        return sum((e.total_hours for e in self.employees), Decimal("0"))

    @property
    def average_hours(self) -> Decimal:
        if not self.employees:
            return Decimal("0")
        return (self.total_hours / len(self.employees)).quantize(_CENT, ROUND_HALF_UP)

    @property
    def employee_count(self) -> int:
        return len(self.employees)


class TimesheetSelector(BaseSelector[TimesheetModel]):
    """Read-only queries for employees, approvers and admins."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def list_submitted(
        self,
        employee_id: int,
        year: int | None = None,
        month: int | None = None,
    ) -> list[Timesheet]:
        """Non-Draft sheets of one employee, newest period first."""
        stmt = select(TimesheetModel).where(
            TimesheetModel.employee_id == employee_id,
            TimesheetModel.status != TimesheetStatus.DRAFT.value,
        )
        if year is not None:
            stmt = stmt.where(TimesheetModel.year == year)
        if month is not None:
            stmt = stmt.where(TimesheetModel.month == month)
        stmt = stmt.order_by(
            TimesheetModel.start_date.desc(),
            TimesheetModel.end_date.desc(),
        )
        return [m.to_dto() for m in self.session.scalars(stmt)]

    def pending_approval(self, page: int = 1, page_size: int = 20) -> Page:
        """
        Sheets awaiting an approval level, oldest submission first.

        Raises:
            ValueError: page or page_size below 1.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        pending = TimesheetModel.status.in_(_PENDING)
        total = self.session.scalar(
            select(func.count()).select_from(TimesheetModel).where(pending)
        ) or 0

        stmt = (
            select(TimesheetModel)
            .where(pending)
            .order_by(TimesheetModel.submitted_at.asc(), TimesheetModel.created_at.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        today = self._clock.today()
        items = tuple(
            PendingApproval(
                timesheet=m.to_dto(),
                awaiting_level=awaiting_level(TimesheetStatus(m.status)),
                days_waiting=_days_since(m.submitted_at, today),
            )
            for m in self.session.scalars(stmt)
        )
        return Page(items=items, page=page, page_size=page_size, total=total)

    def dashboard_summary(self) -> DashboardSummary:
        """Counts of sheets per lifecycle bucket."""
        rows = self.session.execute(
            select(TimesheetModel.status, func.count()).group_by(TimesheetModel.status)
        ).all()
        counts = {status: count for status, count in rows}
        return DashboardSummary(
            pending=sum(counts.get(s, 0) for s in _PENDING),
            level1_approved=counts.get(TimesheetStatus.APPROVED_L1.value, 0),
            fully_approved=counts.get(TimesheetStatus.APPROVED_L2.value, 0),
            rejected=counts.get(TimesheetStatus.REJECTED.value, 0),
            drafts=counts.get(TimesheetStatus.DRAFT.value, 0),
        )

    def utilization_report(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> UtilizationReport:
        """
        Fully approved hours grouped by employee, highest total first.

        The window defaults to the last 30 days ending today.

        Raises:
            ValueError: from_date after to_date.
        """
        to_date = to_date or self._clock.today()
        from_date = from_date or to_date - timedelta(days=DEFAULT_REPORT_DAYS)
        if from_date > to_date:
            raise ValueError(f"from_date {from_date} is after to_date {to_date}")

        stmt = select(TimesheetModel.employee_id, TimesheetModel.total_hours).where(
            TimesheetModel.status == TimesheetStatus.APPROVED_L2.value,
            TimesheetModel.start_date >= from_date,
            TimesheetModel.end_date <= to_date,
        )
        grouped: dict[int, list[Decimal]] = defaultdict(list)
        for employee_id, hours in self.session.execute(stmt):
            grouped[employee_id].append(Decimal(str(hours)))

        employees = [
            EmployeeUtilization(
                employee_id=employee_id,
                total_hours=sum(values, Decimal("0")),
                timesheet_count=len(values),
                average_hours=(sum(values, Decimal("0")) / len(values)).quantize(
                    _CENT, ROUND_HALF_UP
                ),
            )
            for employee_id, values in grouped.items()
        ]
        employees.sort(key=lambda e: (-e.total_hours, e.employee_id))

        logger.debug(
            "utilization_report_built",
            extra={
                "from_date": from_date,
                "to_date": to_date,
                "employee_count": len(employees),
            },
        )
        return UtilizationReport(
            from_date=from_date, to_date=to_date, employees=tuple(employees)
        )


def _days_since(moment: datetime | None, today: date) -> int:
    if moment is None:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return max((today - moment.date()).days, 0)
