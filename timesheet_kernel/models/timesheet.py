"""
Module: timesheet_kernel.models.timesheet
Responsibility: ORM persistence for timesheets and their daily-hours lines.

Architecture position: Kernel > Models.  May import from db/base.py and
    the pure domain layer (for DTO conversion) only.

Invariants enforced:
    - One Draft per (employee_id, period_key): partial unique index
      ``uq_timesheets_one_draft``.
    - One live (non-Draft) sheet per (employee_id, period_key): partial
      unique index ``uq_timesheets_one_live``.
    - At most one line per date per timesheet: UNIQUE(timesheet_id, work_date).
    - Status values limited by a check constraint; hours limited to 0..24.
    - ``version`` is the mapper version counter; a stale UPDATE raises
      StaleDataError.

Failure modes:
    - IntegrityError when a concurrent writer already holds the slot.
    - StaleDataError when the row changed since it was loaded.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from timesheet_kernel.domain.periods import DailyHours
    from timesheet_kernel.domain.timesheet import Timesheet


class TimesheetModel(TrackedBase):
    """Persistent timesheet aggregate root.

    Contract:
        ``status`` is written only by TimesheetService through the workflow
        table.  ``approval_l1``/``approval_l2`` mirror the status.
    """

    __tablename__ = "timesheets"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved_l1', 'approved_l2', 'rejected')",
            name="ck_timesheets_valid_status",
        ),
        CheckConstraint(
            "period_type IN ('weekly', 'biweekly', 'monthly')",
            name="ck_timesheets_valid_period_type",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_timesheets_month"),
        Index(
            "uq_timesheets_one_draft",
            "employee_id", "period_key",
            unique=True,
            postgresql_where=text("status = 'draft'"),
            sqlite_where=text("status = 'draft'"),
        ),
        Index(
            "uq_timesheets_one_live",
            "employee_id", "period_key",
            unique=True,
            postgresql_where=text("status <> 'draft'"),
            sqlite_where=text("status <> 'draft'"),
        ),
        Index("ix_timesheets_status_submitted", "status", "submitted_at"),
        Index("ix_timesheets_employee_period", "employee_id", "year", "month"),
    )

    employee_id: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    period_key: Mapped[str] = mapped_column(String(40), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    approval_l1: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approval_l2: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(7, 2), nullable=False, default=Decimal("0"),
    )

    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    approved_l1_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    approved_l2_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    rejected_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    reopened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    daily_hours: Mapped[list["DailyHoursModel"]] = relationship(
        "DailyHoursModel",
        back_populates="timesheet",
        cascade="all, delete-orphan",
        order_by="DailyHoursModel.work_date",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Timesheet {self.id} employee={self.employee_id} "
            f"{self.period_key} status={self.status}>"
        )

    def to_dto(self) -> Timesheet:
        """Convert ORM model to frozen domain DTO."""
        from timesheet_kernel.domain.periods import compute_period
        from timesheet_kernel.domain.timesheet import (
            Timesheet as TimesheetDTO,
            TimesheetStatus,
        )

        return TimesheetDTO(
            timesheet_id=self.id,
            employee_id=self.employee_id,
            period=compute_period(
                self.period_type, self.year, self.month, self.week_number
            ),
            status=TimesheetStatus(self.status),
            entries=tuple(line.to_dto() for line in self.daily_hours),
            approval_l1=self.approval_l1,
            approval_l2=self.approval_l2,
            submitted_at=self.submitted_at,
            approved_l1_at=self.approved_l1_at,
            approved_l2_at=self.approved_l2_at,
            rejected_at=self.rejected_at,
            reopened_at=self.reopened_at,
            comments=self.comments,
            rejection_reason=self.rejection_reason,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class DailyHoursModel(TrackedBase):
    """One line of hours on a timesheet."""

    __tablename__ = "timesheet_daily_hours"

    __table_args__ = (
        UniqueConstraint(
            "timesheet_id", "work_date", name="uq_daily_hours_timesheet_date",
        ),
        CheckConstraint(
            "hours >= 0 AND hours <= 24", name="ck_daily_hours_range",
        ),
    )

    timesheet_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("timesheets.id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    is_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    timesheet: Mapped[TimesheetModel] = relationship(
        "TimesheetModel", back_populates="daily_hours",
    )

    def __repr__(self) -> str:
        return f"<DailyHours {self.work_date} {self.hours}>"

    def to_dto(self) -> DailyHours:
        from timesheet_kernel.domain.periods import DailyHours as DailyHoursDTO

        return DailyHoursDTO(
            work_date=self.work_date,
            hours=Decimal(self.hours),
            is_holiday=self.is_holiday,
        )
