"""
Timesheet domain types (``timesheet_kernel.domain.timesheet``).

Responsibility
--------------
Pure value objects and rules for the timesheet lifecycle: the status
enum, the single transition table, derivation of approval flags from
status, entry validation, total computation, and the frozen snapshot
returned to callers.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  May import only from
``domain/workflow``, ``domain/periods`` and ``exceptions``.

Invariants enforced
-------------------
* Status is the single source of truth.  ``TIMESHEET_WORKFLOW`` is the
  only place that says which action moves which status where, and
  ``approval_flags`` is the only place approval booleans come from.
* Approval levels are strictly sequential: approve_l2 is declared only
  from APPROVED_L1.
* Reject is declared from SUBMITTED and APPROVED_L1; a fully approved
  sheet must be reopened first.
* Reopen is declared from every status and always appends its audit
  comment.  A draft stays a draft; every other status returns to
  SUBMITTED.
* Submit from SUBMITTED requires the ``reopened`` guard; submit from
  REJECTED is always allowed (resubmission).
* ``total_hours`` is always the sum of the current entries.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from timesheet_kernel.domain.periods import (
    DEFAULT_HOURS_PER_DAY,
    MAX_HOURS_PER_DAY,
    DailyHours,
    Period,
)
from timesheet_kernel.domain.workflow import Guard, Transition, Workflow
from timesheet_kernel.exceptions import (
    DuplicateEntryDateError,
    EntryOutsidePeriodError,
    InvalidHoursError,
)


class TimesheetStatus(str, Enum):
    """Timesheet lifecycle states."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED_L1 = "approved_l1"
    APPROVED_L2 = "approved_l2"
    REJECTED = "rejected"


class TimesheetAction(str, Enum):
    """Actions that drive the lifecycle."""

    SAVE_DRAFT = "save_draft"
    SUBMIT = "submit"
    APPROVE_L1 = "approve_l1"
    APPROVE_L2 = "approve_l2"
    REJECT = "reject"
    REOPEN = "reopen"
    REVISE = "revise"


REOPENED = Guard(
    name="reopened",
    description="An administrator reopened the sheet for edits since its last submission",
)

_S = TimesheetStatus
_A = TimesheetAction


def _t(
    from_status: TimesheetStatus,
    to_status: TimesheetStatus,
    action: TimesheetAction,
    guard: Guard | None = None,
) -> Transition:
    return Transition(from_status.value, to_status.value, action.value, guard)


TIMESHEET_WORKFLOW = Workflow(
    name="timesheet",
    description="Employee timesheet with two-level approval",
    initial_state=_S.DRAFT.value,
    states=tuple(s.value for s in TimesheetStatus),
    transitions=(
        _t(_S.DRAFT, _S.DRAFT, _A.SAVE_DRAFT),
        _t(_S.DRAFT, _S.SUBMITTED, _A.SUBMIT),
        _t(_S.REJECTED, _S.SUBMITTED, _A.SUBMIT),
        _t(_S.SUBMITTED, _S.SUBMITTED, _A.SUBMIT, REOPENED),
        _t(_S.SUBMITTED, _S.APPROVED_L1, _A.APPROVE_L1),
        _t(_S.APPROVED_L1, _S.APPROVED_L2, _A.APPROVE_L2),
        _t(_S.SUBMITTED, _S.REJECTED, _A.REJECT),
        _t(_S.APPROVED_L1, _S.REJECTED, _A.REJECT),
        _t(_S.DRAFT, _S.DRAFT, _A.REOPEN),
        _t(_S.SUBMITTED, _S.SUBMITTED, _A.REOPEN),
        _t(_S.APPROVED_L1, _S.SUBMITTED, _A.REOPEN),
        _t(_S.APPROVED_L2, _S.SUBMITTED, _A.REOPEN),
        _t(_S.REJECTED, _S.SUBMITTED, _A.REOPEN),
        _t(_S.SUBMITTED, _S.SUBMITTED, _A.REVISE),
        _t(_S.APPROVED_L1, _S.APPROVED_L1, _A.REVISE),
        _t(_S.REJECTED, _S.REJECTED, _A.REVISE),
    ),
    terminal_states=(_S.APPROVED_L2.value,),
)


def next_status(
    current: TimesheetStatus,
    action: TimesheetAction,
    *,
    reopened: bool = False,
) -> TimesheetStatus | None:
    """Target status for ``action`` from ``current``, or None if not allowed."""
    guards = frozenset({REOPENED.name}) if reopened else frozenset()
    transition = TIMESHEET_WORKFLOW.find(current.value, action.value, guards)
    if transition is None:
        return None
    return TimesheetStatus(transition.to_state)


def approval_flags(status: TimesheetStatus) -> tuple[bool, bool]:
    """(approval_l1, approval_l2) implied by ``status``."""
    if status is TimesheetStatus.APPROVED_L2:
        return True, True
    if status is TimesheetStatus.APPROVED_L1:
        return True, False
    return False, False


def awaiting_level(status: TimesheetStatus) -> int | None:
    """Approval level a sheet is waiting for, if any."""
    if status is TimesheetStatus.SUBMITTED:
        return 1
    if status is TimesheetStatus.APPROVED_L1:
        return 2
    return None


def approval_label(status: TimesheetStatus) -> str:
    approval_l1, approval_l2 = approval_flags(status)
    if approval_l1 and approval_l2:
        return "Fully Approved"
    if approval_l1:
        return "Level 1 Approved"
    return "Pending Approval"


@dataclass(frozen=True)
class LifecycleRules:
    """
    Tunable limits and permissions for the lifecycle.

    Built from configuration by ``timesheet_config.bridges``; the defaults
    here are the shipped policy.
    """

    max_hours_per_day: Decimal = MAX_HOURS_PER_DAY
    max_total_hours: Decimal = Decimal("168")
    default_hours_per_day: Decimal = DEFAULT_HOURS_PER_DAY
    approver_roles: tuple[str, ...] = ("admin",)
    reopen_roles: tuple[str, ...] = ("admin",)
    comment_separator: str = "\n\n"
    reopen_comment: str = "Timesheet reopened by admin for edits"


def total_hours(entries: Iterable[DailyHours]) -> Decimal:
    return sum((e.hours for e in entries), Decimal("0"))


def validate_entries(
    period: Period,
    entries: Iterable[DailyHours],
    max_hours_per_day: Decimal = MAX_HOURS_PER_DAY,
) -> tuple[DailyHours, ...]:
    """
    Validate daily entries against the period and return them ordered by date.

    Raises:
        InvalidHoursError: hours outside [0, max_hours_per_day].
        EntryOutsidePeriodError: date outside the period.
        DuplicateEntryDateError: two entries for one date.
    """
    entries = tuple(entries)
    seen: set = set()
    for entry in entries:
        if entry.hours < 0 or entry.hours > max_hours_per_day:
            raise InvalidHoursError(entry.work_date, entry.hours, max_hours_per_day)
        if not period.contains(entry.work_date):
            raise EntryOutsidePeriodError(
                entry.work_date, period.start_date, period.end_date
            )
        if entry.work_date in seen:
            raise DuplicateEntryDateError(entry.work_date)
        seen.add(entry.work_date)
    return tuple(sorted(entries, key=lambda e: e.work_date))


def append_comment(existing: str | None, entry: str, separator: str = "\n\n") -> str:
    """Append an audit entry; earlier entries are never rewritten."""
    if not existing:
        return entry
    return f"{existing}{separator}{entry}"


@dataclass(frozen=True)
class Timesheet:
    """Immutable snapshot of a timesheet aggregate.

    ``approval_l1``/``approval_l2`` are carried for consumers that expect
    the flags, but always equal ``approval_flags(status)``.
    """

    timesheet_id: UUID
    employee_id: int
    period: Period
    status: TimesheetStatus
    entries: tuple[DailyHours, ...] = ()
    approval_l1: bool = False
    approval_l2: bool = False
    submitted_at: datetime | None = None
    approved_l1_at: datetime | None = None
    approved_l2_at: datetime | None = None
    rejected_at: datetime | None = None
    reopened_at: datetime | None = None
    comments: str | None = None
    rejection_reason: str | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_hours(self) -> Decimal:
        return total_hours(self.entries)

    @property
    def period_key(self) -> str:
        return self.period.period_key

    @property
    def is_draft(self) -> bool:
        return self.status is TimesheetStatus.DRAFT

    @property
    def is_resubmittable(self) -> bool:
        return self.status is TimesheetStatus.REJECTED or (
            self.status is TimesheetStatus.SUBMITTED and self.reopened_at is not None
        )

    def to_dict(self) -> dict[str, Any]:
        def _ts(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "timesheet_id": str(self.timesheet_id),
            "employee_id": self.employee_id,
            "period": self.period.to_dict(),
            "status": self.status.value,
            "approval_l1": self.approval_l1,
            "approval_l2": self.approval_l2,
            "approval_label": approval_label(self.status),
            "total_hours": str(self.total_hours),
            "daily_hours": [e.to_dict() for e in self.entries],
            "submitted_at": _ts(self.submitted_at),
            "approved_l1_at": _ts(self.approved_l1_at),
            "approved_l2_at": _ts(self.approved_l2_at),
            "rejected_at": _ts(self.rejected_at),
            "reopened_at": _ts(self.reopened_at),
            "comments": self.comments,
            "rejection_reason": self.rejection_reason,
            "version": self.version,
        }
