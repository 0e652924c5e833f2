"""
Pure domain layer.

This module contains pure value objects and domain logic with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (only the Clock abstraction)
- I/O

All domain objects are immutable and deterministic.
"""

from timesheet_kernel.domain.actor import Actor, Role
from timesheet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from timesheet_kernel.domain.periods import (
    DEFAULT_HOURS_PER_DAY,
    MAX_HOURS_PER_DAY,
    CalendarDay,
    DailyHours,
    Period,
    PeriodType,
    auto_fill,
    build_entries,
    compute_period,
    first_monday,
    is_weekend,
    periods_in_month,
    week_number_for,
)
from timesheet_kernel.domain.timesheet import (
    TIMESHEET_WORKFLOW,
    LifecycleRules,
    Timesheet,
    TimesheetAction,
    TimesheetStatus,
    append_comment,
    approval_flags,
    approval_label,
    awaiting_level,
    next_status,
    total_hours,
    validate_entries,
)
from timesheet_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    # Identity
    "Actor",
    "Role",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Period Calculator
    "DEFAULT_HOURS_PER_DAY",
    "MAX_HOURS_PER_DAY",
    "CalendarDay",
    "DailyHours",
    "Period",
    "PeriodType",
    "auto_fill",
    "build_entries",
    "compute_period",
    "first_monday",
    "is_weekend",
    "periods_in_month",
    "week_number_for",
    # Lifecycle
    "TIMESHEET_WORKFLOW",
    "LifecycleRules",
    "Timesheet",
    "TimesheetAction",
    "TimesheetStatus",
    "append_comment",
    "approval_flags",
    "approval_label",
    "awaiting_level",
    "next_status",
    "total_hours",
    "validate_entries",
    # Workflow primitives
    "Guard",
    "Transition",
    "Workflow",
]
