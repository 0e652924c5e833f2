"""
Typed Exception Hierarchy for the Timesheet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The boundary layer (API, UI) must render field-level feedback differently
from workflow-level feedback.  Parsing message strings for that is fragile,
so every error:
  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (dates, hours, ids)

Example:
    try:
        service.submit(actor, employee_id, period, entries)
    except EntryOutsidePeriodError as e:
        highlight_day(e.entry_date)                 # field-level
    except DuplicateSubmissionError as e:
        show_existing(e.employee_id, e.period_key)  # workflow-level

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TimesheetKernelError (base)
    |
    +-- InvalidPeriodError
    |
    +-- ValidationError
    |   +-- InvalidHoursError
    |   +-- EntryOutsidePeriodError
    |   +-- DuplicateEntryDateError
    |   +-- EmptyTimesheetError
    |   +-- TotalHoursExceededError
    |   +-- InvalidApprovalLevelError
    |   +-- ApprovalOrderError
    |   +-- MissingRejectionReasonError
    |   +-- InvalidTransitionError
    |   +-- TimesheetLockedError
    |
    +-- ConflictError
    |   +-- DuplicateSubmissionError
    |   +-- OptimisticLockError
    |
    +-- NotFoundError
    |   +-- TimesheetNotFoundError
    |   +-- DraftNotFoundError
    |
    +-- AuthorizationError
        +-- NotOwnerError
        +-- RoleRequiredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category       | Code                      | When Raised
---------------|---------------------------|-----------------------------------
Period         | INVALID_PERIOD            | Bad type/year/month/week number
---------------|---------------------------|-----------------------------------
Validation     | INVALID_HOURS             | Hours outside [0, 24]
               | ENTRY_OUTSIDE_PERIOD      | Entry date not in period bounds
               | DUPLICATE_ENTRY_DATE      | Two entries for one date
               | EMPTY_TIMESHEET           | Submitting zero total hours
               | TOTAL_HOURS_EXCEEDED      | Total above the sanity ceiling
               | INVALID_APPROVAL_LEVEL    | Level other than 1 or 2
               | APPROVAL_ORDER            | Level 2 before level 1
               | MISSING_REJECTION_REASON  | Blank rejection reason
               | INVALID_TRANSITION        | Action not allowed from status
               | TIMESHEET_LOCKED          | Editing a fully approved sheet
---------------|---------------------------|-----------------------------------
Conflict       | DUPLICATE_SUBMISSION      | Live submission already exists
               | OPTIMISTIC_LOCK_CONFLICT  | Row changed by another writer
---------------|---------------------------|-----------------------------------
Not found      | TIMESHEET_NOT_FOUND       | Unknown timesheet id
               | DRAFT_NOT_FOUND           | No draft for employee/period
---------------|---------------------------|-----------------------------------
Authorization  | NOT_OWNER                 | Actor does not own the timesheet
               | ROLE_REQUIRED             | Actor lacks approver/admin role

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ValidationError -> user corrects input and retries.
2. ConflictError   -> caller re-reads current state, then edits or views.
3. NotFoundError   -> 404 at the boundary.
4. AuthorizationError -> 403 at the boundary.

Validation always completes before any write, so none of these leave a
partial change behind.
===============================================================================
"""

from datetime import date
from decimal import Decimal


class TimesheetKernelError(Exception):
    """
    Base exception for all timesheet kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMESHEET_KERNEL_ERROR"


# Period-related exceptions


class InvalidPeriodError(TimesheetKernelError):
    """Period parameters cannot produce a valid period."""

    code: str = "INVALID_PERIOD"

    def __init__(self, reason: str, **params):
        self.reason = reason
        self.params = params
        super().__init__(f"Invalid period: {reason}")


# Validation exceptions


class ValidationError(TimesheetKernelError):
    """Base exception for input the caller must correct."""

    code: str = "VALIDATION_ERROR"


class InvalidHoursError(ValidationError):
    """Hours for a day are outside the allowed range."""

    code: str = "INVALID_HOURS"

    def __init__(
        self,
        entry_date: date | None,
        hours: Decimal,
        maximum: Decimal,
        reason: str | None = None,
    ):
        self.entry_date = entry_date
        self.hours = hours
        self.maximum = maximum
        self.reason = reason or f"Hours must be between 0 and {maximum}."
        where = f" for {entry_date.isoformat()}" if entry_date else ""
        super().__init__(f"Invalid hours{where}: {hours}. {self.reason}")


class EntryOutsidePeriodError(ValidationError):
    """A daily entry falls outside the period boundaries."""

    code: str = "ENTRY_OUTSIDE_PERIOD"

    def __init__(self, entry_date: date, start_date: date, end_date: date):
        self.entry_date = entry_date
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Entry date {entry_date.isoformat()} is outside period "
            f"{start_date.isoformat()}..{end_date.isoformat()}"
        )


class DuplicateEntryDateError(ValidationError):
    """More than one entry supplied for the same date."""

    code: str = "DUPLICATE_ENTRY_DATE"

    def __init__(self, entry_date: date):
        self.entry_date = entry_date
        super().__init__(f"Duplicate entry for {entry_date.isoformat()}")


class EmptyTimesheetError(ValidationError):
    """Cannot submit a timesheet with zero total hours."""

    code: str = "EMPTY_TIMESHEET"

    def __init__(self, period_key: str):
        self.period_key = period_key
        super().__init__(f"Cannot submit timesheet with zero hours ({period_key})")


class TotalHoursExceededError(ValidationError):
    """Total hours exceed the sanity ceiling."""

    code: str = "TOTAL_HOURS_EXCEEDED"

    def __init__(self, total_hours: Decimal, ceiling: Decimal):
        self.total_hours = total_hours
        self.ceiling = ceiling
        super().__init__(
            f"Total hours ({total_hours}) cannot exceed {ceiling} hours"
        )


class InvalidApprovalLevelError(ValidationError):
    """Approval level is not one of the supported levels."""

    code: str = "INVALID_APPROVAL_LEVEL"

    def __init__(self, level: int):
        self.level = level
        super().__init__(f"Invalid approval level {level}. Must be 1 or 2.")


class ApprovalOrderError(ValidationError):
    """Level 2 approval attempted before level 1."""

    code: str = "APPROVAL_ORDER"

    def __init__(self, timesheet_id: str):
        self.timesheet_id = timesheet_id
        super().__init__(
            f"Level 1 approval required before Level 2 approval "
            f"(timesheet {timesheet_id})"
        )


class MissingRejectionReasonError(ValidationError):
    """Rejection requires a non-empty reason."""

    code: str = "MISSING_REJECTION_REASON"

    def __init__(self, timesheet_id: str):
        self.timesheet_id = timesheet_id
        super().__init__(f"Rejection comment is required (timesheet {timesheet_id})")


class InvalidTransitionError(ValidationError):
    """Requested action is not allowed from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, timesheet_id: str, from_status: str, action: str):
        self.timesheet_id = timesheet_id
        self.from_status = from_status
        self.action = action
        super().__init__(
            f"Cannot {action} timesheet {timesheet_id} in status {from_status}"
        )


class TimesheetLockedError(ValidationError):
    """Fully approved timesheets cannot be modified."""

    code: str = "TIMESHEET_LOCKED"

    def __init__(self, timesheet_id: str, status: str):
        self.timesheet_id = timesheet_id
        self.status = status
        super().__init__(f"Cannot modify timesheet {timesheet_id} in status {status}")


# Conflict exceptions


class ConflictError(TimesheetKernelError):
    """Base exception for state conflicts; caller should re-read and decide."""

    code: str = "CONFLICT"


class DuplicateSubmissionError(ConflictError):
    """A live (non-draft) timesheet already exists for the period."""

    code: str = "DUPLICATE_SUBMISSION"

    def __init__(self, employee_id: int, period_key: str, existing_status: str | None = None):
        self.employee_id = employee_id
        self.period_key = period_key
        self.existing_status = existing_status
        super().__init__(
            f"Timesheet for {period_key} has already been submitted "
            f"by employee {employee_id}"
        )


class OptimisticLockError(ConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Not-found exceptions


class NotFoundError(TimesheetKernelError):
    """Base exception for missing resources."""

    code: str = "NOT_FOUND"


class TimesheetNotFoundError(NotFoundError):
    """Timesheet with given ID was not found."""

    code: str = "TIMESHEET_NOT_FOUND"

    def __init__(self, timesheet_id: str):
        self.timesheet_id = timesheet_id
        super().__init__(f"Timesheet not found: {timesheet_id}")


class DraftNotFoundError(NotFoundError):
    """No draft exists for the employee and period."""

    code: str = "DRAFT_NOT_FOUND"

    def __init__(self, employee_id: int, period_key: str):
        self.employee_id = employee_id
        self.period_key = period_key
        super().__init__(
            f"Draft timesheet not found for employee {employee_id} ({period_key})"
        )


# Authorization exceptions


class AuthorizationError(TimesheetKernelError):
    """Base exception for actor permission failures."""

    code: str = "AUTHORIZATION_ERROR"


class NotOwnerError(AuthorizationError):
    """Actor tried to act on another employee's timesheet."""

    code: str = "NOT_OWNER"

    def __init__(self, actor_id: int, owner_id: int):
        self.actor_id = actor_id
        self.owner_id = owner_id
        super().__init__(
            f"Employee {actor_id} can only manage their own timesheets "
            f"(owner {owner_id})"
        )


class RoleRequiredError(AuthorizationError):
    """Actor does not hold any role permitted for the action."""

    code: str = "ROLE_REQUIRED"

    def __init__(self, actor_id: int, role: str, required: tuple[str, ...], action: str):
        self.actor_id = actor_id
        self.role = role
        self.required = required
        self.action = action
        super().__init__(
            f"Action '{action}' requires one of {', '.join(required)}; "
            f"employee {actor_id} has role {role}"
        )
