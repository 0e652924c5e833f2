"""
timesheet_kernel.services.timesheet_service -- Timesheet lifecycle engine.

Responsibility:
    Owns every mutation of a timesheet: saving drafts, submission and
    resubmission, two-level approval, rejection, admin reopen, draft
    deletion and in-place revision of submitted hours.  Status changes
    are looked up in ``TIMESHEET_WORKFLOW``; approval flags are derived
    from the resulting status.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Ownership / role re-checked on every call (the Actor is trusted
      for identity only).
    - Validation completes before any write; a failed call leaves no
      partial state.
    - At most one Draft and one live sheet per (employee, period): slot
      rows are locked FOR UPDATE, colliding inserts fail on the partial
      unique indexes and surface as DuplicateSubmissionError.
    - ``total_hours`` is recomputed from the lines on every mutation.
    - ``comments`` is append-only.

Failure modes:
    - ValidationError subclasses for bad hours, dates, levels, reasons
      and illegal transitions.
    - ConflictError subclasses for duplicate submissions and stale rows.
    - NotFoundError subclasses for unknown ids / missing drafts.
    - AuthorizationError subclasses for ownership and role failures.

Audit relevance:
    Each transition appends a line to ``comments`` and emits a structured
    log event (``timesheet_submitted``, ``timesheet_approved``, ...).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from timesheet_kernel.domain.actor import Actor
from timesheet_kernel.domain.clock import Clock
from timesheet_kernel.domain.periods import (
    DailyHours,
    Period,
    auto_fill,
    compute_period,
)
from timesheet_kernel.domain.timesheet import (
    LifecycleRules,
    Timesheet,
    TimesheetAction,
    TimesheetStatus,
    append_comment,
    approval_flags,
    next_status,
    total_hours,
    validate_entries,
)
from timesheet_kernel.exceptions import (
    ApprovalOrderError,
    DraftNotFoundError,
    DuplicateSubmissionError,
    EmptyTimesheetError,
    InvalidApprovalLevelError,
    InvalidTransitionError,
    MissingRejectionReasonError,
    NotOwnerError,
    OptimisticLockError,
    RoleRequiredError,
    TimesheetLockedError,
    TimesheetNotFoundError,
    TotalHoursExceededError,
    ValidationError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.timesheet import DailyHoursModel, TimesheetModel
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.timesheet")


class TimesheetService(BaseService[TimesheetModel]):
    """
    Timesheet lifecycle engine.

    Contract:
        Every public method takes the calling ``Actor`` first and returns a
        frozen ``Timesheet`` snapshot (or None).  The session is flushed,
        never committed.

    Guarantees:
        - Approval levels are strictly sequential.
        - Reject is only possible from SUBMITTED or APPROVED_L1.
        - A losing concurrent submit raises DuplicateSubmissionError and
          leaves the caller's transaction usable.

    Non-goals:
        - Reporting queries (see ``TimesheetSelector``).
        - Authentication: the Actor comes from the identity provider.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        rules: LifecycleRules | None = None,
    ):
        super().__init__(session, clock)
        self._rules = rules or LifecycleRules()

    # =========================================================================
    # Employee operations
    # =========================================================================

    def save_draft(
        self,
        actor: Actor,
        employee_id: int,
        period: Period,
        entries: Iterable[DailyHours],
    ) -> Timesheet:
        """
        Create or fully replace the Draft for (employee, period).

        Idempotent: saving the same entries twice yields the same draft.

        Raises:
            NotOwnerError: actor is not the employee.
            ValidationError: hours out of range, duplicate or foreign dates.
        """
        self._require_owner(actor, employee_id)
        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=employee_id,
            period_key=period.period_key,
        ):
            ordered = self._validated(period, entries, TimesheetAction.SAVE_DRAFT)

            with self._guarded_write(employee_id, period.period_key):
                draft = self._find_slot(employee_id, period, draft=True)
                if draft is None:
                    draft = self._new_sheet(employee_id, period)
                    self.session.add(draft)
                self._sync_lines(draft, ordered, drop_missing=True)

            logger.info(
                "timesheet_draft_saved",
                extra={
                    "timesheet_id": str(draft.id),
                    "total_hours": draft.total_hours,
                    "line_count": len(ordered),
                },
            )
            return draft.to_dto()

    def submit(
        self,
        actor: Actor,
        employee_id: int,
        period: Period,
        entries: Iterable[DailyHours],
    ) -> Timesheet:
        """
        Submit hours for (employee, period).

        A Draft for the slot is promoted.  A Rejected or reopened sheet is
        resubmitted in place and any Draft is consumed.  With neither, a new
        sheet is created directly in SUBMITTED.

        Raises:
            NotOwnerError: actor is not the employee.
            ValidationError: as save_draft, plus EmptyTimesheetError and
                TotalHoursExceededError.
            DuplicateSubmissionError: a live sheet exists that is neither
                rejected nor reopened, or a concurrent submit won the slot.
        """
        self._require_owner(actor, employee_id)
        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=employee_id,
            period_key=period.period_key,
        ):
            ordered = self._validated(period, entries, TimesheetAction.SUBMIT)
            self._check_totals(period.period_key, ordered, TimesheetAction.SUBMIT)

            with self._guarded_write(employee_id, period.period_key):
                live = self._find_slot(employee_id, period, draft=False)
                draft = self._find_slot(employee_id, period, draft=True)

                if live is not None:
                    current = TimesheetStatus(live.status)
                    if next_status(
                        current,
                        TimesheetAction.SUBMIT,
                        reopened=live.reopened_at is not None,
                    ) is None:
                        logger.warning(
                            "timesheet_duplicate_submission",
                            extra={
                                "timesheet_id": str(live.id),
                                "existing_status": current.value,
                            },
                        )
                        raise DuplicateSubmissionError(
                            employee_id, period.period_key, current.value
                        )
                    sheet = live
                    note = "Resubmitted"
                    if draft is not None:
                        self.session.delete(draft)
                        # Free the draft slot before the live row changes.
                        self.session.flush()
                elif draft is not None:
                    sheet = draft
                    note = "Submitted"
                else:
                    sheet = self._new_sheet(employee_id, period)
                    self.session.add(sheet)
                    note = "Submitted"

                now = self._clock.now()
                self._sync_lines(sheet, ordered, drop_missing=True)
                self._set_status(sheet, TimesheetStatus.SUBMITTED)
                sheet.submitted_at = now
                sheet.approved_l1_at = None
                sheet.approved_l2_at = None
                sheet.rejected_at = None
                sheet.reopened_at = None
                self._append(sheet, note)

            logger.info(
                "timesheet_submitted",
                extra={
                    "timesheet_id": str(sheet.id),
                    "total_hours": sheet.total_hours,
                    "resubmission": note == "Resubmitted",
                },
            )
            return sheet.to_dto()

    def delete_draft(self, actor: Actor, employee_id: int, period: Period) -> None:
        """
        Delete the Draft for exactly (employee, period).

        Raises:
            NotOwnerError: actor is not the employee.
            DraftNotFoundError: no Draft exists for the slot.
        """
        self._require_owner(actor, employee_id)
        draft = self._find_slot(employee_id, period, draft=True)
        if draft is None:
            raise DraftNotFoundError(employee_id, period.period_key)

        timesheet_id = draft.id
        self.session.delete(draft)
        self.session.flush()

        logger.info(
            "timesheet_draft_deleted",
            extra={
                "timesheet_id": str(timesheet_id),
                "employee_id": employee_id,
                "period_key": period.period_key,
            },
        )

    def prefill_entries(
        self, period: Period, weekdays_only: bool = True
    ) -> tuple[DailyHours, ...]:
        """Suggested entries for an empty form: the default hours on every working day."""
        return auto_fill(period, self._rules.default_hours_per_day, weekdays_only)

    def get_draft(
        self, actor: Actor, employee_id: int, period: Period
    ) -> Timesheet | None:
        """Return the Draft for (employee, period), or None."""
        self._require_owner(actor, employee_id)
        draft = self._find_slot(employee_id, period, draft=True, lock=False)
        return draft.to_dto() if draft is not None else None

    def get_timesheet(self, actor: Actor, timesheet_id: UUID | str) -> Timesheet:
        """
        Return one sheet to its owner or to an approver.

        Raises:
            TimesheetNotFoundError: unknown id.
            NotOwnerError: actor is neither the owner nor an approver.
        """
        sheet = self._load(timesheet_id, lock=False)
        if not actor.owns(sheet.employee_id) and not actor.has_any_role(
            self._rules.approver_roles
        ):
            raise NotOwnerError(actor.employee_id, sheet.employee_id)
        return sheet.to_dto()

    def revise_entries(
        self,
        actor: Actor,
        timesheet_id: UUID | str,
        entries: Iterable[DailyHours],
    ) -> Timesheet:
        """
        Merge per-date hours into a submitted sheet without changing status.

        Dates not mentioned keep their hours.

        Raises:
            TimesheetNotFoundError: unknown id.
            NotOwnerError: actor does not own the sheet.
            TimesheetLockedError: sheet is fully approved.
            InvalidTransitionError: sheet is still a Draft (use save_draft).
            ValidationError: bad hours or dates, or the merged total is out
                of range.
        """
        sheet = self._load(timesheet_id)
        if not actor.owns(sheet.employee_id):
            raise NotOwnerError(actor.employee_id, sheet.employee_id)

        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=sheet.employee_id,
            timesheet_id=sheet.id,
            period_key=sheet.period_key,
        ):
            current = TimesheetStatus(sheet.status)
            if current is TimesheetStatus.APPROVED_L2:
                raise TimesheetLockedError(str(sheet.id), current.value)
            if next_status(current, TimesheetAction.REVISE) is None:
                raise InvalidTransitionError(
                    str(sheet.id), current.value, TimesheetAction.REVISE.value
                )

            period = _period_of(sheet)
            ordered = self._validated(period, entries, TimesheetAction.REVISE)

            merged = {line.work_date: line.to_dto() for line in sheet.daily_hours}
            merged.update((e.work_date, e) for e in ordered)
            self._check_totals(
                sheet.period_key, merged.values(), TimesheetAction.REVISE
            )

            with self._guarded_write(sheet.employee_id, sheet.period_key, sheet.id):
                self._sync_lines(sheet, ordered, drop_missing=False)

            logger.info(
                "timesheet_entries_revised",
                extra={
                    "status": current.value,
                    "total_hours": sheet.total_hours,
                    "revised_dates": [e.work_date for e in ordered],
                },
            )
            return sheet.to_dto()

    # =========================================================================
    # Approver operations
    # =========================================================================

    def approve(
        self,
        actor: Actor,
        timesheet_id: UUID | str,
        level: int,
        comment: str | None = None,
    ) -> Timesheet:
        """
        Record a level-1 or level-2 approval.

        Raises:
            RoleRequiredError: actor is not an approver.
            InvalidApprovalLevelError: level not in {1, 2}.
            TimesheetNotFoundError: unknown id.
            ApprovalOrderError: level 2 before level 1.
            InvalidTransitionError: sheet is not awaiting this level.
        """
        self._require_role(actor, self._rules.approver_roles, "approve")
        if level not in (1, 2):
            raise InvalidApprovalLevelError(level)

        sheet = self._load(timesheet_id)
        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=sheet.employee_id,
            timesheet_id=sheet.id,
            period_key=sheet.period_key,
        ):
            current = TimesheetStatus(sheet.status)
            if level == 2 and not approval_flags(current)[0]:
                logger.warning(
                    "timesheet_approval_out_of_order",
                    extra={"status": current.value},
                )
                raise ApprovalOrderError(str(sheet.id))

            action = (
                TimesheetAction.APPROVE_L1 if level == 1 else TimesheetAction.APPROVE_L2
            )
            target = self._transition_target(sheet, current, action)

            entry = f"Level {level} Approval"
            if comment and comment.strip():
                entry = f"{entry}: {comment.strip()}"

            with self._guarded_write(sheet.employee_id, sheet.period_key, sheet.id):
                now = self._clock.now()
                self._set_status(sheet, target)
                if level == 1:
                    sheet.approved_l1_at = now
                else:
                    sheet.approved_l2_at = now
                self._append(sheet, entry)

            logger.info(
                "timesheet_approved",
                extra={
                    "approval_level": level,
                    "from_status": current.value,
                    "status": target.value,
                },
            )
            return sheet.to_dto()

    def reject(
        self, actor: Actor, timesheet_id: UUID | str, reason: str
    ) -> Timesheet:
        """
        Reject a sheet awaiting approval.

        Raises:
            RoleRequiredError: actor is not an approver.
            MissingRejectionReasonError: blank reason.
            TimesheetNotFoundError: unknown id.
            InvalidTransitionError: sheet is a Draft, already rejected, or
                fully approved.
        """
        self._require_role(actor, self._rules.approver_roles, "reject")
        if reason is None or not reason.strip():
            raise MissingRejectionReasonError(str(timesheet_id))
        reason = reason.strip()

        sheet = self._load(timesheet_id)
        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=sheet.employee_id,
            timesheet_id=sheet.id,
            period_key=sheet.period_key,
        ):
            current = TimesheetStatus(sheet.status)
            target = self._transition_target(sheet, current, TimesheetAction.REJECT)

            with self._guarded_write(sheet.employee_id, sheet.period_key, sheet.id):
                self._set_status(sheet, target)
                sheet.rejected_at = self._clock.now()
                sheet.rejection_reason = reason
                self._append(sheet, f"Rejected: {reason}")

            logger.info(
                "timesheet_rejected",
                extra={"from_status": current.value, "reason": reason},
            )
            return sheet.to_dto()

    def reopen(self, actor: Actor, timesheet_id: UUID | str) -> Timesheet:
        """
        Reopen a sheet for edits.

        Every non-Draft status returns to SUBMITTED with approvals cleared
        and ``reopened_at`` set, which makes the sheet resubmittable.  A
        Draft keeps its status and only gains the reopen comment.

        Raises:
            RoleRequiredError: actor does not hold a reopen role.
            TimesheetNotFoundError: unknown id.
        """
        self._require_role(actor, self._rules.reopen_roles, "reopen")
        sheet = self._load(timesheet_id)

        with LogContext.bind(
            actor_id=actor.employee_id,
            employee_id=sheet.employee_id,
            timesheet_id=sheet.id,
            period_key=sheet.period_key,
        ):
            current = TimesheetStatus(sheet.status)
            target = self._transition_target(sheet, current, TimesheetAction.REOPEN)

            with self._guarded_write(sheet.employee_id, sheet.period_key, sheet.id):
                if current is not TimesheetStatus.DRAFT:
                    self._set_status(sheet, target)
                    sheet.approved_l1_at = None
                    sheet.approved_l2_at = None
                    sheet.rejected_at = None
                    sheet.reopened_at = self._clock.now()
                self._append(sheet, self._rules.reopen_comment)

            logger.info(
                "timesheet_reopened",
                extra={"from_status": current.value, "status": target.value},
            )
            return sheet.to_dto()

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_owner(self, actor: Actor, employee_id: int) -> None:
        if not actor.owns(employee_id):
            logger.warning(
                "timesheet_not_owner",
                extra={"actor_employee_id": actor.employee_id, "owner_id": employee_id},
            )
            raise NotOwnerError(actor.employee_id, employee_id)

    def _require_role(
        self, actor: Actor, roles: tuple[str, ...], action: str
    ) -> None:
        if not actor.has_any_role(roles):
            logger.warning(
                "timesheet_role_required",
                extra={
                    "actor_employee_id": actor.employee_id,
                    "role": actor.role.value,
                    "action": action,
                },
            )
            raise RoleRequiredError(
                actor.employee_id, actor.role.value, tuple(roles), action
            )

    def _validated(
        self,
        period: Period,
        entries: Iterable[DailyHours],
        action: TimesheetAction,
    ) -> tuple[DailyHours, ...]:
        try:
            return validate_entries(
                period, entries, self._rules.max_hours_per_day
            )
        except ValidationError as exc:
            logger.warning(
                "timesheet_validation_failed",
                extra={"action": action.value, "error_code": exc.code},
            )
            raise

    def _check_totals(
        self,
        period_key: str,
        entries: Iterable[DailyHours],
        action: TimesheetAction,
    ) -> None:
        total = total_hours(entries)
        if total <= 0:
            exc: ValidationError = EmptyTimesheetError(period_key)
        elif total > self._rules.max_total_hours:
            exc = TotalHoursExceededError(total, self._rules.max_total_hours)
        else:
            return
        logger.warning(
            "timesheet_validation_failed",
            extra={"action": action.value, "error_code": exc.code, "total_hours": total},
        )
        raise exc

    def _transition_target(
        self,
        sheet: TimesheetModel,
        current: TimesheetStatus,
        action: TimesheetAction,
    ) -> TimesheetStatus:
        target = next_status(current, action, reopened=sheet.reopened_at is not None)
        if target is None:
            logger.warning(
                "timesheet_invalid_transition",
                extra={"status": current.value, "action": action.value},
            )
            raise InvalidTransitionError(str(sheet.id), current.value, action.value)
        return target

    def _load(self, timesheet_id: UUID | str, lock: bool = True) -> TimesheetModel:
        try:
            key = timesheet_id if isinstance(timesheet_id, UUID) else UUID(str(timesheet_id))
        except ValueError:
            raise TimesheetNotFoundError(str(timesheet_id)) from None

        sheet = self.session.get(
            TimesheetModel,
            key,
            populate_existing=True,
            with_for_update=lock or None,
        )
        if sheet is None:
            raise TimesheetNotFoundError(str(key))
        return sheet

    def _find_slot(
        self,
        employee_id: int,
        period: Period,
        *,
        draft: bool,
        lock: bool = True,
    ) -> TimesheetModel | None:
        draft_status = TimesheetStatus.DRAFT.value
        stmt = select(TimesheetModel).where(
            TimesheetModel.employee_id == employee_id,
            TimesheetModel.period_key == period.period_key,
            TimesheetModel.status == draft_status
            if draft
            else TimesheetModel.status != draft_status,
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    @staticmethod
    def _new_sheet(employee_id: int, period: Period) -> TimesheetModel:
        return TimesheetModel(
            employee_id=employee_id,
            period_type=period.period_type.value,
            year=period.year,
            month=period.month,
            week_number=period.week_number,
            period_key=period.period_key,
            start_date=period.start_date,
            end_date=period.end_date,
            status=TimesheetStatus.DRAFT.value,
            approval_l1=False,
            approval_l2=False,
            daily_hours=[],
        )

    @staticmethod
    def _set_status(sheet: TimesheetModel, status: TimesheetStatus) -> None:
        sheet.status = status.value
        sheet.approval_l1, sheet.approval_l2 = approval_flags(status)

    def _append(self, sheet: TimesheetModel, entry: str) -> None:
        sheet.comments = append_comment(
            sheet.comments, entry, self._rules.comment_separator
        )

    @staticmethod
    def _sync_lines(
        sheet: TimesheetModel,
        entries: tuple[DailyHours, ...],
        *,
        drop_missing: bool,
    ) -> None:
        # Lines are updated in place per date; a delete and re-insert of the
        # same date in one flush would violate uq_daily_hours_timesheet_date.
        existing = {line.work_date: line for line in sheet.daily_hours}
        wanted = {e.work_date: e for e in entries}

        if drop_missing:
            for day, line in existing.items():
                if day not in wanted:
                    sheet.daily_hours.remove(line)

        for day, entry in wanted.items():
            line = existing.get(day)
            if line is None:
                sheet.daily_hours.append(
                    DailyHoursModel(
                        work_date=day,
                        hours=entry.hours,
                        is_weekend=entry.is_weekend,
                        is_holiday=entry.is_holiday,
                    )
                )
            elif line.hours != entry.hours:
                line.hours = entry.hours

        sheet.daily_hours = sorted(sheet.daily_hours, key=lambda line: line.work_date)
        new_total = total_hours(line.to_dto() for line in sheet.daily_hours)
        if sheet.total_hours is None or sheet.total_hours != new_total:
            sheet.total_hours = new_total

    @contextmanager
    def _guarded_write(
        self,
        employee_id: int,
        period_key: str,
        timesheet_id: UUID | None = None,
    ) -> Iterator[None]:
        """Run the body in a SAVEPOINT and translate constraint failures."""
        try:
            with self.session.begin_nested():
                yield
                self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "timesheet_slot_conflict",
                extra={"employee_id": employee_id, "period_key": period_key},
            )
            raise DuplicateSubmissionError(employee_id, period_key) from exc
        except StaleDataError as exc:
            logger.warning(
                "timesheet_stale_write",
                extra={"timesheet_id": str(timesheet_id)},
            )
            raise OptimisticLockError("Timesheet", str(timesheet_id)) from exc


def _period_of(sheet: TimesheetModel) -> Period:
    return compute_period(sheet.period_type, sheet.year, sheet.month, sheet.week_number)
