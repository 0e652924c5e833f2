"""
Tests for TimesheetService -- the timesheet lifecycle engine.

Covers:
- save_draft(): create, idempotent re-save, full replacement, validation
- submit(): draft promotion, direct submission, empty / over-ceiling totals,
  duplicate submission, resubmission after reject and after reopen
- approve(): sequential levels, invalid level, out-of-order, repeat approval
- reject(): reason required, allowed states
- reopen(): clears approvals from every state, a draft only gains the comment
- delete_draft(), get_draft(), get_timesheet(), revise_entries()
- ownership and role checks, structured logs, row version
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select, update

from timesheet_kernel.domain.periods import DailyHours, PeriodType, compute_period
from timesheet_kernel.domain.timesheet import LifecycleRules, TimesheetStatus
from timesheet_kernel.exceptions import (
    ApprovalOrderError,
    ConflictError,
    DraftNotFoundError,
    DuplicateSubmissionError,
    EmptyTimesheetError,
    EntryOutsidePeriodError,
    InvalidApprovalLevelError,
    InvalidHoursError,
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
from timesheet_kernel.models.timesheet import TimesheetModel
from timesheet_kernel.services.timesheet_service import TimesheetService


def _live_count(session, employee_id, period):
    return session.scalar(
        select(func.count())
        .select_from(TimesheetModel)
        .where(
            TimesheetModel.employee_id == employee_id,
            TimesheetModel.period_key == period.period_key,
            TimesheetModel.status != TimesheetStatus.DRAFT.value,
        )
    )


# ---------------------------------------------------------------------------
# save_draft
# ---------------------------------------------------------------------------


class TestSaveDraft:

    def test_creates_draft_with_total(self, service, employee, week1, standard_week):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)

        assert draft.status is TimesheetStatus.DRAFT
        assert draft.total_hours == Decimal("40")
        assert len(draft.entries) == 7
        assert (draft.approval_l1, draft.approval_l2) == (False, False)
        assert draft.submitted_at is None
        assert draft.period_key == "weekly:2025-01:w1"

    def test_idempotent(self, service, employee, week1, standard_week):
        first = service.save_draft(employee, employee.employee_id, week1, standard_week)
        second = service.save_draft(employee, employee.employee_id, week1, standard_week)

        assert second.timesheet_id == first.timesheet_id
        assert second.total_hours == first.total_hours
        assert second.entries == first.entries
        assert second.status is TimesheetStatus.DRAFT

    def test_replaces_entries(self, service, employee, week1, standard_week, entries_for):
        service.save_draft(employee, employee.employee_id, week1, standard_week)
        draft = service.save_draft(
            employee, employee.employee_id, week1, entries_for(week1, [4, 6])
        )

        assert [e.hours for e in draft.entries] == [Decimal("4"), Decimal("6")]
        assert draft.total_hours == Decimal("10")

    def test_zero_total_allowed_for_draft(self, service, employee, week1, entries_for):
        draft = service.save_draft(
            employee, employee.employee_id, week1, entries_for(week1, [0, 0])
        )
        assert draft.total_hours == Decimal("0")

    def test_invalid_hours_rejected(self, service, employee, week1, entries_for):
        with pytest.raises(InvalidHoursError):
            service.save_draft(
                employee, employee.employee_id, week1, entries_for(week1, [8, 25])
            )
        assert service.get_draft(employee, employee.employee_id, week1) is None

    def test_date_outside_period_rejected(self, service, employee, week1, week2, entries_for):
        with pytest.raises(EntryOutsidePeriodError):
            service.save_draft(
                employee, employee.employee_id, week1, entries_for(week2, [8])
            )

    def test_other_employee_forbidden(self, service, other_employee, employee, week1, standard_week):
        with pytest.raises(NotOwnerError):
            service.save_draft(other_employee, employee.employee_id, week1, standard_week)

    def test_admin_cannot_save_for_employee(self, service, admin, employee, week1, standard_week):
        with pytest.raises(NotOwnerError):
            service.save_draft(admin, employee.employee_id, week1, standard_week)

    def test_drafts_are_per_period(self, service, employee, week1, week2, standard_week, entries_for):
        a = service.save_draft(employee, employee.employee_id, week1, standard_week)
        b = service.save_draft(employee, employee.employee_id, week2, entries_for(week2, [8]))
        assert a.timesheet_id != b.timesheet_id

    def test_stored_total_matches_stored_lines(self, session, service, employee, week1, entries_for):
        draft = service.save_draft(
            employee, employee.employee_id, week1,
            entries_for(week1, ["7.25", "0.33", "0.33", "0.34", "8.05"]),
        )
        session.expire_all()

        row = session.get(TimesheetModel, draft.timesheet_id)
        stored_lines = sum((line.hours for line in row.daily_hours), Decimal("0"))
        assert stored_lines == Decimal("16.30")
        assert row.total_hours == stored_lines
        assert draft.total_hours == stored_lines

    def test_sub_cent_hours_rejected_before_write(self, service, employee, week1):
        days = week1.days[:3]
        with pytest.raises(InvalidHoursError):
            service.save_draft(
                employee, employee.employee_id, week1,
                (DailyHours(d.day, Decimal("0.333")) for d in days),
            )
        assert service.get_draft(employee, employee.employee_id, week1) is None

    @pytest.mark.parametrize("hours", [float("nan"), "Infinity", Decimal("-Infinity")])
    def test_non_finite_hours_rejected(self, service, employee, week1, captured_logs, hours):
        with pytest.raises(ValidationError) as exc_info:
            service.save_draft(
                employee, employee.employee_id, week1,
                (DailyHours(d.day, hours) for d in week1.days[:2]),
            )

        assert exc_info.value.code == "INVALID_HOURS"
        warnings = [r for r in captured_logs() if r["message"] == "timesheet_validation_failed"]
        assert warnings[0]["error_code"] == "INVALID_HOURS"

    def test_entries_from_generator(self, service, employee, week1):
        draft = service.save_draft(
            employee, employee.employee_id, week1,
            (DailyHours(d, 8) for d in reversed(week1.working_days)),
        )
        assert [e.work_date for e in draft.entries] == list(week1.working_days)
        assert draft.total_hours == Decimal("40")


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------


class TestSubmit:

    def test_promotes_draft(self, service, employee, week1, standard_week):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)
        sheet = service.submit(employee, employee.employee_id, week1, standard_week)

        assert sheet.timesheet_id == draft.timesheet_id
        assert sheet.status is TimesheetStatus.SUBMITTED
        assert sheet.submitted_at is not None
        assert sheet.total_hours == Decimal("40")
        assert sheet.comments == "Submitted"
        assert service.get_draft(employee, employee.employee_id, week1) is None

    def test_submit_without_draft(self, service, employee, week1, standard_week):
        sheet = service.submit(employee, employee.employee_id, week1, standard_week)
        assert sheet.status is TimesheetStatus.SUBMITTED
        assert (sheet.approval_l1, sheet.approval_l2) == (False, False)

    def test_submitted_entries_replace_draft_entries(self, service, employee, week1, standard_week, entries_for):
        service.save_draft(employee, employee.employee_id, week1, entries_for(week1, [1, 1]))
        sheet = service.submit(employee, employee.employee_id, week1, standard_week)
        assert sheet.total_hours == Decimal("40")
        assert len(sheet.entries) == 7

    def test_zero_hours_rejected_without_state_change(self, service, employee, week1, entries_for):
        draft = service.save_draft(employee, employee.employee_id, week1, entries_for(week1, [8]))

        with pytest.raises(EmptyTimesheetError) as exc_info:
            service.submit(employee, employee.employee_id, week1, entries_for(week1, [0] * 7))

        assert isinstance(exc_info.value, ValidationError)
        current = service.get_draft(employee, employee.employee_id, week1)
        assert current.timesheet_id == draft.timesheet_id
        assert current.status is TimesheetStatus.DRAFT
        assert current.total_hours == Decimal("8")

    def test_total_above_ceiling_rejected(self, service, employee, entries_for):
        month = compute_period(PeriodType.MONTHLY, 2025, 1)
        with pytest.raises(TotalHoursExceededError) as exc_info:
            service.submit(employee, employee.employee_id, month, entries_for(month, [6] * 31))
        assert exc_info.value.ceiling == Decimal("168")

    def test_total_at_ceiling_accepted(self, service, employee, week1, entries_for):
        sheet = service.submit(employee, employee.employee_id, week1, entries_for(week1, [24] * 7))
        assert sheet.total_hours == Decimal("168")

    def test_configurable_ceiling(self, session, deterministic_clock, employee, week1, standard_week):
        strict = TimesheetService(
            session, deterministic_clock, LifecycleRules(max_total_hours=Decimal("37.5"))
        )
        with pytest.raises(TotalHoursExceededError):
            strict.submit(employee, employee.employee_id, week1, standard_week)

    def test_duplicate_submission(self, service, employee, week1, standard_week, submitted):
        with pytest.raises(DuplicateSubmissionError) as exc_info:
            service.submit(employee, employee.employee_id, week1, standard_week)

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.existing_status == "submitted"
        assert exc_info.value.period_key == week1.period_key

    def test_session_usable_after_conflict(self, session, service, employee, week1, standard_week, submitted):
        with pytest.raises(DuplicateSubmissionError):
            service.submit(employee, employee.employee_id, week1, standard_week)

        assert _live_count(session, employee.employee_id, week1) == 1
        assert service.get_timesheet(employee, submitted.timesheet_id).status is TimesheetStatus.SUBMITTED

    def test_duplicate_after_approval(self, service, employee, admin, week1, standard_week, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        with pytest.raises(DuplicateSubmissionError):
            service.submit(employee, employee.employee_id, week1, standard_week)

    def test_other_employee_forbidden(self, service, other_employee, employee, week1, standard_week):
        with pytest.raises(NotOwnerError):
            service.submit(other_employee, employee.employee_id, week1, standard_week)


# ---------------------------------------------------------------------------
# Full lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:

    def test_draft_submit_approve_approve(self, service, employee, admin, week1, standard_week):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)
        assert draft.status is TimesheetStatus.DRAFT
        assert draft.total_hours == Decimal("40")

        sheet = service.submit(employee, employee.employee_id, week1, standard_week)
        assert sheet.status is TimesheetStatus.SUBMITTED

        sheet = service.approve(admin, sheet.timesheet_id, 1)
        assert sheet.status is TimesheetStatus.APPROVED_L1
        assert (sheet.approval_l1, sheet.approval_l2) == (True, False)
        assert sheet.approved_l1_at is not None

        sheet = service.approve(admin, sheet.timesheet_id, 2, comment="Looks good")
        assert sheet.status is TimesheetStatus.APPROVED_L2
        assert (sheet.approval_l1, sheet.approval_l2) == (True, True)
        assert sheet.approved_l2_at is not None
        assert sheet.comments == (
            "Submitted\n\nLevel 1 Approval\n\nLevel 2 Approval: Looks good"
        )

    def test_reject_then_resubmit(self, service, employee, admin, week1, standard_week, submitted, entries_for):
        rejected = service.reject(admin, submitted.timesheet_id, "Missing Friday hours")

        assert rejected.status is TimesheetStatus.REJECTED
        assert (rejected.approval_l1, rejected.approval_l2) == (False, False)
        assert "Rejected: Missing Friday hours" in rejected.comments
        assert rejected.rejection_reason == "Missing Friday hours"
        assert rejected.rejected_at is not None

        again = service.submit(
            employee, employee.employee_id, week1, entries_for(week1, [8, 8, 8, 8, 9, 0, 0])
        )
        assert again.timesheet_id == submitted.timesheet_id
        assert again.status is TimesheetStatus.SUBMITTED
        assert (again.approval_l1, again.approval_l2) == (False, False)
        assert again.rejected_at is None
        assert again.total_hours == Decimal("41")
        assert again.comments.endswith("Resubmitted")
        assert "Rejected: Missing Friday hours" in again.comments

    def test_resubmit_consumes_draft(self, service, employee, admin, week1, standard_week, submitted, entries_for):
        service.reject(admin, submitted.timesheet_id, "Fix Monday")
        service.save_draft(employee, employee.employee_id, week1, entries_for(week1, [7]))

        again = service.submit(employee, employee.employee_id, week1, standard_week)

        assert again.timesheet_id == submitted.timesheet_id
        assert service.get_draft(employee, employee.employee_id, week1) is None

    def test_reject_from_level_one(self, service, admin, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        rejected = service.reject(admin, submitted.timesheet_id, "Wrong project")
        assert rejected.status is TimesheetStatus.REJECTED
        assert rejected.approval_l1 is False

    def test_row_version_increments(self, service, admin, submitted):
        approved = service.approve(admin, submitted.timesheet_id, 1)
        assert approved.version == submitted.version + 1


# ---------------------------------------------------------------------------
# approve
# ---------------------------------------------------------------------------


class TestApprove:

    def test_level_two_before_level_one(self, service, admin, employee, submitted):
        with pytest.raises(ApprovalOrderError) as exc_info:
            service.approve(admin, submitted.timesheet_id, 2)

        assert isinstance(exc_info.value, ValidationError)
        current = service.get_timesheet(employee, submitted.timesheet_id)
        assert current.status is TimesheetStatus.SUBMITTED
        assert current.approval_l2 is False

    @pytest.mark.parametrize("level", [0, 3, -1])
    def test_invalid_level(self, service, admin, submitted, level):
        with pytest.raises(InvalidApprovalLevelError):
            service.approve(admin, submitted.timesheet_id, level)

    def test_repeat_level_one(self, service, admin, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        with pytest.raises(InvalidTransitionError) as exc_info:
            service.approve(admin, submitted.timesheet_id, 1)
        assert exc_info.value.from_status == "approved_l1"

    def test_draft_cannot_be_approved(self, service, admin, employee, week1, standard_week):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)
        with pytest.raises(InvalidTransitionError):
            service.approve(admin, draft.timesheet_id, 1)

    def test_unknown_timesheet(self, service, admin):
        with pytest.raises(TimesheetNotFoundError):
            service.approve(admin, uuid4(), 1)

    def test_employee_cannot_approve(self, service, employee, submitted):
        with pytest.raises(RoleRequiredError) as exc_info:
            service.approve(employee, submitted.timesheet_id, 1)
        assert exc_info.value.required == ("admin",)

    def test_manager_needs_configuration(self, session, deterministic_clock, service, manager, submitted):
        with pytest.raises(RoleRequiredError):
            service.approve(manager, submitted.timesheet_id, 1)

        permissive = TimesheetService(
            session,
            deterministic_clock,
            LifecycleRules(approver_roles=("admin", "manager", "client")),
        )
        approved = permissive.approve(manager, submitted.timesheet_id, 1)
        assert approved.status is TimesheetStatus.APPROVED_L1

    def test_accepts_string_id(self, service, admin, submitted):
        approved = service.approve(admin, str(submitted.timesheet_id), 1)
        assert approved.timesheet_id == submitted.timesheet_id


# ---------------------------------------------------------------------------
# reject
# ---------------------------------------------------------------------------


class TestReject:

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, service, admin, submitted, reason):
        with pytest.raises(MissingRejectionReasonError):
            service.reject(admin, submitted.timesheet_id, reason)

    def test_fully_approved_cannot_be_rejected(self, service, admin, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        service.approve(admin, submitted.timesheet_id, 2)
        with pytest.raises(InvalidTransitionError):
            service.reject(admin, submitted.timesheet_id, "Too late")

    def test_rejected_cannot_be_rejected_again(self, service, admin, submitted):
        service.reject(admin, submitted.timesheet_id, "First")
        with pytest.raises(InvalidTransitionError):
            service.reject(admin, submitted.timesheet_id, "Second")

    def test_employee_cannot_reject(self, service, employee, submitted):
        with pytest.raises(RoleRequiredError):
            service.reject(employee, submitted.timesheet_id, "No")


# ---------------------------------------------------------------------------
# reopen
# ---------------------------------------------------------------------------


class TestReopen:

    def test_reopen_fully_approved(self, service, admin, employee, week1, submitted, entries_for):
        service.approve(admin, submitted.timesheet_id, 1)
        service.approve(admin, submitted.timesheet_id, 2)

        reopened = service.reopen(admin, submitted.timesheet_id)

        assert reopened.status is TimesheetStatus.SUBMITTED
        assert (reopened.approval_l1, reopened.approval_l2) == (False, False)
        assert reopened.approved_l1_at is None
        assert reopened.approved_l2_at is None
        assert reopened.reopened_at is not None
        assert reopened.is_resubmittable
        assert reopened.comments.endswith("Timesheet reopened by admin for edits")

        again = service.submit(
            employee, employee.employee_id, week1, entries_for(week1, [8, 8, 8, 8, 4])
        )
        assert again.timesheet_id == submitted.timesheet_id
        assert again.reopened_at is None
        assert again.total_hours == Decimal("36")

    def test_reopen_rejected(self, service, admin, submitted):
        service.reject(admin, submitted.timesheet_id, "Hours missing")
        reopened = service.reopen(admin, submitted.timesheet_id)
        assert reopened.status is TimesheetStatus.SUBMITTED
        assert reopened.rejected_at is None

    def test_reopen_draft_appends_comment(self, service, admin, employee, week1, standard_week, captured_logs):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)
        result = service.reopen(admin, draft.timesheet_id)

        assert result.status is TimesheetStatus.DRAFT
        assert result.comments == "Timesheet reopened by admin for edits"
        assert result.reopened_at is None
        assert result.version == draft.version + 1
        events = [r for r in captured_logs() if r["message"] == "timesheet_reopened"]
        assert events[0]["from_status"] == "draft"

    def test_reopened_sheet_can_be_approved(self, service, admin, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        service.reopen(admin, submitted.timesheet_id)
        approved = service.approve(admin, submitted.timesheet_id, 1)
        assert approved.status is TimesheetStatus.APPROVED_L1

    def test_manager_cannot_reopen(self, service, manager, submitted):
        with pytest.raises(RoleRequiredError):
            service.reopen(manager, submitted.timesheet_id)


# ---------------------------------------------------------------------------
# Drafts and reads
# ---------------------------------------------------------------------------


class TestDraftManagement:

    def test_delete_draft(self, service, employee, week1, standard_week):
        service.save_draft(employee, employee.employee_id, week1, standard_week)
        service.delete_draft(employee, employee.employee_id, week1)

        assert service.get_draft(employee, employee.employee_id, week1) is None
        with pytest.raises(DraftNotFoundError):
            service.delete_draft(employee, employee.employee_id, week1)

    def test_delete_draft_wrong_period(self, service, employee, week1, week2, standard_week):
        service.save_draft(employee, employee.employee_id, week1, standard_week)
        with pytest.raises(DraftNotFoundError) as exc_info:
            service.delete_draft(employee, employee.employee_id, week2)
        assert exc_info.value.period_key == week2.period_key

    def test_submitted_sheet_is_not_a_draft(self, service, employee, week1, submitted):
        with pytest.raises(DraftNotFoundError):
            service.delete_draft(employee, employee.employee_id, week1)

    def test_delete_other_employees_draft(self, service, employee, other_employee, week1, standard_week):
        service.save_draft(employee, employee.employee_id, week1, standard_week)
        with pytest.raises(NotOwnerError):
            service.delete_draft(other_employee, employee.employee_id, week1)

    def test_get_timesheet_visibility(self, service, employee, other_employee, admin, submitted):
        assert service.get_timesheet(employee, submitted.timesheet_id).timesheet_id == submitted.timesheet_id
        assert service.get_timesheet(admin, submitted.timesheet_id).employee_id == employee.employee_id
        with pytest.raises(NotOwnerError):
            service.get_timesheet(other_employee, submitted.timesheet_id)

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", str(uuid4())])
    def test_get_unknown_timesheet(self, service, admin, bad_id):
        with pytest.raises(TimesheetNotFoundError):
            service.get_timesheet(admin, bad_id)


# ---------------------------------------------------------------------------
# revise_entries
# ---------------------------------------------------------------------------


class TestReviseEntries:

    def test_merges_per_date(self, service, employee, week1, submitted):
        friday = week1.working_days[4]
        revised = service.revise_entries(
            employee, submitted.timesheet_id, [DailyHours(friday, 6)]
        )

        assert revised.status is TimesheetStatus.SUBMITTED
        assert revised.total_hours == Decimal("38")
        hours = {e.work_date: e.hours for e in revised.entries}
        assert hours[friday] == Decimal("6")
        assert hours[week1.working_days[0]] == Decimal("8")
        assert len(revised.entries) == 7

    def test_keeps_level_one_approval(self, service, admin, employee, week1, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        revised = service.revise_entries(
            employee, submitted.timesheet_id, [DailyHours(week1.start_date, 7)]
        )
        assert revised.status is TimesheetStatus.APPROVED_L1

    def test_locked_once_fully_approved(self, service, admin, employee, week1, submitted):
        service.approve(admin, submitted.timesheet_id, 1)
        service.approve(admin, submitted.timesheet_id, 2)
        with pytest.raises(TimesheetLockedError):
            service.revise_entries(
                employee, submitted.timesheet_id, [DailyHours(week1.start_date, 7)]
            )

    def test_draft_uses_save_draft(self, service, employee, week1, standard_week):
        draft = service.save_draft(employee, employee.employee_id, week1, standard_week)
        with pytest.raises(InvalidTransitionError):
            service.revise_entries(
                employee, draft.timesheet_id, [DailyHours(week1.start_date, 7)]
            )

    def test_cannot_empty_sheet(self, service, employee, week1, entries_for):
        sheet = service.submit(employee, employee.employee_id, week1, entries_for(week1, [8]))
        with pytest.raises(EmptyTimesheetError):
            service.revise_entries(
                employee, sheet.timesheet_id, [DailyHours(week1.start_date, 0)]
            )

    def test_owner_only(self, service, other_employee, week1, submitted):
        with pytest.raises(NotOwnerError):
            service.revise_entries(
                other_employee, submitted.timesheet_id, [DailyHours(week1.start_date, 7)]
            )


# ---------------------------------------------------------------------------
# Concurrency primitives and logging
# ---------------------------------------------------------------------------


class TestOptimisticLocking:

    def test_stale_row_raises_optimistic_lock_error(self, session, service, submitted):
        model = session.get(TimesheetModel, submitted.timesheet_id)
        table = TimesheetModel.__table__
        session.execute(
            update(table)
            .where(table.c.id == submitted.timesheet_id)
            .values(version=table.c.version + 1)
        )

        with pytest.raises(OptimisticLockError) as exc_info:
            with service._guarded_write(model.employee_id, model.period_key, model.id):
                model.comments = "edited elsewhere"

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.entity_id == str(submitted.timesheet_id)


class TestServiceLogging:

    def test_submit_logs_event(self, service, employee, week1, standard_week, captured_logs):
        sheet = service.submit(employee, employee.employee_id, week1, standard_week)

        records = [r for r in captured_logs() if r["message"] == "timesheet_submitted"]
        assert len(records) == 1
        assert records[0]["timesheet_id"] == str(sheet.timesheet_id)
        assert records[0]["period_key"] == week1.period_key
        assert records[0]["actor_id"] == str(employee.employee_id)

    def test_validation_failure_logged_as_warning(self, service, employee, week1, entries_for, captured_logs):
        with pytest.raises(EmptyTimesheetError):
            service.submit(employee, employee.employee_id, week1, entries_for(week1, [0]))

        warnings = [r for r in captured_logs() if r["message"] == "timesheet_validation_failed"]
        assert warnings
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["error_code"] == "EMPTY_TIMESHEET"

    def test_context_cleared_after_call(self, service, employee, week1, standard_week):
        from timesheet_kernel.logging_config import LogContext

        service.save_draft(employee, employee.employee_id, week1, standard_week)
        assert LogContext.get_all() == {}


class TestPrefill:

    def test_default_hours_on_working_days(self, service, week1):
        entries = service.prefill_entries(week1)
        assert [e.hours for e in entries] == [Decimal("8")] * 5 + [Decimal("0")] * 2

    def test_configured_default(self, session, deterministic_clock, week1):
        service = TimesheetService(
            session, deterministic_clock, LifecycleRules(default_hours_per_day=Decimal("7.5"))
        )
        entries = service.prefill_entries(week1, weekdays_only=False)
        assert len(entries) == 7
        assert all(e.hours == Decimal("7.5") for e in entries)
