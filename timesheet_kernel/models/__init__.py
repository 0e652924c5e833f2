"""ORM models for the timesheet kernel."""

from timesheet_kernel.models.timesheet import DailyHoursModel, TimesheetModel

__all__ = [
    "DailyHoursModel",
    "TimesheetModel",
]
