"""Read-only selectors for the timesheet kernel."""

from timesheet_kernel.selectors.base import BaseSelector
from timesheet_kernel.selectors.timesheet_selector import (
    DashboardSummary,
    EmployeeUtilization,
    Page,
    PendingApproval,
    TimesheetSelector,
    UtilizationReport,
)

__all__ = [
    "BaseSelector",
    "DashboardSummary",
    "EmployeeUtilization",
    "Page",
    "PendingApproval",
    "TimesheetSelector",
    "UtilizationReport",
]
