"""Kernel services (flush-only; the caller owns the transaction)."""

from timesheet_kernel.services.base import BaseService
from timesheet_kernel.services.timesheet_service import TimesheetService

__all__ = [
    "BaseService",
    "TimesheetService",
]
