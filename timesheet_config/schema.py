"""
Timesheet policy schema.

The human-authored YAML policy is parsed into these frozen types by
``timesheet_config.loader``.  Kernel services never see this module; they
receive ``LifecycleRules`` built by ``timesheet_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TimesheetPolicy:
    """Limits, permissions and comment texts for the timesheet lifecycle."""

    policy_id: str
    version: int
    max_hours_per_day: Decimal
    max_total_hours: Decimal
    default_hours_per_day: Decimal
    approver_roles: tuple[str, ...]
    reopen_roles: tuple[str, ...]
    comment_separator: str
    reopen_comment: str
    checksum: str = ""
