"""
Config -> Kernel bridges.

Converts a ``TimesheetPolicy`` into kernel inputs.  This lives in
timesheet_config (the producer) because the kernel must NEVER import
timesheet_config.

Usage:
    from timesheet_config import get_active_policy
    from timesheet_config.bridges import build_lifecycle_rules

    rules = build_lifecycle_rules(get_active_policy())
    service = TimesheetService(session, rules=rules)
"""

from __future__ import annotations

from timesheet_config.schema import TimesheetPolicy
from timesheet_kernel.domain.timesheet import LifecycleRules


def build_lifecycle_rules(policy: TimesheetPolicy) -> LifecycleRules:
    return LifecycleRules(
        max_hours_per_day=policy.max_hours_per_day,
        max_total_hours=policy.max_total_hours,
        default_hours_per_day=policy.default_hours_per_day,
        approver_roles=policy.approver_roles,
        reopen_roles=policy.reopen_roles,
        comment_separator=policy.comment_separator,
        reopen_comment=policy.reopen_comment,
    )
