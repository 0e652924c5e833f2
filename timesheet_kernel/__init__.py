"""
Timesheet Kernel

Period calculation and timesheet approval lifecycle with:
- Pure, deterministic period boundaries (weekly, bi-weekly, monthly)
- Draft / submit / two-level approval / reject / reopen state machine
- One draft and one live submission per employee and period
- Optimistic concurrency on every timesheet row
- Append-only audit comments
"""

__version__ = "0.1.0"
