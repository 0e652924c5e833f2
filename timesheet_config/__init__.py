"""
timesheet_config -- single public entrypoint for timesheet policy.

Responsibility:
    Provides the ONLY way to obtain the timesheet policy at runtime through
    ``get_active_policy()``.

Architecture position:
    Configuration.  Sits above ``timesheet_kernel``; the kernel MUST NEVER
    import from ``timesheet_config``.  ``bridges`` translates the policy
    into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the policy file does not exist.
    - ``ValueError`` / ``KeyError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_policy()`` call emits a
    ``TIMESHEET_POLICY_TRACE`` log entry with the policy id, version and
    checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from timesheet_config.loader import load_policy
from timesheet_config.schema import TimesheetPolicy

_logger = logging.getLogger("timesheet_kernel.config")

_DEFAULT_POLICY_PATH = Path(__file__).parent / "defaults" / "policy.yaml"

POLICY_PATH_ENV = "TIMESHEET_POLICY_PATH"


def get_active_policy(path: Path | str | None = None) -> TimesheetPolicy:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``path``, then the ``TIMESHEET_POLICY_PATH``
    environment variable, then the shipped default.

    Raises:
        FileNotFoundError: If the policy file does not exist.
        ValueError: If the policy fails validation.
        KeyError: If a required section is missing.
    """
    source = Path(path or os.environ.get(POLICY_PATH_ENV) or _DEFAULT_POLICY_PATH)
    policy = load_policy(source)

    _logger.info(
        "TIMESHEET_POLICY_TRACE",
        extra={
            "trace_type": "TIMESHEET_POLICY_TRACE",
            "policy_id": policy.policy_id,
            "policy_version": policy.version,
            "checksum": policy.checksum,
            "source": str(source),
            "approver_roles": list(policy.approver_roles),
        },
    )
    return policy


__all__ = [
    "POLICY_PATH_ENV",
    "TimesheetPolicy",
    "get_active_policy",
]
