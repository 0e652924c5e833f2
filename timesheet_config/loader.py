"""
Policy Loader (``timesheet_config.loader``).

Responsibility
--------------
Loads a YAML policy file and parses it into a frozen ``TimesheetPolicy``.
The single public entry point for runtime config is
``timesheet_config.get_active_policy()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Hour limits are parsed as Decimal (never float) and must satisfy
  0 <= default_hours_per_day <= max_hours_per_day <= 24 and
  max_total_hours > 0.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range or non-numeric limits  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from timesheet_config.schema import TimesheetPolicy

_KNOWN_ROLES = frozenset({"employee", "manager", "client", "admin"})
_HOURS_CAP = Decimal("24")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if path does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{field_name} must be a number, got {value!r}") from None


def parse_roles(values: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(values, list) or not values:
        raise ValueError(f"{field_name} must be a non-empty list of roles")
    roles = tuple(str(v).strip().lower() for v in values)
    unknown = sorted(set(roles) - _KNOWN_ROLES)
    if unknown:
        raise ValueError(f"{field_name} contains unknown roles: {', '.join(unknown)}")
    return roles


def parse_policy(data: dict[str, Any]) -> TimesheetPolicy:
    """Parse a policy dict into a TimesheetPolicy."""
    hours = data["hours"]
    roles = data["roles"]
    comments = data.get("comments", {})

    max_per_day = parse_decimal(hours["max_hours_per_day"], "max_hours_per_day")
    max_total = parse_decimal(hours["max_total_hours"], "max_total_hours")
    default_per_day = parse_decimal(
        hours.get("default_hours_per_day", "8"), "default_hours_per_day"
    )

    if not Decimal("0") < max_per_day <= _HOURS_CAP:
        raise ValueError(f"max_hours_per_day must be in (0, 24], got {max_per_day}")
    if max_total <= 0:
        raise ValueError(f"max_total_hours must be positive, got {max_total}")
    if not Decimal("0") <= default_per_day <= max_per_day:
        raise ValueError(
            f"default_hours_per_day must be in [0, {max_per_day}], got {default_per_day}"
        )

    return TimesheetPolicy(
        policy_id=str(data.get("policy_id", "default")),
        version=int(data.get("version", 1)),
        max_hours_per_day=max_per_day,
        max_total_hours=max_total,
        default_hours_per_day=default_per_day,
        approver_roles=parse_roles(roles["approvers"], "roles.approvers"),
        reopen_roles=parse_roles(roles["reopen"], "roles.reopen"),
        comment_separator=str(comments.get("separator", "\n\n")),
        reopen_comment=str(
            comments.get("reopen", "Timesheet reopened by admin for edits")
        ),
        checksum=compute_checksum(data),
    )


def load_policy(path: Path) -> TimesheetPolicy:
    return parse_policy(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
