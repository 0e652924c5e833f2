"""
Actor -- the authenticated caller as seen by the kernel.

The identity provider (login/JWT) lives outside the kernel; it hands every
service call an ``Actor``.  The kernel trusts the values but re-checks
ownership and role on every mutating operation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Portal roles."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    CLIENT = "client"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated caller: employee id plus role."""

    employee_id: int
    role: Role

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(str(self.role).lower()))

    def owns(self, employee_id: int) -> bool:
        return self.employee_id == employee_id

    def has_any_role(self, roles: Iterable[Role | str]) -> bool:
        return self.role.value in {Role(r).value for r in roles}
