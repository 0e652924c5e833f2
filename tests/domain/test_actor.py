"""Tests for the Actor value object."""

import pytest

from timesheet_kernel.domain.actor import Actor, Role


class TestActor:

    def test_role_coerced_from_string(self):
        actor = Actor(5, "Admin")
        assert actor.role is Role.ADMIN

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            Actor(5, "superuser")

    def test_owns(self):
        actor = Actor(5, Role.EMPLOYEE)
        assert actor.owns(5)
        assert not actor.owns(6)

    def test_has_any_role(self):
        manager = Actor(5, Role.MANAGER)
        assert manager.has_any_role(["admin", "manager"])
        assert manager.has_any_role((Role.MANAGER,))
        assert not manager.has_any_role(("admin",))

    def test_frozen(self):
        actor = Actor(5, Role.EMPLOYEE)
        with pytest.raises(AttributeError):
            actor.employee_id = 6
