"""
Canonical workflow types (``timesheet_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  Guard, Transition, and
Workflow are defined once; the timesheet lifecycle is declared with them
in ``domain.timesheet``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* At most one transition matches a (state, action, satisfied guards) query.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the service does, and
    passes the names of satisfied guards to ``Workflow.find``.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions other than
    administrative overrides.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"{t.from_state}->{t.to_state} references an unknown state"
                )

    def find(
        self,
        from_state: str,
        action: str,
        satisfied_guards: frozenset[str] = frozenset(),
    ) -> Transition | None:
        """Return the transition for (from_state, action), honouring guards."""
        for t in self.transitions:
            if t.from_state != from_state or t.action != action:
                continue
            if t.guard is None or t.guard.name in satisfied_guards:
                return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        """Distinct actions declared from ``state`` (guards not evaluated)."""
        seen: dict[str, None] = {}
        for t in self.transitions:
            if t.from_state == state:
                seen.setdefault(t.action, None)
        return tuple(seen)
