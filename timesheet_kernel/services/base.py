"""
BaseService -- common constructor for write-side kernel services.

Services work inside the caller's transaction: they add, modify and
``flush()``, and may open SAVEPOINTs with ``session.begin_nested()``, but
never commit or roll back the outer transaction.  A boundary that chains
several calls (for example save_draft then submit) gets one atomic unit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from timesheet_kernel.db.base import Base
from timesheet_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Contract:
        Receives the caller's ``Session`` and an optional ``Clock``
        (``SystemClock`` when omitted).

    Non-goals:
        Transaction lifecycle and read-side reporting (``selectors/``).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()
