"""
BaseSelector -- common base for read-only query objects.

Selectors never add, delete, flush or commit, and hand back frozen DTOs
rather than ORM instances so callers cannot mutate persisted state through
them.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from timesheet_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    def __init__(self, session: Session):
        self.session = session
