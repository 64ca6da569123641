"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write service in the kernel.  Services receive a SQLAlchemy
    ``Session`` and use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back the outer transaction.  Savepoints they
    open themselves are theirs to release.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from drawer_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``; the caller controls transaction
          boundaries.

    Non-goals:
        - Does NOT provide list/report queries; those belong in
          ``drawer_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
