"""
BaseService -- abstract base for all services.

Responsibility:
    Provides the common constructor and session-handling contract.  Every
    concrete service receives a SQLAlchemy ``Session`` and persists via
    ``session.flush()``, never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries belong to the caller (``session_scope()`` or a
    test fixture).  Multi-step writes such as a benefit-provider change are
    atomic only because both steps share the caller's transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from contract_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all services.

    Non-goals:
        - Does NOT commit or roll back.
        - Does NOT provide read-only queries; those live in selectors.
    """

    def __init__(self, session: Session):
        self.session = session
