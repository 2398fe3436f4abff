"""Persistence port and its SQLAlchemy implementation."""

from coop_kernel.repository.base import LedgerRepository
from coop_kernel.repository.sqlalchemy_repository import SqlAlchemyLedgerRepository

__all__ = ["LedgerRepository", "SqlAlchemyLedgerRepository"]
