"""
Submission stores - the durable collaborator behind the gateway.

A store exposes one operation, insert(record), which either returns or
raises StoreError. The gateway does not care what sits behind it.

Implementations:
    - SqlSubmissionStore: SQLAlchemy async, one row in `submissions`
    - InMemorySubmissionStore: list-backed, for tests and the demo
"""

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake_gateway.errors import StoreError
from intake_gateway.models import ClientRecord
from intake_gateway.storage.schema import SubmissionModel

logger = logging.getLogger(__name__)


class SubmissionStore(Protocol):
    async def insert(self, record: ClientRecord) -> None:
        """Persist one record. Raises StoreError on failure."""
        ...


class SqlSubmissionStore:
    """Writes each record as one row in the submissions table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert(self, record: ClientRecord) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(SubmissionModel(**record.to_row()))
        except SQLAlchemyError as e:
            raise StoreError(f"insert into submissions failed: {e}") from e

        logger.debug("[STORE] Inserted submission")


class InMemorySubmissionStore:
    """
    List-backed store.

    Set fail_with to a message to make every insert raise StoreError.
    """

    def __init__(self, fail_with: str | None = None):
        self.records: list[dict] = []
        self.fail_with = fail_with
        self.insert_calls = 0

    async def insert(self, record: ClientRecord) -> None:
        self.insert_calls += 1
        if self.fail_with is not None:
            raise StoreError(self.fail_with)
        self.records.append(record.to_row())
