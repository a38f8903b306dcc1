"""SQLAlchemy implementation of SequenceRepository

Keeps the invoice counter in the sequence_counters table. Every reservation
is a single atomic UPDATE ... SET n = n + 1 committed in its own transaction,
serialized in-process by an asyncio.Lock.
"""

import asyncio
import logging
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from src.app.repositories.sequence_repository import SequenceRepository
from src.domain.exceptions import StorageError
from src.domain.sequence_counter import SequenceCounter, INVOICE_SEQUENCE

logger = logging.getLogger(__name__)


class SqlAlchemySequenceRepository(SequenceRepository):
    """
    SQLAlchemy implementation of SequenceRepository

    Features:
    - Atomic increment in the database (safe across processes sharing the DB)
    - asyncio.Lock around reserve/release (SQLite has no row locks)
    - Compare-and-set release: only the most recent reservation rolls back
    - Counter row is created on first use at starting_number - 1
    """

    def __init__(self, session_factory, starting_number: int = 1, name: str = INVOICE_SEQUENCE):
        self.session_factory = session_factory
        self.starting_number = starting_number
        self.name = name
        self._lock = asyncio.Lock()

    async def ensure_counter(self) -> None:
        """
        Create the counter row if it does not exist yet

        A concurrent creator winning the insert is not an error.
        """
        async with self.session_factory() as session:
            existing = await session.execute(
                select(SequenceCounter).where(SequenceCounter.name == self.name)
            )
            if existing.scalar_one_or_none() is not None:
                return

            session.add(SequenceCounter(name=self.name, last_issued_number=self.starting_number - 1))
            try:
                await session.commit()
                logger.info(f"Created sequence '{self.name}' starting at {self.starting_number}")
            except IntegrityError:
                await session.rollback()

    async def reserve_next(self) -> int:
        async with self._lock:
            try:
                value = await self._increment()
                if value is None:
                    await self.ensure_counter()
                    value = await self._increment()
            except SQLAlchemyError as e:
                logger.error(f"Failed to reserve invoice number: {e}")
                raise StorageError(f"Could not reserve invoice number: {e}") from e

            if value is None:
                raise StorageError(f"Sequence '{self.name}' is missing")

            logger.info(f"Reserved invoice number {value}")
            return value

    async def _increment(self):
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(SequenceCounter)
                    .where(SequenceCounter.name == self.name)
                    .values(
                        last_issued_number=SequenceCounter.last_issued_number + 1,
                        updated_at=datetime.utcnow(),
                    )
                )
                if result.rowcount != 1:
                    return None

                current = await session.execute(
                    select(SequenceCounter.last_issued_number).where(SequenceCounter.name == self.name)
                )
                return current.scalar_one()

    async def peek_next(self) -> int:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(SequenceCounter.last_issued_number).where(SequenceCounter.name == self.name)
                )
                last = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read sequence '{self.name}': {e}") from e

        if last is None:
            return self.starting_number
        return last + 1

    async def release(self, invoice_number: int) -> bool:
        async with self._lock:
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        result = await session.execute(
                            update(SequenceCounter)
                            .where(SequenceCounter.name == self.name)
                            .where(SequenceCounter.last_issued_number == invoice_number)
                            .values(
                                last_issued_number=invoice_number - 1,
                                updated_at=datetime.utcnow(),
                            )
                        )
                        released = result.rowcount == 1
            except SQLAlchemyError as e:
                logger.error(f"Failed to release invoice number {invoice_number}: {e}")
                raise StorageError(f"Could not release invoice number {invoice_number}: {e}") from e

        if released:
            logger.info(f"Released invoice number {invoice_number}")
        else:
            logger.warning(
                f"Invoice number {invoice_number} not released: a later number was reserved, "
                f"{invoice_number} stays a gap"
            )
        return released
