"""Scoped transactions for multi-statement store operations.

Every composite write runs inside ``TransactionCoordinator.atomic``: one
session, one transaction, one commit at the end, bounded by a deadline. Any
way out of the block other than a clean exit rolls the transaction back
before the error propagates, and the session is always closed.

Keyed rows touched by one transaction (reviewer rows, team members) must be
written in ``sorted_keys`` order so two transactions that overlap on keys
acquire row locks in the same order and cannot wait on each other in a cycle.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import Settings
from models.errors import DomainError, ErrorKind


logger = logging.getLogger(__name__)


def sorted_keys(keys: Iterable[str]) -> List[str]:
    """Deterministic write order for keyed rows within one transaction."""
    return sorted(keys)


class TransactionCoordinator:
    def __init__(self, session_maker: async_sessionmaker, settings: Settings):
        self._session_maker = session_maker
        self.settings = settings

    @property
    def tx_timeout(self) -> float:
        return self.settings.tx_timeout

    @property
    def bulk_tx_timeout(self) -> float:
        return self.settings.bulk_tx_timeout

    @asynccontextmanager
    async def atomic(self, operation: str, timeout: Optional[float] = None) -> AsyncIterator[AsyncSession]:
        """Run the block as one all-or-nothing unit.

        Commits once when the block exits cleanly. Domain errors pass through
        unchanged, timeouts and database faults become ``INTERNAL`` and
        anything else is logged and re-raised, always after rollback.
        """
        deadline = timeout if timeout is not None else self.tx_timeout
        session = self._session_maker()
        try:
            async with asyncio.timeout(deadline):
                async with session.begin():
                    await self._bound_lock_wait(session, deadline)
                    yield session
        except DomainError:
            raise
        except TimeoutError as exc:
            logger.error("transaction timed out", extra={"operation": operation, "timeout": deadline})
            raise DomainError(ErrorKind.INTERNAL, f"{operation}: transaction timed out") from exc
        except SQLAlchemyError as exc:
            logger.error("transaction failed", extra={"operation": operation, "error": str(exc)})
            raise DomainError(ErrorKind.INTERNAL, f"{operation}: transaction failed") from exc
        except Exception:
            logger.exception("unexpected fault in transaction", extra={"operation": operation})
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def read(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session for read-only work. Nothing is committed."""
        session = self._session_maker()
        try:
            async with asyncio.timeout(self.tx_timeout):
                await session.connection(execution_options={"read_only": True})
                yield session
        except DomainError:
            raise
        except TimeoutError as exc:
            logger.error("read timed out", extra={"operation": operation})
            raise DomainError(ErrorKind.INTERNAL, f"{operation}: read timed out") from exc
        except SQLAlchemyError as exc:
            logger.error("read failed", extra={"operation": operation, "error": str(exc)})
            raise DomainError(ErrorKind.INTERNAL, f"{operation}: read failed") from exc
        finally:
            await session.close()

    async def _bound_lock_wait(self, session: AsyncSession, deadline: float) -> None:
        # SQLite waits on its busy timeout; Postgres needs an explicit bound
        if session.bind.dialect.name == "postgresql":
            await session.execute(text(f"SET LOCAL lock_timeout = {int(deadline * 1000)}"))
