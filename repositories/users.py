import logging
from typing import List

from sqlalchemy import func, select, update

from models.domain import User
from models.errors import DomainError, ErrorKind
from models.models import User as UserRow
from services.transaction import TransactionCoordinator


logger = logging.getLogger(__name__)


def to_user(row: UserRow) -> User:
    return User(
        user_id=row.user_id,
        username=row.username,
        team_name=row.team_name,
        is_active=row.isActive,
    )


class UserDirectory:
    """Users and their team membership / active flag."""

    def __init__(self, coordinator: TransactionCoordinator):
        self._tx = coordinator

    async def get_user_by_id(self, user_id: str) -> User:
        async with self._tx.read("users.get") as session:
            row = await session.get(UserRow, user_id)
            if row is None:
                raise DomainError(ErrorKind.USER_NOT_FOUND, f"user '{user_id}' not found")
            return to_user(row)

    async def get_users_by_team(self, team_name: str) -> List[User]:
        async with self._tx.read("users.by_team") as session:
            result = await session.execute(
                select(UserRow)
                .where(UserRow.team_name == team_name)
                .order_by(UserRow.user_id)
            )
            return [to_user(row) for row in result.scalars().all()]

    async def get_active_users_by_team(self, team_name: str, exclude_user_id: str = "") -> List[User]:
        """Active members of the team, without `exclude_user_id`."""
        async with self._tx.read("users.active_by_team") as session:
            query = (
                select(UserRow)
                .where(UserRow.team_name == team_name, UserRow.isActive.is_(True))
                .order_by(UserRow.user_id)
            )
            if exclude_user_id:
                query = query.where(UserRow.user_id != exclude_user_id)
            result = await session.execute(query)
            return [to_user(row) for row in result.scalars().all()]

    async def exists(self, user_id: str) -> bool:
        async with self._tx.read("users.exists") as session:
            result = await session.execute(select(UserRow.user_id).where(UserRow.user_id == user_id))
            return result.first() is not None

    async def set_is_active(self, user_id: str, is_active: bool) -> User:
        async with self._tx.atomic("users.set_is_active") as session:
            result = await session.execute(
                update(UserRow)
                .where(UserRow.user_id == user_id)
                .values(isActive=is_active)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise DomainError(ErrorKind.USER_NOT_FOUND, f"user '{user_id}' not found")
            row = await session.get(UserRow, user_id)
            user = to_user(row)

        logger.info("user active status updated", extra={"user_id": user_id, "is_active": is_active})
        return user

    async def deactivate_team_users(self, team_name: str) -> int:
        """Deactivate every active member of the team. Returns how many changed."""
        async with self._tx.atomic("users.deactivate_team", timeout=self._tx.bulk_tx_timeout) as session:
            result = await session.execute(
                update(UserRow)
                .where(UserRow.team_name == team_name, UserRow.isActive.is_(True))
                .values(isActive=False)
                .execution_options(synchronize_session=False)
            )
            count = result.rowcount

        logger.info("team users deactivated", extra={"team_name": team_name, "count": count})
        return count

    async def count(self) -> int:
        async with self._tx.read("users.count") as session:
            return await session.scalar(select(func.count()).select_from(UserRow))

    async def count_active(self) -> int:
        async with self._tx.read("users.count_active") as session:
            return await session.scalar(
                select(func.count()).select_from(UserRow).where(UserRow.isActive.is_(True))
            )
