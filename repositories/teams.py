import logging

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from models.domain import Team
from models.errors import DomainError, ErrorKind
from models.models import Team as TeamRow, User as UserRow
from repositories.users import to_user
from services.transaction import TransactionCoordinator, sorted_keys


logger = logging.getLogger(__name__)


def _insert(session: AsyncSession):
    """INSERT construct with ON CONFLICT support for the session's dialect."""
    if session.bind.dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


class TeamDirectory:
    def __init__(self, coordinator: TransactionCoordinator):
        self._tx = coordinator

    async def team_exists(self, team_name: str) -> bool:
        async with self._tx.read("teams.exists") as session:
            return await session.get(TeamRow, team_name) is not None

    async def get_by_name(self, team_name: str) -> Team:
        async with self._tx.read("teams.get") as session:
            if await session.get(TeamRow, team_name) is None:
                raise DomainError(ErrorKind.TEAM_NOT_FOUND, f"team '{team_name}' not found")
            result = await session.execute(
                select(UserRow)
                .where(UserRow.team_name == team_name)
                .order_by(UserRow.user_id)
            )
            return Team(
                team_name=team_name,
                members=[to_user(row) for row in result.scalars().all()],
            )

    async def upsert_with_members(self, team: Team) -> bool:
        """
        Create the team if missing and create/update all of its members in one
        transaction. Members are written in user_id order. Returns True when the
        team row was newly created.
        """
        members = {member.user_id: member for member in team.members}

        async with self._tx.atomic("teams.upsert", timeout=self._tx.bulk_tx_timeout) as session:
            insert = _insert(session)
            result = await session.execute(
                insert(TeamRow)
                .values(team_name=team.team_name)
                .on_conflict_do_nothing(index_elements=["team_name"])
            )
            created = result.rowcount == 1

            for user_id in sorted_keys(members):
                member = members[user_id]
                stmt = insert(UserRow).values(
                    user_id=member.user_id,
                    username=member.username,
                    team_name=team.team_name,
                    isActive=member.is_active,
                )
                await session.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["user_id"],
                        set_={
                            "username": stmt.excluded.username,
                            "team_name": stmt.excluded.team_name,
                            "isActive": stmt.excluded.isActive,
                        },
                    )
                )

        logger.info(
            "team created with members" if created else "team members updated",
            extra={"team_name": team.team_name, "members_count": len(members)},
        )
        return created

    async def count(self) -> int:
        async with self._tx.read("teams.count") as session:
            return await session.scalar(select(func.count()).select_from(TeamRow))
