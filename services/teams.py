import logging
from typing import List, Tuple

from models.domain import Team, User
from models.errors import DomainError, ErrorKind
from repositories.teams import TeamDirectory
from repositories.users import UserDirectory


logger = logging.getLogger(__name__)


class TeamService:
    def __init__(self, teams: TeamDirectory, users: UserDirectory):
        self.teams = teams
        self.users = users

    async def add_team(self, team_name: str, members: List[User]) -> Tuple[Team, bool]:
        """
        POST /team/add
        Create a team with members, or update the members of an existing one.
        Returns the stored team and whether it was newly created.
        """
        team = Team(team_name=team_name, members=members)
        team.validate()

        logger.info("adding team", extra={"team_name": team_name, "members_count": len(members)})

        created = await self.teams.upsert_with_members(team)
        return await self.teams.get_by_name(team_name), created

    async def get_team(self, team_name: str) -> Team:
        """GET /team/get"""
        if not team_name:
            raise DomainError(ErrorKind.INVALID_INPUT, "team_name is required")
        return await self.teams.get_by_name(team_name)

    async def deactivate_team(self, team_name: str) -> Tuple[Team, int]:
        """
        POST /team/deactivate
        Deactivate every member of the team. Reviewers already assigned to open
        PRs stay assigned.
        """
        if not team_name:
            raise DomainError(ErrorKind.INVALID_INPUT, "team_name is required")
        if not await self.teams.team_exists(team_name):
            raise DomainError(ErrorKind.TEAM_NOT_FOUND, f"team '{team_name}' not found")

        deactivated = await self.users.deactivate_team_users(team_name)
        team = await self.teams.get_by_name(team_name)

        logger.info("team deactivated", extra={"team_name": team_name, "deactivated_count": deactivated})
        return team, deactivated
