import logging
from typing import Dict

from models.domain import PRStatus
from repositories.pull_requests import PullRequestStore
from repositories.teams import TeamDirectory
from repositories.users import UserDirectory


logger = logging.getLogger(__name__)


class StatsService:
    """Aggregate counters for GET /stats."""

    def __init__(self, store: PullRequestStore, teams: TeamDirectory, users: UserDirectory):
        self.store = store
        self.teams = teams
        self.users = users

    async def get_stats(self) -> Dict[str, int]:
        stats = {
            "total_prs": await self.store.count(),
            "open_prs": await self.store.count_by_status(PRStatus.OPEN),
            "merged_prs": await self.store.count_by_status(PRStatus.MERGED),
            "total_teams": await self.teams.count(),
            "total_users": await self.users.count(),
            "active_users": await self.users.count_active(),
        }
        logger.info("stats retrieved", extra=stats)
        return stats
