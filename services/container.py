import random
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from config import Settings
from models.database import create_engine_from_settings, create_session_maker
from repositories.pull_requests import PullRequestStore
from repositories.teams import TeamDirectory
from repositories.users import UserDirectory
from services.pull_request import PullRequestService
from services.selection import ReviewerSelector
from services.stats import StatsService
from services.teams import TeamService
from services.transaction import TransactionCoordinator
from services.users import UserService


@dataclass
class Container:
    """Everything a request needs, built once per process (or per test)."""

    settings: Settings
    engine: AsyncEngine
    coordinator: TransactionCoordinator
    store: PullRequestStore
    users: UserDirectory
    teams: TeamDirectory
    pull_requests: PullRequestService
    team_service: TeamService
    user_service: UserService
    stats: StatsService

    async def dispose(self) -> None:
        await self.engine.dispose()


def build_container(settings: Settings, rng: Optional[random.Random] = None) -> Container:
    engine = create_engine_from_settings(settings)
    coordinator = TransactionCoordinator(create_session_maker(engine), settings)

    store = PullRequestStore(coordinator)
    users = UserDirectory(coordinator)
    teams = TeamDirectory(coordinator)

    return Container(
        settings=settings,
        engine=engine,
        coordinator=coordinator,
        store=store,
        users=users,
        teams=teams,
        pull_requests=PullRequestService(store, users, ReviewerSelector(rng)),
        team_service=TeamService(teams, users),
        user_service=UserService(users),
        stats=StatsService(store, teams, users),
    )
