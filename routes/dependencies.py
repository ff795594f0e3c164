from fastapi import Request

from services.container import Container
from services.pull_request import PullRequestService
from services.stats import StatsService
from services.teams import TeamService
from services.users import UserService


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_pr_service(request: Request) -> PullRequestService:
    return get_container(request).pull_requests


def get_team_service(request: Request) -> TeamService:
    return get_container(request).team_service


def get_user_service(request: Request) -> UserService:
    return get_container(request).user_service


def get_stats_service(request: Request) -> StatsService:
    return get_container(request).stats
