from fastapi import APIRouter, Depends, Query, Response, status
from schemas import (
    TeamRequest, TeamCreateResponse, TeamResponse,
    TeamDeactivateRequest, TeamDeactivateResponse,
    ErrorResponse
)
from routes.dependencies import get_team_service
from services.teams import TeamService


router = APIRouter(prefix="/team")


@router.post("/add", status_code=status.HTTP_201_CREATED,
                  summary="Создать команду с участниками (создаёт/обновляет пользователей)",
                  response_model=TeamCreateResponse,
                  responses={200: {"model": TeamCreateResponse}, 400: {"model": ErrorResponse}})
async def add(request: TeamRequest, response: Response, service: TeamService = Depends(get_team_service)):
    members = [member.to_domain(request.team_name) for member in request.members]
    team, created = await service.add_team(request.team_name, members)
    if not created:
        response.status_code = status.HTTP_200_OK
    return TeamCreateResponse(team=TeamResponse.from_domain(team))


@router.get("/get", status_code=status.HTTP_200_OK,
                 summary="Получить команду с участниками",
                 response_model=TeamResponse,
                 responses={404: {"model": ErrorResponse}})
async def get(team_name: str = Query(..., description="Уникальное имя команды"),
              service: TeamService = Depends(get_team_service)):
    team = await service.get_team(team_name)
    return TeamResponse.from_domain(team)


@router.post("/deactivate", status_code=status.HTTP_200_OK,
                  summary="Деактивировать всех пользователей команды (назначенные ревьюверы остаются)",
                  response_model=TeamDeactivateResponse,
                  responses={404: {"model": ErrorResponse}})
async def deactivate(request: TeamDeactivateRequest, service: TeamService = Depends(get_team_service)):
    team, deactivated_count = await service.deactivate_team(request.team_name)
    return TeamDeactivateResponse(
        team=TeamResponse.from_domain(team),
        deactivated_count=deactivated_count
    )
