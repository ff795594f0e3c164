from fastapi import APIRouter, Depends, status
from schemas import HealthResponse, StatsResponse
from routes.dependencies import get_stats_service
from services.stats import StatsService


router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK,
                summary="Проверка доступности сервиса",
                response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")


@router.get("/stats", status_code=status.HTTP_200_OK,
                summary="Общая статистика по PR, командам и пользователям",
                response_model=StatsResponse)
async def stats(service: StatsService = Depends(get_stats_service)):
    return StatsResponse(**await service.get_stats())
