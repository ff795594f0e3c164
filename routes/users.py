from fastapi import APIRouter, Depends, Query, status
from schemas import (
    SetIsActiveRequest, UserUpdateResponse, UserResponse,
    GetReviewResponse, PullRequestShort,
    ErrorResponse
)
from routes.dependencies import get_pr_service, get_user_service
from services.pull_request import PullRequestService
from services.users import UserService


router = APIRouter(prefix="/users")


@router.post("/setIsActive", status_code=status.HTTP_200_OK,
                   summary="Установить флаг активности пользователя",
                   response_model=UserUpdateResponse,
                   responses={404: {"model": ErrorResponse}})
async def setIsActive(request: SetIsActiveRequest, service: UserService = Depends(get_user_service)):
    user = await service.set_is_active(request.user_id, request.is_active)
    return UserUpdateResponse(user=UserResponse.from_domain(user))


@router.get("/getReview", status_code=status.HTTP_200_OK,
                  summary="Получить PR'ы, где пользователь назначен ревьювером",
                  response_model=GetReviewResponse,
                  responses={404: {"model": ErrorResponse}})
async def getReview(user_id: str = Query(..., description="Идентификатор пользователя"),
                    service: PullRequestService = Depends(get_pr_service)):
    pull_requests = await service.get_prs_by_reviewer(user_id)
    return GetReviewResponse(
        user_id=user_id,
        pull_requests=[PullRequestShort.from_domain(pr) for pr in pull_requests]
    )
