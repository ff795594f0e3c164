from fastapi import APIRouter, Depends, Query, status
from schemas import (
    PullRequestCreateRequest, PullRequestCreateResponse,
    PullRequestMergeRequest, PullRequestMergeResponse,
    PullRequestReassignRequest, PullRequestReassignResponse,
    PullRequestAssignRequest, PullRequestAssignResponse,
    PullRequestGetResponse, PullRequestResponse,
    ErrorResponse
)
from routes.dependencies import get_pr_service
from services.pull_request import PullRequestService


router = APIRouter(prefix="/pullRequest")


@router.post("/create", status_code=status.HTTP_201_CREATED,
                summary="Создать PR и автоматически назначить до 2 ревьюверов из команды автора",
                response_model=PullRequestCreateResponse,
                responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def create(request: PullRequestCreateRequest, service: PullRequestService = Depends(get_pr_service)):
    pr = await service.create_pr(
        request.pull_request_id,
        request.pull_request_name,
        request.author_id
    )
    return PullRequestCreateResponse(pr=PullRequestResponse.from_domain(pr))


@router.post("/merge", status_code=status.HTTP_200_OK,
                summary="Пометить PR как MERGED (идемпотентная операция)",
                response_model=PullRequestMergeResponse,
                responses={404: {"model": ErrorResponse}})
async def merge(request: PullRequestMergeRequest, service: PullRequestService = Depends(get_pr_service)):
    pr = await service.merge_pr(request.pull_request_id)
    return PullRequestMergeResponse(pr=PullRequestResponse.from_domain(pr))


@router.post("/reassign", status_code=status.HTTP_200_OK,
                summary="Переназначить конкретного ревьювера на другого из его команды",
                response_model=PullRequestReassignResponse,
                responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def reassign(request: PullRequestReassignRequest, service: PullRequestService = Depends(get_pr_service)):
    new_reviewer_id, pr = await service.reassign_reviewer(
        request.pull_request_id,
        request.old_user_id
    )
    return PullRequestReassignResponse(
        pr=PullRequestResponse.from_domain(pr),
        replaced_by=new_reviewer_id
    )


@router.post("/assign", status_code=status.HTTP_200_OK,
                summary="Назначить ревьюверов на PR без ревьюверов (явно или случайно из команды автора)",
                response_model=PullRequestAssignResponse,
                responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def assign(request: PullRequestAssignRequest, service: PullRequestService = Depends(get_pr_service)):
    reviewer_ids = [ref.user_id for ref in request.reviewer_ids] if request.reviewer_ids else None
    pr = await service.assign_reviewers_to_pr(request.pull_request_id, reviewer_ids)
    return PullRequestAssignResponse(pr=PullRequestResponse.from_domain(pr))


@router.get("/get", status_code=status.HTTP_200_OK,
                summary="Получить PR по идентификатору",
                response_model=PullRequestGetResponse,
                responses={404: {"model": ErrorResponse}})
async def get(pull_request_id: str = Query(..., description="Идентификатор PR"),
              service: PullRequestService = Depends(get_pr_service)):
    pr = await service.get_pr(pull_request_id)
    return PullRequestGetResponse(pr=PullRequestResponse.from_domain(pr))
