from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from models import domain


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class TeamMember(BaseModel):
    user_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    is_active: bool = True

    def to_domain(self, team_name: str) -> domain.User:
        return domain.User(
            user_id=self.user_id,
            username=self.username,
            team_name=team_name,
            is_active=self.is_active,
        )


class TeamRequest(BaseModel):
    team_name: str = Field(..., min_length=1)
    members: List[TeamMember]


class TeamResponse(BaseModel):
    team_name: str
    members: List[TeamMember]

    @classmethod
    def from_domain(cls, team: domain.Team) -> "TeamResponse":
        return cls(
            team_name=team.team_name,
            members=[
                TeamMember(user_id=m.user_id, username=m.username, is_active=m.is_active)
                for m in team.members
            ],
        )


class TeamCreateResponse(BaseModel):
    team: TeamResponse


class TeamDeactivateRequest(BaseModel):
    team_name: str = Field(..., min_length=1)


class TeamDeactivateResponse(BaseModel):
    team: TeamResponse
    deactivated_count: int


class UserResponse(BaseModel):
    user_id: str
    username: str
    team_name: str
    is_active: bool

    @classmethod
    def from_domain(cls, user: domain.User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            username=user.username,
            team_name=user.team_name,
            is_active=user.is_active,
        )


class UserUpdateResponse(BaseModel):
    user: UserResponse


class SetIsActiveRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    is_active: bool


class PullRequestShort(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: str

    @classmethod
    def from_domain(cls, pr: domain.PullRequestShort) -> "PullRequestShort":
        return cls(
            pull_request_id=pr.pull_request_id,
            pull_request_name=pr.pull_request_name,
            author_id=pr.author_id,
            status=pr.status.value,
        )


class PullRequestResponse(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: str
    assigned_reviewers: List[str]
    createdAt: Optional[datetime] = None
    mergedAt: Optional[datetime] = None

    @classmethod
    def from_domain(cls, pr: domain.PullRequest) -> "PullRequestResponse":
        return cls(
            pull_request_id=pr.pull_request_id,
            pull_request_name=pr.pull_request_name,
            author_id=pr.author_id,
            status=pr.status.value,
            assigned_reviewers=list(pr.assigned_reviewers),
            createdAt=pr.created_at,
            mergedAt=pr.merged_at,
        )


class PullRequestCreateRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    pull_request_name: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)


class PullRequestCreateResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestMergeRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)


class PullRequestMergeResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestReassignRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    old_user_id: str = Field(..., min_length=1)


class PullRequestReassignResponse(BaseModel):
    pr: PullRequestResponse
    replaced_by: str


class ReviewerRef(BaseModel):
    user_id: str = Field(..., min_length=1)


class PullRequestAssignRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    reviewer_ids: Optional[List[ReviewerRef]] = None


class PullRequestAssignResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestGetResponse(BaseModel):
    pr: PullRequestResponse


class GetReviewResponse(BaseModel):
    user_id: str
    pull_requests: List[PullRequestShort]


class HealthResponse(BaseModel):
    status: str


class StatsResponse(BaseModel):
    total_prs: int
    open_prs: int
    merged_prs: int
    total_teams: int
    total_users: int
    active_users: int
