from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from models.errors import DomainError, ErrorKind


MAX_REVIEWERS = 2


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PRStatus(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"


@dataclass
class User:
    user_id: str
    username: str
    team_name: str = ""
    is_active: bool = True

    def validate(self) -> None:
        if not self.user_id or not self.username or not self.team_name:
            raise DomainError(ErrorKind.INVALID_INPUT, "user_id, username and team_name are required")


@dataclass
class Team:
    team_name: str
    members: List[User] = field(default_factory=list)

    def validate(self) -> None:
        if not self.team_name:
            raise DomainError(ErrorKind.INVALID_INPUT, "team_name is required")
        for member in self.members:
            member.team_name = self.team_name
            member.validate()


@dataclass
class PullRequestShort:
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus


@dataclass
class PullRequest:
    """A pull request and its reviewer set.

    The reviewer set never holds the author, never holds duplicates and never
    grows past MAX_REVIEWERS. Once merged, nothing about it changes.
    """

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    assigned_reviewers: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None

    @classmethod
    def new(cls, pull_request_id: str, pull_request_name: str, author_id: str) -> "PullRequest":
        return cls(
            pull_request_id=pull_request_id,
            pull_request_name=pull_request_name,
            author_id=author_id,
            status=PRStatus.OPEN,
            created_at=utcnow(),
        )

    def validate(self) -> None:
        if not self.pull_request_id or not self.pull_request_name or not self.author_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id, pull_request_name and author_id are required")
        if self.status not in (PRStatus.OPEN, PRStatus.MERGED):
            raise DomainError(ErrorKind.INVALID_STATUS, f"unknown status {self.status!r}")

    @property
    def is_merged(self) -> bool:
        return self.status == PRStatus.MERGED

    def has_reviewer(self, user_id: str) -> bool:
        return user_id in self.assigned_reviewers

    def add_reviewer(self, user_id: str) -> None:
        if self.is_merged:
            raise DomainError(ErrorKind.PR_MERGED)
        if self.has_reviewer(user_id):
            return
        if user_id == self.author_id:
            raise DomainError(ErrorKind.AUTHOR_AS_REVIEWER)
        if len(self.assigned_reviewers) >= MAX_REVIEWERS:
            raise DomainError(ErrorKind.INVALID_INPUT, f"a PR can have at most {MAX_REVIEWERS} reviewers")
        self.assigned_reviewers.append(user_id)

    def remove_reviewer(self, user_id: str) -> None:
        if self.is_merged:
            raise DomainError(ErrorKind.PR_MERGED)
        if not self.has_reviewer(user_id):
            raise DomainError(ErrorKind.REVIEWER_NOT_FOUND)
        self.assigned_reviewers = [r for r in self.assigned_reviewers if r != user_id]

    def merge(self, merged_at: Optional[datetime] = None) -> None:
        # First merge wins, later calls keep the original timestamp
        if self.is_merged:
            return
        self.status = PRStatus.MERGED
        self.merged_at = merged_at or utcnow()

    def to_short(self) -> PullRequestShort:
        return PullRequestShort(
            pull_request_id=self.pull_request_id,
            pull_request_name=self.pull_request_name,
            author_id=self.author_id,
            status=self.status,
        )
