from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATUS = "INVALID_STATUS"
    PR_EXISTS = "PR_EXISTS"
    PR_NOT_FOUND = "PR_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
    PR_MERGED = "PR_MERGED"
    REVIEWER_NOT_FOUND = "REVIEWER_NOT_FOUND"
    NO_AVAILABLE_REVIEWER = "NO_AVAILABLE_REVIEWER"
    REVIEWERS_ALREADY_ASSIGNED = "REVIEWERS_ALREADY_ASSIGNED"
    REVIEWER_NOT_IN_TEAM = "REVIEWER_NOT_IN_TEAM"
    AUTHOR_AS_REVIEWER = "AUTHOR_AS_REVIEWER"
    USER_NOT_ACTIVE = "USER_NOT_ACTIVE"
    INTERNAL = "INTERNAL"


DEFAULT_MESSAGES = {
    ErrorKind.INVALID_INPUT: "invalid input",
    ErrorKind.INVALID_STATUS: "invalid pull request status",
    ErrorKind.PR_EXISTS: "PR id already exists",
    ErrorKind.PR_NOT_FOUND: "pull request not found",
    ErrorKind.USER_NOT_FOUND: "user not found",
    ErrorKind.TEAM_NOT_FOUND: "team not found",
    ErrorKind.PR_MERGED: "cannot modify a merged PR",
    ErrorKind.REVIEWER_NOT_FOUND: "reviewer is not assigned to this PR",
    ErrorKind.NO_AVAILABLE_REVIEWER: "no active replacement candidate in team",
    ErrorKind.REVIEWERS_ALREADY_ASSIGNED: "reviewers already assigned to this PR",
    ErrorKind.REVIEWER_NOT_IN_TEAM: "reviewer is not in author's team",
    ErrorKind.AUTHOR_AS_REVIEWER: "author cannot be a reviewer",
    ErrorKind.USER_NOT_ACTIVE: "user is not active",
    ErrorKind.INTERNAL: "internal server error",
}

# kind -> (API code, HTTP status)
API_ERRORS = {
    ErrorKind.INVALID_INPUT: ("BAD_REQUEST", 400),
    ErrorKind.INVALID_STATUS: ("BAD_REQUEST", 400),
    ErrorKind.USER_NOT_ACTIVE: ("BAD_REQUEST", 400),
    ErrorKind.REVIEWER_NOT_IN_TEAM: ("BAD_REQUEST", 400),
    ErrorKind.AUTHOR_AS_REVIEWER: ("BAD_REQUEST", 400),
    ErrorKind.PR_NOT_FOUND: ("NOT_FOUND", 404),
    ErrorKind.USER_NOT_FOUND: ("NOT_FOUND", 404),
    ErrorKind.TEAM_NOT_FOUND: ("NOT_FOUND", 404),
    ErrorKind.PR_EXISTS: ("PR_EXISTS", 409),
    ErrorKind.PR_MERGED: ("PR_MERGED", 409),
    ErrorKind.REVIEWER_NOT_FOUND: ("NOT_ASSIGNED", 409),
    ErrorKind.NO_AVAILABLE_REVIEWER: ("NO_CANDIDATE", 409),
    ErrorKind.REVIEWERS_ALREADY_ASSIGNED: ("REVIEWERS_ASSIGNED", 409),
    ErrorKind.INTERNAL: ("INTERNAL_ERROR", 500),
}


class DomainError(Exception):
    """A failure with exactly one ErrorKind. Callers branch on `kind`."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(f"{kind.value}: {self.message}")

    @property
    def api_code(self) -> str:
        return API_ERRORS[self.kind][0]

    @property
    def status_code(self) -> int:
        return API_ERRORS[self.kind][1]

    @property
    def is_transient(self) -> bool:
        return self.kind is ErrorKind.INTERNAL
