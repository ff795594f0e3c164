import logging
from typing import List, Optional, Tuple

from models.domain import MAX_REVIEWERS, PullRequest, PullRequestShort, User
from models.errors import DomainError, ErrorKind
from repositories.pull_requests import PullRequestStore
from repositories.users import UserDirectory
from services.selection import ReviewerSelector


logger = logging.getLogger(__name__)


class PullRequestService:
    """
    Reviewer assignment on top of the PR store.

    Each operation validates against current state first (nothing is cached
    between calls), picks reviewers, then commits through a single store
    call, which re-checks the PR state inside its own transaction.
    """

    def __init__(self, store: PullRequestStore, users: UserDirectory, selector: ReviewerSelector):
        self.store = store
        self.users = users
        self.selector = selector

    async def create_pr(self, pull_request_id: str, pull_request_name: str, author_id: str) -> PullRequest:
        """
        POST /pullRequest/create
        Create a PR and automatically assign up to 2 reviewers from the author's team
        """
        if not pull_request_id or not pull_request_name or not author_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id, pull_request_name and author_id are required")

        logger.info("creating PR", extra={"pr_id": pull_request_id, "author_id": author_id})

        if await self.store.exists(pull_request_id):
            raise DomainError(ErrorKind.PR_EXISTS)

        author = await self.users.get_user_by_id(author_id)
        candidates = await self.users.get_active_users_by_team(author.team_name, exclude_user_id=author_id)

        pr = PullRequest.new(pull_request_id, pull_request_name, author_id)
        pr.assigned_reviewers = self.selector.select(candidates, MAX_REVIEWERS)

        created = await self.store.create(pr)

        logger.info("PR created", extra={
            "pr_id": pull_request_id,
            "reviewers_assigned": len(created.assigned_reviewers),
        })
        return created

    async def merge_pr(self, pull_request_id: str) -> PullRequest:
        """
        POST /pullRequest/merge
        Mark a PR as merged (idempotent operation)
        """
        if not pull_request_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id is required")

        logger.info("merging PR", extra={"pr_id": pull_request_id})
        return await self.store.merge(pull_request_id)

    async def reassign_reviewer(self, pull_request_id: str, old_reviewer_id: str) -> Tuple[str, PullRequest]:
        """
        POST /pullRequest/reassign
        Replace a reviewer with another active member of the old reviewer's team.
        Returns the new reviewer id and the updated PR.
        """
        if not pull_request_id or not old_reviewer_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id and old_user_id are required")

        logger.info("reassigning reviewer", extra={"pr_id": pull_request_id, "old_reviewer_id": old_reviewer_id})

        pr = await self.store.get_by_id(pull_request_id)
        if pr.is_merged:
            raise DomainError(ErrorKind.PR_MERGED, "cannot reassign on merged PR")
        if not pr.has_reviewer(old_reviewer_id):
            raise DomainError(ErrorKind.REVIEWER_NOT_FOUND)

        old_reviewer = await self.users.get_user_by_id(old_reviewer_id)
        members = await self.users.get_active_users_by_team(old_reviewer.team_name)

        # Not the author, not the reviewer being replaced, not anyone already reviewing
        excluded = {pr.author_id, old_reviewer_id, *pr.assigned_reviewers}
        candidates = [member for member in members if member.user_id not in excluded]
        if not candidates:
            raise DomainError(ErrorKind.NO_AVAILABLE_REVIEWER)

        new_reviewer_id = self.selector.select_one(candidates)
        updated = await self.store.reassign_reviewer(pull_request_id, old_reviewer_id, new_reviewer_id)

        logger.info("reviewer reassigned", extra={
            "pr_id": pull_request_id,
            "old_reviewer_id": old_reviewer_id,
            "new_reviewer_id": new_reviewer_id,
        })
        return new_reviewer_id, updated

    async def assign_reviewers_to_pr(self, pull_request_id: str, reviewer_ids: Optional[List[str]] = None) -> PullRequest:
        """
        POST /pullRequest/assign
        Assign reviewers to a PR that has none yet.

        Without reviewer_ids, up to 2 are picked from the author's active team.
        Unlike create_pr, an empty pool here is an error. Explicit reviewer_ids
        must be active members of the author's team other than the author.
        """
        if not pull_request_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id is required")

        logger.info("assigning reviewers to PR", extra={
            "pr_id": pull_request_id,
            "specified_count": len(reviewer_ids or []),
        })

        pr = await self.store.get_by_id(pull_request_id)
        if pr.is_merged:
            raise DomainError(ErrorKind.PR_MERGED)

        author = await self.users.get_user_by_id(pr.author_id)

        if not reviewer_ids:
            candidates = await self.users.get_active_users_by_team(author.team_name, exclude_user_id=author.user_id)
            if not candidates:
                raise DomainError(ErrorKind.NO_AVAILABLE_REVIEWER)
            to_assign = self.selector.select(candidates, MAX_REVIEWERS)
        else:
            if len(reviewer_ids) > MAX_REVIEWERS:
                raise DomainError(ErrorKind.INVALID_INPUT, f"at most {MAX_REVIEWERS} reviewers can be assigned")
            if len(set(reviewer_ids)) != len(reviewer_ids):
                raise DomainError(ErrorKind.INVALID_INPUT, "duplicate reviewer ids")
            for reviewer_id in reviewer_ids:
                await self._check_explicit_reviewer(reviewer_id, author)
            to_assign = list(reviewer_ids)

        updated = await self.store.assign_reviewers(pull_request_id, to_assign)

        logger.info("reviewers assigned to PR", extra={
            "pr_id": pull_request_id,
            "assigned_count": len(to_assign),
            "total_reviewers": len(updated.assigned_reviewers),
        })
        return updated

    async def _check_explicit_reviewer(self, reviewer_id: str, author: User) -> None:
        if not reviewer_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "reviewer id must not be empty")

        user = await self.users.get_user_by_id(reviewer_id)
        if not user.is_active:
            logger.warning("reviewer is not active", extra={"reviewer_id": reviewer_id})
            raise DomainError(ErrorKind.USER_NOT_ACTIVE, f"user '{reviewer_id}' is not active")
        if user.team_name != author.team_name:
            logger.warning("reviewer not in author's team", extra={
                "reviewer_id": reviewer_id,
                "reviewer_team": user.team_name,
                "author_team": author.team_name,
            })
            raise DomainError(ErrorKind.REVIEWER_NOT_IN_TEAM)
        if reviewer_id == author.user_id:
            logger.warning("attempt to assign author as reviewer", extra={"author_id": author.user_id})
            raise DomainError(ErrorKind.AUTHOR_AS_REVIEWER)

    async def get_pr(self, pull_request_id: str) -> PullRequest:
        if not pull_request_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "pull_request_id is required")
        return await self.store.get_by_id(pull_request_id)

    async def get_prs_by_reviewer(self, reviewer_id: str) -> List[PullRequestShort]:
        """
        GET /users/getReview
        Get PRs where the user is a reviewer
        """
        if not reviewer_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "user_id is required")

        await self.users.get_user_by_id(reviewer_id)
        return await self.store.get_prs_by_reviewer(reviewer_id)
