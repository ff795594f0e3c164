import logging
from typing import List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.domain import PRStatus, PullRequest, PullRequestShort, utcnow
from models.errors import DomainError, ErrorKind
from models.models import PullRequest as PullRequestRow, Reviewers, User as UserRow
from services.transaction import TransactionCoordinator, sorted_keys


logger = logging.getLogger(__name__)


def _to_domain(row: PullRequestRow, reviewer_ids: List[str]) -> PullRequest:
    return PullRequest(
        pull_request_id=row.pull_request_id,
        pull_request_name=row.name,
        author_id=row.author_id,
        status=PRStatus(row.status),
        assigned_reviewers=reviewer_ids,
        created_at=row.createdAt,
        merged_at=row.mergedAt,
    )


async def _reviewer_ids(session: AsyncSession, pr_id: str) -> List[str]:
    result = await session.execute(
        select(Reviewers.reviewer_id)
        .where(Reviewers.pr_id == pr_id)
        .order_by(Reviewers.reviewer_id)
    )
    return list(result.scalars().all())


async def _load(session: AsyncSession, pr_id: str, for_update: bool = False) -> Optional[PullRequest]:
    """Read a PR with its reviewers. `for_update` takes the PR row lock."""
    query = (
        select(PullRequestRow)
        .where(PullRequestRow.pull_request_id == pr_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    row = (await session.execute(query)).scalar_one_or_none()
    if row is None:
        return None
    return _to_domain(row, await _reviewer_ids(session, pr_id))


async def _insert_reviewer(session: AsyncSession, pr_id: str, reviewer_id: str) -> None:
    await session.execute(
        insert(Reviewers).values(pr_id=pr_id, reviewer_id=reviewer_id, assignedAt=utcnow())
    )


async def _delete_reviewer(session: AsyncSession, pr_id: str, reviewer_id: str) -> None:
    await session.execute(
        delete(Reviewers).where(Reviewers.pr_id == pr_id, Reviewers.reviewer_id == reviewer_id)
    )


class PullRequestStore:
    """
    Pull requests and their reviewer relations.

    Composite writes (create, reassign, assign) run as one atomic unit each
    and re-check the PR's state under the PR row lock before writing, so a
    concurrent merge or assignment between the caller's validation and the
    commit is caught here.
    """

    def __init__(self, coordinator: TransactionCoordinator):
        self._tx = coordinator

    async def create(self, pr: PullRequest) -> PullRequest:
        """Insert the PR row and its initial reviewers together."""
        pr.validate()
        reviewers = sorted_keys(pr.assigned_reviewers)
        if len(set(reviewers)) != len(reviewers):
            raise DomainError(ErrorKind.INVALID_INPUT, "duplicate reviewer ids")
        draft = PullRequest(pr.pull_request_id, pr.pull_request_name, pr.author_id)
        for reviewer_id in reviewers:
            draft.add_reviewer(reviewer_id)

        async with self._tx.atomic("pr.create") as session:
            if await session.get(PullRequestRow, pr.pull_request_id) is not None:
                raise DomainError(ErrorKind.PR_EXISTS)
            # Checked here so the flush below can only fail on a duplicate id
            if await session.get(UserRow, pr.author_id) is None:
                raise DomainError(ErrorKind.USER_NOT_FOUND, f"author '{pr.author_id}' not found")

            session.add(PullRequestRow(
                pull_request_id=pr.pull_request_id,
                name=pr.pull_request_name,
                author_id=pr.author_id,
                status=pr.status.value,
                createdAt=pr.created_at or utcnow(),
                mergedAt=pr.merged_at,
            ))
            try:
                await session.flush()
            except IntegrityError as exc:
                # Lost a race with a concurrent create of the same id
                raise DomainError(ErrorKind.PR_EXISTS) from exc

            for reviewer_id in reviewers:
                await _insert_reviewer(session, pr.pull_request_id, reviewer_id)

            created = await _load(session, pr.pull_request_id)

        logger.info("PR created in transaction", extra={
            "pr_id": pr.pull_request_id,
            "reviewers_count": len(reviewers),
        })
        return created

    async def get_by_id(self, pr_id: str) -> PullRequest:
        async with self._tx.read("pr.get") as session:
            pr = await _load(session, pr_id)
        if pr is None:
            raise DomainError(ErrorKind.PR_NOT_FOUND, f"PR '{pr_id}' not found")
        return pr

    async def merge(self, pr_id: str) -> PullRequest:
        """
        Mark the PR as merged with a single conditional UPDATE.

        Only an OPEN row is changed, so the first merge stamps merged_at and
        every later or concurrent merge returns the already-merged state as is.
        """
        async with self._tx.atomic("pr.merge") as session:
            result = await session.execute(
                update(PullRequestRow)
                .where(
                    PullRequestRow.pull_request_id == pr_id,
                    PullRequestRow.status == PRStatus.OPEN.value,
                )
                .values(status=PRStatus.MERGED.value, mergedAt=utcnow())
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount == 1
            pr = await _load(session, pr_id)

        if pr is None:
            raise DomainError(ErrorKind.PR_NOT_FOUND, f"PR '{pr_id}' not found")
        if changed:
            logger.info("PR merged", extra={"pr_id": pr_id})
        else:
            logger.info("PR already merged (idempotent)", extra={"pr_id": pr_id})
        return pr

    async def reassign_reviewer(self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str) -> PullRequest:
        """Swap one reviewer for another in one unit."""
        async with self._tx.atomic("pr.reassign") as session:
            pr = await _load(session, pr_id, for_update=True)
            if pr is None:
                raise DomainError(ErrorKind.PR_NOT_FOUND, f"PR '{pr_id}' not found")
            if pr.is_merged:
                raise DomainError(ErrorKind.PR_MERGED)
            if pr.has_reviewer(new_reviewer_id):
                raise DomainError(ErrorKind.INVALID_INPUT, f"'{new_reviewer_id}' is already a reviewer")

            pr.remove_reviewer(old_reviewer_id)
            pr.add_reviewer(new_reviewer_id)

            for reviewer_id in sorted_keys([old_reviewer_id, new_reviewer_id]):
                if reviewer_id == old_reviewer_id:
                    await _delete_reviewer(session, pr_id, old_reviewer_id)
                else:
                    await _insert_reviewer(session, pr_id, new_reviewer_id)

            updated = await _load(session, pr_id)

        logger.info("reviewer reassigned in transaction", extra={
            "pr_id": pr_id,
            "old_reviewer_id": old_reviewer_id,
            "new_reviewer_id": new_reviewer_id,
        })
        return updated

    async def assign_reviewers(self, pr_id: str, reviewer_ids: List[str]) -> PullRequest:
        """
        Assign reviewers to a PR that has none yet. The "no reviewers"
        precondition is checked under the PR row lock, so of two concurrent
        callers only the first one succeeds.
        """
        async with self._tx.atomic("pr.assign") as session:
            pr = await _load(session, pr_id, for_update=True)
            if pr is None:
                raise DomainError(ErrorKind.PR_NOT_FOUND, f"PR '{pr_id}' not found")
            if pr.is_merged:
                raise DomainError(ErrorKind.PR_MERGED)
            if pr.assigned_reviewers:
                logger.error("PR already has reviewers assigned", extra={
                    "pr_id": pr_id,
                    "existing_count": len(pr.assigned_reviewers),
                })
                raise DomainError(ErrorKind.REVIEWERS_ALREADY_ASSIGNED)

            ordered = sorted_keys(reviewer_ids)
            if len(set(ordered)) != len(ordered):
                raise DomainError(ErrorKind.INVALID_INPUT, "duplicate reviewer ids")
            for reviewer_id in ordered:
                pr.add_reviewer(reviewer_id)

            for reviewer_id in ordered:
                await _insert_reviewer(session, pr_id, reviewer_id)

            updated = await _load(session, pr_id)

        logger.info("reviewers assigned in transaction", extra={"pr_id": pr_id, "count": len(ordered)})
        return updated

    async def get_reviewers_by_id(self, pr_id: str) -> List[str]:
        async with self._tx.read("pr.reviewers") as session:
            return await _reviewer_ids(session, pr_id)

    async def get_prs_by_reviewer(self, reviewer_id: str) -> List[PullRequestShort]:
        async with self._tx.read("pr.by_reviewer") as session:
            result = await session.execute(
                select(PullRequestRow)
                .join(Reviewers, PullRequestRow.pull_request_id == Reviewers.pr_id)
                .where(Reviewers.reviewer_id == reviewer_id)
                .order_by(PullRequestRow.createdAt, PullRequestRow.pull_request_id)
            )
            return [
                PullRequestShort(
                    pull_request_id=row.pull_request_id,
                    pull_request_name=row.name,
                    author_id=row.author_id,
                    status=PRStatus(row.status),
                )
                for row in result.scalars().all()
            ]

    async def exists(self, pr_id: str) -> bool:
        async with self._tx.read("pr.exists") as session:
            result = await session.execute(
                select(PullRequestRow.pull_request_id).where(PullRequestRow.pull_request_id == pr_id)
            )
            return result.first() is not None

    async def count(self) -> int:
        async with self._tx.read("pr.count") as session:
            return await session.scalar(select(func.count()).select_from(PullRequestRow))

    async def count_by_status(self, status: PRStatus) -> int:
        async with self._tx.read("pr.count_by_status") as session:
            return await session.scalar(
                select(func.count())
                .select_from(PullRequestRow)
                .where(PullRequestRow.status == status.value)
            )
