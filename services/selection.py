import random
from typing import List, Optional, Sequence

from models.domain import MAX_REVIEWERS, User


class ReviewerSelector:
    """Picks reviewers uniformly at random from an already-filtered pool."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(self, candidates: Sequence[User], max_count: int = MAX_REVIEWERS) -> List[str]:
        """
        Fisher-Yates shuffle of a copy of the pool, then the first
        min(max_count, len(pool)) ids. An empty pool gives an empty list.
        """
        if not candidates or max_count <= 0:
            return []

        shuffled = list(candidates)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self._rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

        count = min(max_count, len(shuffled))
        return [user.user_id for user in shuffled[:count]]

    def select_one(self, candidates: Sequence[User]) -> Optional[str]:
        picked = self.select(candidates, 1)
        return picked[0] if picked else None
