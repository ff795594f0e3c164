import random
from collections import Counter

from models.domain import User
from services.selection import ReviewerSelector


def users(*ids):
    return [User(user_id=user_id, username=user_id, team_name="t1") for user_id in ids]


def test_empty_pool_gives_no_reviewers():
    assert ReviewerSelector(random.Random(1)).select([]) == []
    assert ReviewerSelector(random.Random(1)).select_one([]) is None


def test_takes_at_most_two_distinct_ids():
    selector = ReviewerSelector(random.Random(7))
    pool = users("a", "b", "c", "d", "e")
    for _ in range(50):
        picked = selector.select(pool)
        assert len(picked) == 2
        assert len(set(picked)) == 2
        assert set(picked) <= {"a", "b", "c", "d", "e"}


def test_small_pool_is_taken_whole():
    picked = ReviewerSelector(random.Random(3)).select(users("a"))
    assert picked == ["a"]


def test_input_is_not_mutated():
    pool = users("a", "b", "c")
    ReviewerSelector(random.Random(5)).select(pool)
    assert [u.user_id for u in pool] == ["a", "b", "c"]


def test_same_seed_same_choice():
    pool = users("a", "b", "c", "d")
    first = ReviewerSelector(random.Random(42)).select(pool)
    second = ReviewerSelector(random.Random(42)).select(pool)
    assert first == second


def test_no_bias_by_input_order():
    # Every reviewer of a 4-person pool should be picked roughly half the time
    selector = ReviewerSelector(random.Random(2024))
    pool = users("a", "b", "c", "d")
    counts = Counter()
    trials = 4000
    for _ in range(trials):
        counts.update(selector.select(pool))

    for user_id in "abcd":
        share = counts[user_id] / trials
        assert 0.42 < share < 0.58


def test_every_ordered_pair_is_reachable():
    selector = ReviewerSelector(random.Random(99))
    pool = users("a", "b", "c")
    seen = {tuple(selector.select(pool)) for _ in range(500)}
    assert len(seen) == 6
