"""
Competition ranking (SQL ``RANK()``) and the two truncation policies used by
the reports.

``limit`` cuts a ranked sequence to exactly ``n`` rows, dropping tied rows past
the boundary the way ``ORDER BY ... LIMIT n`` does. ``at_rank`` keeps every row
sharing a rank, so ties expand the result. Reports pick one or the other; they
are not interchangeable.
"""

from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")


def competition_rank(
    items: Iterable[T],
    key: Callable[[T], object],
    descending: bool = False,
) -> List[Tuple[int, T]]:
    """Rank ``items`` by ``key`` and return ``(rank, item)`` pairs in rank order.

    Equal keys share a rank and the following rank is the number of items
    strictly ahead of it plus one: scores 10, 7, 7, 3 rank 1, 2, 2, 4.
    Items with equal keys keep their input order.
    """
    ordered = sorted(items, key=key, reverse=descending)
    ranked = []
    previous = None
    rank = 0
    for position, item in enumerate(ordered, start=1):
        score = key(item)
        if position == 1 or score != previous:
            rank = position
            previous = score
        ranked.append((rank, item))
    return ranked


def limit(ranked: List[Tuple[int, T]], n: int) -> List[Tuple[int, T]]:
    if n < 0:
        raise ValueError(f"limit must be >= 0, got {n}")
    return ranked[:n]


def at_rank(ranked: List[Tuple[int, T]], rank: int = 1) -> List[Tuple[int, T]]:
    return [pair for pair in ranked if pair[0] == rank]
