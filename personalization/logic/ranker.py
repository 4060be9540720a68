"""
Ranker

Sorts scored candidates deterministically and interleaves them so that no
single group (country, field) monopolizes the top of a result list.
"""

from collections import OrderedDict
from typing import Callable, Dict, Hashable, List, Sequence, TypeVar

from ..exceptions import ConfigurationError
from .contracts import ScoredCandidate

T = TypeVar("T")


def rank_candidates(
    scored_candidates: Sequence[ScoredCandidate]
) -> List[ScoredCandidate]:
    """
    Rank candidates by score (descending).

    Ties are broken by entity identifier so repeated runs over the same
    input always produce the same order.

    Args:
        scored_candidates: Scored candidates in any order

    Returns:
        New sorted list
    """
    by_id = sorted(scored_candidates, key=lambda x: x.id)
    return sorted(by_id, key=lambda x: x.score, reverse=True)


def validate_cap(cap_per_round: int) -> int:
    if cap_per_round <= 0:
        raise ConfigurationError(f"Diversity cap must be positive, got {cap_per_round}")
    return cap_per_round


def diversify(
    sorted_candidates: Sequence[T],
    group_key_fn: Callable[[T], Hashable],
    cap_per_round: int
) -> List[T]:
    """
    Interleave a score-ordered sequence across groups.

    Buckets are scanned in first-seen key order; each scan takes the head of
    every bucket that still has items and has placed fewer than
    ``cap_per_round`` items. When a scan places nothing, the remaining items
    are appended in their original order, so the output is always a
    permutation of the input.

    Args:
        sorted_candidates: Candidates already sorted by descending score
        group_key_fn: Maps a candidate to its group (e.g. country)
        cap_per_round: Max items per group before leftovers are appended

    Returns:
        Reordered list
    """
    validate_cap(cap_per_round)

    buckets: "OrderedDict[Hashable, List[int]]" = OrderedDict()
    for position, candidate in enumerate(sorted_candidates):
        buckets.setdefault(group_key_fn(candidate), []).append(position)

    # Single group: cap never changes the order
    if len(buckets) <= 1:
        return list(sorted_candidates)

    placed_per_key: Dict[Hashable, int] = {key: 0 for key in buckets}
    heads: Dict[Hashable, int] = {key: 0 for key in buckets}
    placed_positions: List[int] = []
    total = len(sorted_candidates)

    while len(placed_positions) < total:
        placed_this_scan = 0
        for key, positions in buckets.items():
            if heads[key] >= len(positions) or placed_per_key[key] >= cap_per_round:
                continue
            placed_positions.append(positions[heads[key]])
            heads[key] += 1
            placed_per_key[key] += 1
            placed_this_scan += 1
        if placed_this_scan == 0:
            break

    output = [sorted_candidates[p] for p in placed_positions]

    # Leftovers keep their original score order
    if len(output) < total:
        placed = set(placed_positions)
        output.extend(
            candidate for position, candidate in enumerate(sorted_candidates)
            if position not in placed
        )

    return output


def take_top(ranked: Sequence[T], limit: int) -> List[T]:
    """Truncate to the first ``limit`` items."""
    return list(ranked[:max(0, limit)])
