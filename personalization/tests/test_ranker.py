"""
Tests for deterministic sorting and diversity interleaving.
"""

from collections import Counter

import pytest

from personalization.exceptions import ConfigurationError
from personalization.logic import Institution, ScoredCandidate
from personalization.logic.ranker import diversify, rank_candidates, take_top


def _country(item):
    return item.split(":")[1]


def _scored(uid, score, country="Canada"):
    return ScoredCandidate[Institution](
        entity=Institution(id=uid, country=country), score=score, reasons=[]
    )


def test_interleaves_one_per_group_before_repeating():
    ordered = ["A:us", "B:us", "C:uk", "D:us", "E:fr"]
    assert diversify(ordered, _country, 1) == ["A:us", "C:uk", "E:fr", "B:us", "D:us"]


def test_cap_of_two_lets_each_group_place_twice_first():
    ordered = ["A:us", "B:us", "C:us", "D:uk", "E:uk", "F:uk", "G:fr"]
    assert diversify(ordered, _country, 2) == ["A:us", "D:uk", "G:fr", "B:us", "E:uk", "C:us", "F:uk"]


def test_empty_input_returns_empty():
    assert diversify([], _country, 1) == []


def test_single_group_is_unchanged():
    ordered = ["A:us", "B:us", "C:us"]
    assert diversify(ordered, _country, 1) == ordered


@pytest.mark.parametrize("cap", [0, -1])
def test_non_positive_cap_is_a_configuration_error(cap):
    with pytest.raises(ConfigurationError):
        diversify(["A:us"], _country, cap)


def test_leftovers_are_appended_in_score_order():
    ordered = ["A:us", "B:us", "C:us", "D:us", "E:uk"]
    assert diversify(ordered, _country, 1) == ["A:us", "E:uk", "B:us", "C:us", "D:us"]


@pytest.mark.parametrize("cap", [1, 2, 3])
def test_output_is_permutation_and_prefix_respects_cap(cap):
    # Every group holds at least `cap` items
    ordered = (
        [f"us{i}:us" for i in range(6)]
        + [f"uk{i}:uk" for i in range(4)]
        + [f"fr{i}:fr" for i in range(3)]
    )
    output = diversify(ordered, _country, cap)

    assert sorted(output) == sorted(ordered)
    assert len(output) == len(set(output))

    groups = 3
    prefix = Counter(_country(item) for item in output[:cap * groups])
    assert max(prefix.values()) <= cap


def test_within_group_order_is_preserved():
    ordered = ["A:us", "B:uk", "C:us", "D:uk", "E:us"]
    output = diversify(ordered, _country, 1)
    assert [x for x in output if x.endswith(":us")] == ["A:us", "C:us", "E:us"]
    assert [x for x in output if x.endswith(":uk")] == ["B:uk", "D:uk"]


def test_rank_candidates_sorts_descending_with_identifier_tie_break():
    candidates = [_scored("c", 10), _scored("a", 10), _scored("b", 20), _scored("d", 0)]
    assert [c.id for c in rank_candidates(candidates)] == ["b", "a", "c", "d"]


def test_rank_candidates_is_deterministic_across_input_orders():
    candidates = [_scored(uid, score) for uid, score in [("x", 5), ("y", 5), ("z", 5), ("w", 7)]]
    first = [c.id for c in rank_candidates(candidates)]
    second = [c.id for c in rank_candidates(list(reversed(candidates)))]
    assert first == second == ["w", "x", "y", "z"]


def test_take_top():
    assert take_top([1, 2, 3], 2) == [1, 2]
    assert take_top([1, 2, 3], 10) == [1, 2, 3]
    assert take_top([1, 2, 3], 0) == []
