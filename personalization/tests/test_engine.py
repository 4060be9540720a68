"""
Tests for the ranking orchestrator and the dashboard view.
"""

import threading

import pytest

from personalization.exceptions import ConfigurationError, RetrievalTimeoutError
from personalization.logic import (
    Award,
    InMemoryCandidateRetriever,
    Institution,
    Program,
    RankingEngine,
    UserProfile,
    WeightTable,
    mock_retriever,
)
from personalization.logic.constants import ProgramLevel
from personalization.logic.output_assembler import serialize_dashboard, serialize_ranked_result


def _ids(result):
    return [scored.id for scored in result.items]


# =============================================================================
# CONSTRUCTION
# =============================================================================

@pytest.mark.parametrize("kwargs", [
    {"diversity_cap": 0},
    {"default_limit": 0},
    {"dashboard_limit": -1},
    {"fetch_timeout": 0},
])
def test_invalid_engine_configuration_fails_fast(kwargs):
    with pytest.raises(ConfigurationError):
        RankingEngine(InMemoryCandidateRetriever(), **kwargs)


# =============================================================================
# PER-KIND RANKING
# =============================================================================

def test_rank_institutions_prefers_country_and_field(engine, cs_masters_profile):
    result = engine.rank_institutions(cs_masters_profile)

    # Pool is pre-filtered to the preferred country
    assert _ids(result) == ["uni-a", "uni-b"]
    top = result.items[0]
    # 25 country + 30 field + 14.25 ranking + 10 acceptance
    assert top.score == pytest.approx(79.25)
    assert "Offers programs in Computer Science" in top.reasons
    assert result.based_on == {"preferred_country": "Canada", "field_of_study": "Computer Science"}


def test_rank_institutions_widens_when_country_has_no_candidates(engine):
    result = engine.rank_institutions(UserProfile(preferred_country="Japan"))
    assert sorted(_ids(result)) == ["uni-a", "uni-b", "uni-c"]


def test_rank_programs_scores_and_orders(engine, cs_masters_profile):
    result = engine.rank_programs(cs_masters_profile)

    # Pre-filtered to PG programs in the user's field
    assert _ids(result) == ["prog-1", "prog-3"]
    assert result.items[0].score > result.items[1].score


def test_rank_awards_uses_injected_clock(engine, cs_masters_profile):
    result = engine.rank_awards(cs_masters_profile)

    assert _ids(result) == ["award-1", "award-2"]
    # 25 country + 14 amount + 15 deadline (30 days) + 18 field + 10 degree
    assert result.items[0].score == pytest.approx(82)
    assert "Deadline approaching (30 days)" in result.items[0].reasons
    assert result.items[1].score == 0


def test_empty_pool_yields_empty_result(cs_masters_profile):
    engine = RankingEngine(InMemoryCandidateRetriever())
    for result in (
        engine.rank_institutions(cs_masters_profile),
        engine.rank_programs(cs_masters_profile),
        engine.rank_awards(cs_masters_profile),
    ):
        assert result.items == []
        assert result.total_candidates_evaluated == 0


def test_unset_profile_on_bare_candidates_orders_by_identifier(empty_profile):
    pool = [Institution(id=uid) for uid in ["i-3", "i-1", "i-2"]]
    engine = RankingEngine(InMemoryCandidateRetriever(institutions=pool))

    result = engine.rank_institutions(empty_profile)

    assert _ids(result) == ["i-1", "i-2", "i-3"]
    assert all(scored.score == 0 for scored in result.items)
    assert result.based_on == {"preferred_country": "Not set", "field_of_study": "Not set"}


def test_limit_truncates(engine, empty_profile):
    assert len(engine.rank_institutions(empty_profile, limit=2)) == 2
    assert len(engine.rank_institutions(empty_profile, limit=0)) == 0


def test_ranking_is_idempotent(engine, cs_masters_profile):
    first = engine.rank_all(cs_masters_profile)
    second = engine.rank_all(cs_masters_profile)
    for kind in ("institutions", "programs", "awards"):
        assert getattr(first, kind).model_dump() == getattr(second, kind).model_dump()


def test_diversify_interleaves_countries_before_truncating(empty_profile):
    pool = [
        Institution(id="c1", country="Canada", ranking=10),
        Institution(id="c2", country="Canada", ranking=20),
        Institution(id="c3", country="Canada", ranking=30),
        Institution(id="c4", country="Canada", ranking=40),
        Institution(id="g1", country="Germany", ranking=50),
        Institution(id="g2", country="Germany", ranking=60),
        Institution(id="f1", country="France", ranking=70),
    ]
    engine = RankingEngine(InMemoryCandidateRetriever(institutions=pool), diversity_cap=1)

    plain = engine.rank_institutions(empty_profile, limit=3)
    mixed = engine.rank_institutions(empty_profile, limit=3, diversify=True)

    assert _ids(plain) == ["c1", "c2", "c3"]
    # Superset of 6 excludes f1; cap 1 places c1, g1 then leftovers c2..
    assert _ids(mixed) == ["c1", "g1", "c2"]
    assert mixed.diversified is True


def test_diversify_programs_groups_by_field_case_insensitively(empty_profile):
    pool = [
        Program(id="p1", institution_id="u1", level=ProgramLevel.UG, field="Biology"),
        Program(id="p2", institution_id="u1", level=ProgramLevel.UG, field="biology"),
        Program(id="p3", institution_id="u2", level=ProgramLevel.UG, field="Biology"),
        Program(id="p4", institution_id="u2", level=ProgramLevel.UG, field="Physics"),
    ]
    engine = RankingEngine(InMemoryCandidateRetriever(programs=pool), diversity_cap=1)

    plain = engine.rank_programs(empty_profile, limit=3)
    mixed = engine.rank_programs(empty_profile, limit=3, diversify=True)

    assert _ids(plain) == ["p1", "p2", "p3"]
    assert _ids(mixed) == ["p1", "p4", "p2"]


def test_diversify_awards_groups_missing_countries_together(empty_profile):
    pool = [
        Award(id="a1", institution_country="Canada"),
        Award(id="a2", institution_country="Canada"),
        Award(id="a3"),
        Award(id="a4", institution_country="  "),
        Award(id="a5", institution_country="Germany"),
    ]
    engine = RankingEngine(InMemoryCandidateRetriever(awards=pool), diversity_cap=1)

    plain = engine.rank_awards(empty_profile, limit=4)
    mixed = engine.rank_awards(empty_profile, limit=4, diversify=True)

    assert _ids(plain) == ["a1", "a2", "a3", "a4"]
    # a3 and a4 share the "unspecified" group, so a4 waits for the leftovers
    assert _ids(mixed) == ["a1", "a3", "a5", "a2"]


def test_scored_reasons_cannot_be_mutated(engine, cs_masters_profile):
    top = engine.rank_institutions(cs_masters_profile).items[0]

    assert isinstance(top.reasons, tuple)
    with pytest.raises(AttributeError):
        top.reasons.append("Injected reason")


def test_custom_weights_change_ranking(empty_profile):
    pool = [
        Institution(id="cheap", tuition_min=1000, tuition_max=2000),
        Institution(id="ranked", ranking=10),
    ]
    retriever = InMemoryCandidateRetriever(institutions=pool)

    default_engine = RankingEngine(retriever)
    tuition_engine = RankingEngine(retriever, weights=WeightTable(tuition_affordability=40))

    assert _ids(default_engine.rank_institutions(empty_profile)) == ["ranked", "cheap"]
    assert _ids(tuition_engine.rank_institutions(empty_profile)) == ["cheap", "ranked"]


# =============================================================================
# DASHBOARD
# =============================================================================

def test_rank_all_returns_three_kinds_with_sub_limits(cs_masters_profile, today):
    engine = RankingEngine(mock_retriever(), today=lambda: today, dashboard_limit=2)

    dashboard = engine.rank_all(cs_masters_profile)

    assert len(dashboard.institutions) <= 2
    assert len(dashboard.programs) <= 2
    assert len(dashboard.awards) == 2
    assert dashboard.based_on == {
        "preferred_country": "Canada",
        "field_of_study": "Computer Science",
        "degree_level": "Masters",
        "saved_institutions": "1",
    }
    assert dashboard.processing_time_ms is not None


def test_rank_all_propagates_fetch_errors(retriever, cs_masters_profile):
    class BrokenAwards(InMemoryCandidateRetriever):
        def fetch_awards(self, candidate_filter):
            raise RuntimeError("awards store unavailable")

    broken = BrokenAwards(retriever.institutions, retriever.programs, retriever.awards)
    with pytest.raises(RuntimeError, match="awards store unavailable"):
        RankingEngine(broken).rank_all(cs_masters_profile)


def test_rank_all_times_out_on_slow_fetch(retriever, cs_masters_profile):
    release = threading.Event()

    class SlowPrograms(InMemoryCandidateRetriever):
        def fetch_programs(self, candidate_filter):
            release.wait(5)
            return super().fetch_programs(candidate_filter)

    slow = SlowPrograms(retriever.institutions, retriever.programs, retriever.awards)
    engine = RankingEngine(slow, fetch_timeout=0.05)
    try:
        with pytest.raises(RetrievalTimeoutError):
            engine.rank_all(cs_masters_profile)
    finally:
        release.set()


def test_fetches_run_concurrently(retriever, cs_masters_profile, today):
    # Each fetch waits until all four have started; sequential calls would time out
    barrier = threading.Barrier(4, timeout=5)

    class BarrierRetriever(InMemoryCandidateRetriever):
        def fetch_institutions(self, candidate_filter):
            barrier.wait()
            return super().fetch_institutions(candidate_filter)

        def fetch_programs(self, candidate_filter):
            barrier.wait()
            return super().fetch_programs(candidate_filter)

        def fetch_awards(self, candidate_filter):
            barrier.wait()
            return super().fetch_awards(candidate_filter)

        def fetch_institution_ids_offering_field(self, field_of_study):
            barrier.wait()
            return super().fetch_institution_ids_offering_field(field_of_study)

    concurrent = BarrierRetriever(retriever.institutions, retriever.programs, retriever.awards)
    dashboard = RankingEngine(concurrent, today=lambda: today).rank_all(cs_masters_profile)

    assert _ids(dashboard.institutions)[0] == "uni-a"


# =============================================================================
# EXPLANATION + OUTPUT
# =============================================================================

def test_explain_breaks_score_into_factors(engine, catalogue):
    institutions, _, _ = catalogue
    explanation = engine.explain(institutions[0], UserProfile(preferred_country="Canada"))

    assert explanation["id"] == "uni-a"
    assert explanation["score"] == pytest.approx(49.25)
    assert [f["factor"] for f in explanation["factors"]] == [
        "COUNTRY_MATCH", "RANKING_SCORE", "ACCEPTANCE_RATE",
    ]


def test_explain_rejects_unknown_entities(engine, empty_profile):
    with pytest.raises(TypeError):
        engine.explain(object(), empty_profile)


def test_serialized_results_carry_rank_score_and_reasons(engine, cs_masters_profile):
    payload = serialize_ranked_result(engine.rank_institutions(cs_masters_profile))

    first = payload["data"][0]
    assert first["rank"] == 1
    assert first["id"] == "uni-a"
    assert first["recommendation_score"] == pytest.approx(79.25)
    assert first["reasons"][0] == "Located in your preferred country (Canada)"
    assert payload["meta"]["based_on"]["preferred_country"] == "Canada"

    dashboard = serialize_dashboard(engine.rank_all(cs_masters_profile))
    assert set(dashboard["data"]) == {"institutions", "programs", "awards"}
    assert dashboard["meta"]["user_profile"]["degree_level"] == "Masters"
