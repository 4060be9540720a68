"""
Ranking Engine

Main orchestrator that combines retrieval, scoring, sorting and diversity
interleaving into a single pipeline per entity kind, and composes the
dashboard view across all three kinds.

Pipeline flow (per kind):
1. Candidate Retrieval - Fetch the pool from the retrieval collaborator
2. Scoring - Score every candidate with the matching entity scorer
3. Ranking - Sort by score, ties broken by identifier
4. Diversity - Optionally interleave a 2x-limit superset by group
5. Truncation - Keep the requested number of results
"""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..exceptions import ConfigurationError, RetrievalTimeoutError
from .constants import (
    DASHBOARD_LIMIT,
    DEFAULT_DIVERSITY_CAP,
    DEFAULT_LIMIT,
    DIVERSITY_POOL_MULTIPLIER,
    UNGROUPED_KEY,
    EntityKind,
)
from .contracts import (
    Award,
    CandidateFilter,
    DashboardResult,
    Institution,
    Program,
    RankedResult,
    ScoredCandidate,
    UserProfile,
)
from .entity_scorers import (
    award_factors,
    institution_factors,
    program_factors,
    score_award,
    score_institution,
    score_program,
)
from .ranker import diversify as interleave
from .ranker import rank_candidates, take_top, validate_cap
from .retrieval import CandidateRetriever
from .weights import WeightTable

logger = logging.getLogger(__name__)

# Profile attributes each kind is scored on, echoed back as "based on"
BASED_ON_KEYS: Dict[EntityKind, Tuple[str, ...]] = {
    EntityKind.INSTITUTION: ("preferred_country", "field_of_study"),
    EntityKind.PROGRAM: ("degree_level", "field_of_study", "preferred_country"),
    EntityKind.AWARD: ("preferred_country", "field_of_study", "degree_level"),
}


def _group_key(value: Optional[str]) -> str:
    return value.strip().lower() if value and value.strip() else UNGROUPED_KEY


def _to_scored(model, entity, result: Tuple[float, List[str]]) -> ScoredCandidate:
    points, reasons = result
    return model(entity=entity, score=points, reasons=reasons)


class RankingEngine:
    """
    Personalized ranking over institutions, programs and awards.

    Scoring is pure and synchronous; the only suspension points are the
    candidate fetches, which the dashboard view issues concurrently.
    """

    def __init__(
        self,
        retriever: CandidateRetriever,
        weights: Optional[WeightTable] = None,
        diversity_cap: int = DEFAULT_DIVERSITY_CAP,
        default_limit: int = DEFAULT_LIMIT,
        dashboard_limit: int = DASHBOARD_LIMIT,
        fetch_timeout: Optional[float] = None,
        today: Optional[Callable[[], date]] = None
    ):
        """
        Initialize the ranking engine.

        Args:
            retriever: Candidate retrieval collaborator
            weights: Factor weights (defaults to the standard table)
            diversity_cap: Max items per group before other groups are drawn
            default_limit: Results per kind when no limit is requested
            dashboard_limit: Results per kind in the dashboard view
            fetch_timeout: Seconds to wait for dashboard fetches (None = no limit)
            today: Clock for deadline proximity (defaults to date.today)
        """
        if default_limit < 1 or dashboard_limit < 1:
            raise ConfigurationError(
                f"Limits must be positive (default={default_limit}, dashboard={dashboard_limit})"
            )
        if fetch_timeout is not None and fetch_timeout <= 0:
            raise ConfigurationError(f"Fetch timeout must be positive, got {fetch_timeout}")

        self.retriever = retriever
        self.weights = weights or WeightTable()
        self.diversity_cap = validate_cap(diversity_cap)
        self.default_limit = default_limit
        self.dashboard_limit = dashboard_limit
        self.fetch_timeout = fetch_timeout
        self._today = today or date.today

    # -------------------------------------------------------------------------
    # Retrieval
    # -------------------------------------------------------------------------

    def _fetch_institutions(self, profile: UserProfile) -> List[Institution]:
        # Preferred country first, else everything
        if profile.preferred_country:
            pool = self.retriever.fetch_institutions(
                CandidateFilter(country=profile.preferred_country)
            )
            if pool:
                return pool
            logger.info(f"🔁 No institutions in {profile.preferred_country}, widening to all")
        return self.retriever.fetch_institutions(CandidateFilter())

    def _fetch_programs(self, profile: UserProfile) -> List[Program]:
        candidate_filter = CandidateFilter(
            program_level=profile.program_level,
            field_of_study=profile.field_of_study,
        )
        if not candidate_filter.is_empty:
            pool = self.retriever.fetch_programs(candidate_filter)
            if pool:
                return pool
            logger.info("🔁 No programs match degree level/field, widening to all")
        return self.retriever.fetch_programs(CandidateFilter())

    def _fetch_awards(self, profile: UserProfile) -> List[Award]:
        return self.retriever.fetch_awards(CandidateFilter())

    def _fetch_field_institutions(self, profile: UserProfile) -> Set[str]:
        if not profile.field_of_study:
            return set()
        return set(self.retriever.fetch_institution_ids_offering_field(profile.field_of_study))

    # -------------------------------------------------------------------------
    # Scoring + ranking over an already-fetched pool
    # -------------------------------------------------------------------------

    def _finish(
        self,
        kind: EntityKind,
        profile: UserProfile,
        scored: List[ScoredCandidate],
        limit: Optional[int],
        diversify: bool,
        group_key: Callable[[ScoredCandidate], str],
        result_model
    ) -> RankedResult:
        limit = self.default_limit if limit is None else limit
        ranked = rank_candidates(scored)

        if diversify and ranked:
            superset = take_top(ranked, limit * DIVERSITY_POOL_MULTIPLIER)
            ranked = interleave(superset, group_key, self.diversity_cap)

        items = take_top(ranked, limit)
        based_on = profile.based_on()
        logger.info(f"🏆 Ranked {kind.value}: {len(items)} of {len(scored)} candidates")

        return result_model(
            items=items,
            based_on={key: based_on[key] for key in BASED_ON_KEYS[kind]},
            total_candidates_evaluated=len(scored),
            diversified=diversify,
        )

    def rank_institution_pool(
        self,
        profile: UserProfile,
        pool: Sequence[Institution],
        limit: Optional[int] = None,
        diversify: bool = False,
        field_institution_ids: Optional[Set[str]] = None
    ) -> RankedResult[Institution]:
        """Score and rank an institution pool. Grouped by country."""
        field_ids = field_institution_ids or set()
        scored = [
            _to_scored(
                ScoredCandidate[Institution], institution,
                score_institution(institution, profile, self.weights, institution.id in field_ids),
            )
            for institution in pool
        ]
        return self._finish(
            EntityKind.INSTITUTION, profile, scored, limit, diversify,
            lambda c: _group_key(c.entity.country), RankedResult[Institution],
        )

    def rank_program_pool(
        self,
        profile: UserProfile,
        pool: Sequence[Program],
        limit: Optional[int] = None,
        diversify: bool = False
    ) -> RankedResult[Program]:
        """Score and rank a program pool. Grouped by field."""
        scored = [
            _to_scored(ScoredCandidate[Program], program,
                       score_program(program, profile, self.weights))
            for program in pool
        ]
        return self._finish(
            EntityKind.PROGRAM, profile, scored, limit, diversify,
            lambda c: _group_key(c.entity.field), RankedResult[Program],
        )

    def rank_award_pool(
        self,
        profile: UserProfile,
        pool: Sequence[Award],
        limit: Optional[int] = None,
        diversify: bool = False
    ) -> RankedResult[Award]:
        """Score and rank an award pool. Grouped by linked institution country."""
        today = self._today()
        scored = [
            _to_scored(ScoredCandidate[Award], award,
                       score_award(award, profile, self.weights, today))
            for award in pool
        ]
        return self._finish(
            EntityKind.AWARD, profile, scored, limit, diversify,
            lambda c: _group_key(c.entity.institution_country), RankedResult[Award],
        )

    # -------------------------------------------------------------------------
    # Ranking API
    # -------------------------------------------------------------------------

    def rank_institutions(
        self,
        profile: UserProfile,
        limit: Optional[int] = None,
        diversify: bool = False
    ) -> RankedResult[Institution]:
        """
        Rank institutions for a profile.

        Args:
            profile: User's profile
            limit: Max results (defaults to the engine's default limit)
            diversify: Interleave by country before truncating

        Returns:
            RankedResult of scored institutions
        """
        pool = self._fetch_institutions(profile)
        if not pool:
            logger.warning("⚠️ No institutions available for ranking")
        field_ids = self._fetch_field_institutions(profile) if pool else set()
        return self.rank_institution_pool(profile, pool, limit, diversify, field_ids)

    def rank_programs(
        self,
        profile: UserProfile,
        limit: Optional[int] = None,
        diversify: bool = False
    ) -> RankedResult[Program]:
        """Rank programs for a profile, optionally interleaved by field."""
        pool = self._fetch_programs(profile)
        if not pool:
            logger.warning("⚠️ No programs available for ranking")
        return self.rank_program_pool(profile, pool, limit, diversify)

    def rank_awards(
        self,
        profile: UserProfile,
        limit: Optional[int] = None,
        diversify: bool = False
    ) -> RankedResult[Award]:
        """Rank awards for a profile, optionally interleaved by country."""
        pool = self._fetch_awards(profile)
        if not pool:
            logger.warning("⚠️ No awards available for ranking")
        return self.rank_award_pool(profile, pool, limit, diversify)

    def rank_all(
        self,
        profile: UserProfile,
        limit: Optional[int] = None,
        diversify: bool = True
    ) -> DashboardResult:
        """
        Dashboard view: rank all three kinds with per-kind sub-limits.

        The candidate fetches run concurrently and are joined before any
        scoring happens.

        Args:
            profile: User's profile
            limit: Results per kind (defaults to the dashboard limit)
            diversify: Interleave each kind by its group

        Returns:
            DashboardResult with institutions, programs, awards and basis
        """
        start_time = time.perf_counter()
        limit = self.dashboard_limit if limit is None else limit

        logger.info(f"🚀 Starting dashboard ranking for user: {profile.user_id or 'anonymous'}")
        pools = self._fetch_concurrently(profile)

        institutions = self.rank_institution_pool(
            profile, pools["institutions"], limit, diversify, pools["field_institutions"]
        )
        programs = self.rank_program_pool(profile, pools["programs"], limit, diversify)
        awards = self.rank_award_pool(profile, pools["awards"], limit, diversify)

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(f"✨ Dashboard ranking complete ({processing_time:.2f}ms)")

        return DashboardResult(
            institutions=institutions,
            programs=programs,
            awards=awards,
            based_on=profile.based_on(),
            processing_time_ms=round(processing_time, 2),
        )

    def _fetch_concurrently(self, profile: UserProfile) -> Dict[str, Any]:
        tasks = {
            "institutions": self._fetch_institutions,
            "programs": self._fetch_programs,
            "awards": self._fetch_awards,
            "field_institutions": self._fetch_field_institutions,
        }
        executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="candidate-fetch")
        try:
            futures = {name: executor.submit(fetch, profile) for name, fetch in tasks.items()}
            done, not_done = wait(
                futures.values(), timeout=self.fetch_timeout, return_when=FIRST_EXCEPTION
            )
            # A failed fetch propagates; the engine never retries
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
            if not_done:
                raise RetrievalTimeoutError(
                    f"{len(not_done)} candidate fetch(es) did not finish within {self.fetch_timeout}s"
                )
            pools = {name: future.result() for name, future in futures.items()}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            f"📦 Pools fetched: {len(pools['institutions'])} institutions, "
            f"{len(pools['programs'])} programs, {len(pools['awards'])} awards"
        )
        return pools

    # -------------------------------------------------------------------------
    # Single-entity explanation
    # -------------------------------------------------------------------------

    def explain(
        self,
        entity,
        profile: UserProfile,
        offers_field: bool = False
    ) -> Dict[str, Any]:
        """
        Factor-by-factor breakdown for a single candidate.

        Useful for showing a user why one specific institution, program
        or award scored the way it did.
        """
        if isinstance(entity, Institution):
            factors = institution_factors(entity, profile, self.weights, offers_field)
        elif isinstance(entity, Program):
            factors = program_factors(entity, profile, self.weights)
        elif isinstance(entity, Award):
            factors = award_factors(entity, profile, self.weights, self._today())
        else:
            raise TypeError(f"Cannot explain {type(entity).__name__}")

        return {
            "id": entity.id,
            "score": round(sum(f.points for f in factors), 2),
            "factors": [
                {"factor": f.factor, "points": round(f.points, 2), "reason": f.reason}
                for f in factors
            ],
        }
