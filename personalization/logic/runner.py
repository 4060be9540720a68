"""
Engine Runner

Wires settings, the database session factory, the stored user profile and
the ranking engine together:
1. Loads RankingSettings from the environment
2. Loads the user's profile snapshot
3. Builds the engine over the SQL candidate retriever
4. Returns the dashboard view

This is a pure orchestration layer - NO scoring, NO business logic.
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..config import RankingSettings, load_settings
from .adapter import SqlCandidateRetriever, load_user_profile
from .contracts import DashboardResult, UserProfile
from .engine import RankingEngine
from .output_assembler import serialize_dashboard
from .retrieval import CandidateRetriever, mock_retriever

logger = logging.getLogger(__name__)


def build_engine(
    retriever: CandidateRetriever,
    settings: Optional[RankingSettings] = None
) -> RankingEngine:
    """Build a RankingEngine from settings (read from the environment if omitted)."""
    settings = settings or load_settings()
    return RankingEngine(
        retriever=retriever,
        weights=settings.weights,
        diversity_cap=settings.diversity_cap,
        default_limit=settings.default_limit,
        dashboard_limit=settings.dashboard_limit,
        fetch_timeout=settings.fetch_timeout,
    )


def run_dashboard(
    user_id: str,
    session_factory: Optional[Callable[[], Session]] = None,
    settings: Optional[RankingSettings] = None
) -> DashboardResult:
    """
    Main entry point: dashboard recommendations for a stored user.

    Args:
        user_id: Id of the user whose stored preferences drive ranking
        session_factory: Callable returning a new Session (defaults to db.SessionLocal)
        settings: Engine settings (defaults to the environment)

    Returns:
        DashboardResult; a user without a stored profile gets an
        unpersonalized ranking
    """
    if session_factory is None:
        from db import SessionLocal, get_engine
        settings = settings or load_settings()
        get_engine(settings.database_url)
        session_factory = SessionLocal

    with session_factory() as session:
        profile = load_user_profile(session, user_id) or UserProfile(user_id=user_id)

    engine = build_engine(SqlCandidateRetriever(session_factory), settings)
    return engine.rank_all(profile)


def run_dashboard_json(
    user_id: str,
    session_factory: Optional[Callable[[], Session]] = None,
    settings: Optional[RankingSettings] = None
) -> Dict[str, Any]:
    """
    Same as run_dashboard, serialized to the JSON-ready
    ``{"data": {...}, "meta": {...}}`` response shape.
    """
    return serialize_dashboard(run_dashboard(user_id, session_factory, settings))


# =============================================================================
# VALIDATION
# =============================================================================

def validate_runner():
    """
    Developer sanity check - runs the dashboard pipeline on mock data.
    """
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    profile = UserProfile(
        user_id="test_runner_001",
        preferred_country="Canada",
        field_of_study="Computer Science",
        degree_level="Masters",
    )
    engine = build_engine(mock_retriever(), RankingSettings())
    output = engine.rank_all(profile)

    print("=" * 60)
    print("RUNNER VALIDATION")
    print("=" * 60)
    for title, result in (
        ("INSTITUTIONS", output.institutions),
        ("PROGRAMS", output.programs),
        ("AWARDS", output.awards),
    ):
        print(f"\n--- {title} ---")
        for rank, scored in enumerate(result.items, start=1):
            print(f"{rank}. {scored.entity.name} ({scored.score:.2f})")
            for reason in scored.reasons:
                print(f"     - {reason}")

    print(f"\nBased on: {output.based_on}")
    print(f"Processing Time: {output.processing_time_ms:.2f}ms")
    return output


if __name__ == "__main__":
    validate_runner()
