"""
Output Assembler

Transforms ranked results into JSON-serializable dicts for clients.
"""

from typing import Any, Dict

from .contracts import DashboardResult, RankedResult, ScoredCandidate


def serialize_scored(scored: ScoredCandidate, rank: int) -> Dict[str, Any]:
    """Convert a ScoredCandidate into a client-facing dict."""
    data = scored.entity.model_dump(mode="json")
    data.update({
        "rank": rank,
        "recommendation_score": round(scored.score, 2),
        "reasons": list(scored.reasons),
    })
    return data


def serialize_ranked_result(result: RankedResult) -> Dict[str, Any]:
    """
    Convert a RankedResult into the response shape:
    ``{"data": [...], "meta": {"based_on": {...}, ...}}``.
    """
    return {
        "data": [serialize_scored(s, rank) for rank, s in enumerate(result.items, start=1)],
        "meta": {
            "based_on": dict(result.based_on),
            "total_evaluated": result.total_candidates_evaluated,
            "diversified": result.diversified,
        },
    }


def serialize_dashboard(dashboard: DashboardResult) -> Dict[str, Any]:
    """Convert the dashboard view into a single response dict."""
    return {
        "data": {
            "institutions": serialize_ranked_result(dashboard.institutions)["data"],
            "programs": serialize_ranked_result(dashboard.programs)["data"],
            "awards": serialize_ranked_result(dashboard.awards)["data"],
        },
        "meta": {
            "user_profile": dict(dashboard.based_on),
            "processing_time_ms": dashboard.processing_time_ms,
        },
    }
