"""
Ranking Logic Module

Provides the deterministic scoring and diversity-aware ranking engine for
institutions, programs and awards.
"""

from .contracts import (
    UserProfile,
    Institution,
    Program,
    Award,
    CandidateFilter,
    FactorScore,
    ScoredCandidate,
    RankedResult,
    DashboardResult,
)
from .constants import DegreeLevel, ProgramLevel, InstitutionType, EntityKind
from .weights import WeightTable
from .entity_scorers import score_institution, score_program, score_award
from .ranker import diversify, rank_candidates
from .retrieval import CandidateRetriever, InMemoryCandidateRetriever, mock_retriever
from .engine import RankingEngine
from .output_assembler import serialize_dashboard, serialize_ranked_result, serialize_scored

__all__ = [
    # Main engine
    "RankingEngine",
    "WeightTable",

    # Scoring + diversity
    "score_institution",
    "score_program",
    "score_award",
    "diversify",
    "rank_candidates",

    # Retrieval
    "CandidateRetriever",
    "InMemoryCandidateRetriever",
    "mock_retriever",

    # Output
    "serialize_scored",
    "serialize_ranked_result",
    "serialize_dashboard",

    # Contracts
    "UserProfile",
    "Institution",
    "Program",
    "Award",
    "CandidateFilter",
    "FactorScore",
    "ScoredCandidate",
    "RankedResult",
    "DashboardResult",

    # Enums
    "DegreeLevel",
    "ProgramLevel",
    "InstitutionType",
    "EntityKind",
]
