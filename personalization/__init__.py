"""Personalized, diversity-aware ranking of institutions, programs and awards."""

from .exceptions import ConfigurationError, PersonalizationError, RetrievalTimeoutError
from .logic import (
    RankingEngine,
    WeightTable,
    UserProfile,
    Institution,
    Program,
    Award,
    RankedResult,
    DashboardResult,
)

__all__ = [
    "RankingEngine",
    "WeightTable",
    "UserProfile",
    "Institution",
    "Program",
    "Award",
    "RankedResult",
    "DashboardResult",
    "ConfigurationError",
    "PersonalizationError",
    "RetrievalTimeoutError",
]
