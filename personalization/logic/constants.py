"""
Ranking Engine Constants

Defines default weights, thresholds, degree mappings and enums used by the
entity scorers and the ranking orchestrator.
All values are deterministic with no AI/ML components.
"""

from enum import Enum
from typing import Dict

# =============================================================================
# DEFAULT FACTOR WEIGHTS
# =============================================================================

# Points awarded when a factor fires at full strength
DEFAULT_WEIGHTS: Dict[str, float] = {
    "COUNTRY_MATCH": 25.0,
    "FIELD_MATCH": 30.0,
    "DEGREE_LEVEL_MATCH": 20.0,
    "RANKING_SCORE": 15.0,
    "ACCEPTANCE_RATE": 10.0,
    "TUITION_AFFORDABILITY": 12.0,
    "INTERNATIONAL_DIVERSITY": 8.0,
    "DEADLINE_PROXIMITY": 15.0,
    "SCHOLARSHIP_AMOUNT": 20.0,
}

# =============================================================================
# ENUMS
# =============================================================================

class DegreeLevel(str, Enum):
    """Degree level a user is aiming for, as stored on the profile."""
    UNDERGRADUATE = "Undergraduate"
    MASTERS = "Masters"
    PHD = "PhD"
    DIPLOMA = "Diploma"
    CERTIFICATE = "Certificate"


class ProgramLevel(str, Enum):
    """Level of an academic program."""
    UG = "UG"
    PG = "PG"
    PHD = "PhD"


class InstitutionType(str, Enum):
    PUBLIC = "Public"
    PRIVATE = "Private"


class EntityKind(str, Enum):
    """The three independent candidate pools."""
    INSTITUTION = "institutions"
    PROGRAM = "programs"
    AWARD = "awards"


# Profile degree level -> program level. Diploma/Certificate have no match.
DEGREE_TO_PROGRAM_LEVEL: Dict[DegreeLevel, ProgramLevel] = {
    DegreeLevel.UNDERGRADUATE: ProgramLevel.UG,
    DegreeLevel.MASTERS: ProgramLevel.PG,
    DegreeLevel.PHD: ProgramLevel.PHD,
}

# =============================================================================
# INSTITUTION THRESHOLDS
# =============================================================================

RANKING_HORIZON = 1000          # ranks beyond this contribute nothing
TOP_RANKING_CUTOFF = 100        # explanatory "top 100" wording only
ACCEPTANCE_RATE_SWEET_SPOT = (20.0, 70.0)
INSTITUTION_TUITION_LOW = 10_000
INSTITUTION_TUITION_MODERATE = 20_000
INTERNATIONAL_PERCENTAGE_MIN = 15.0

# =============================================================================
# PROGRAM THRESHOLDS
# =============================================================================

PROGRAM_PARENT_RANKING_CUTOFF = 200
PROGRAM_TUITION_LOW = 15_000
PROGRAM_TUITION_MODERATE = 25_000

# =============================================================================
# AWARD THRESHOLDS
# =============================================================================

FULL_AWARD_MARKERS = ("full", "100%")
AWARD_AMOUNT_HIGH = 10_000
AWARD_AMOUNT_MEDIUM = 5_000
AWARD_AMOUNT_HIGH_FACTOR = 0.7
AWARD_AMOUNT_MEDIUM_FACTOR = 0.4
DEADLINE_NEAR_DAYS = 90
DEADLINE_UPCOMING_DAYS = 180
AWARD_FIELD_FACTOR = 0.6
AWARD_DEGREE_FACTOR = 0.5

# Accepted deadline formats, tried in order
DEADLINE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
]

# =============================================================================
# RANKING CONFIGURATION
# =============================================================================

DEFAULT_LIMIT = 10
DASHBOARD_LIMIT = 5
DEFAULT_DIVERSITY_CAP = 2

# Take this multiple of the limit before interleaving
DIVERSITY_POOL_MULTIPLIER = 2

NOT_SET = "Not set"
UNGROUPED_KEY = "unspecified"
