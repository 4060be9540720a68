"""
Data Contracts for the Ranking Engine

Defines Pydantic models for the UserProfile (input), the three candidate
entities, and the ranked output. These contracts are the API boundary of
the engine; the engine never issues storage queries itself.
"""

from typing import Dict, FrozenSet, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    DEGREE_TO_PROGRAM_LEVEL,
    NOT_SET,
    DegreeLevel,
    InstitutionType,
    ProgramLevel,
)


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class UserProfile(BaseModel):
    """
    Read-only snapshot of a user's stored preferences.
    Owned by the caller and passed into the engine per request.
    """
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    preferred_country: Optional[str] = None
    field_of_study: Optional[str] = None
    degree_level: Optional[DegreeLevel] = None

    # Display metadata only, never used for scoring
    saved_institution_ids: FrozenSet[str] = Field(default_factory=frozenset)

    @property
    def program_level(self) -> Optional[ProgramLevel]:
        """Program level the degree preference maps to, if any."""
        if self.degree_level is None:
            return None
        return DEGREE_TO_PROGRAM_LEVEL.get(self.degree_level)

    def based_on(self) -> Dict[str, str]:
        """Profile attributes echoed back to clients for explanation."""
        return {
            "preferred_country": self.preferred_country or NOT_SET,
            "field_of_study": self.field_of_study or NOT_SET,
            "degree_level": self.degree_level.value if self.degree_level else NOT_SET,
            "saved_institutions": str(len(self.saved_institution_ids)),
        }


class Institution(BaseModel):
    """A university or college candidate."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    country: str = ""
    city: str = ""
    ranking: Optional[int] = None  # lower is better, 0/None = unranked
    acceptance_rate: Optional[float] = None  # percentage 0-100
    international_student_percentage: Optional[float] = None
    tuition_min: Optional[float] = None
    tuition_max: Optional[float] = None
    type: InstitutionType = InstitutionType.PUBLIC


class Program(BaseModel):
    """
    An academic program candidate.
    Parent institution ranking and country are denormalized so a program
    can be scored without a join.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    institution_id: str
    name: str = ""
    level: ProgramLevel
    field: str = ""
    tuition_fee: Optional[float] = None

    institution_name: str = ""
    institution_ranking: Optional[int] = None
    institution_country: Optional[str] = None


class Award(BaseModel):
    """
    A scholarship / funding award candidate.
    Linked institution country and linked program levels are denormalized.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    provider: str = ""
    institution_id: Optional[str] = None
    institution_country: Optional[str] = None
    program_ids: List[str] = Field(default_factory=list)
    program_levels: List[ProgramLevel] = Field(default_factory=list)
    amount: Optional[str] = None  # free-form, e.g. "$10,000" or "Full tuition"
    deadline: Optional[str] = None  # free-form date text
    eligibility: List[str] = Field(default_factory=list)


class CandidateFilter(BaseModel):
    """
    Pre-filter handed to the candidate retrieval collaborator.
    Every field is optional; an empty filter means "everything".
    """
    model_config = ConfigDict(frozen=True)

    country: Optional[str] = None
    field_of_study: Optional[str] = None
    program_level: Optional[ProgramLevel] = None
    limit: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not (self.country or self.field_of_study or self.program_level)


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

EntityT = TypeVar("EntityT", Institution, Program, Award)


class FactorScore(BaseModel):
    """One scoring rule that fired, with its points and explanation."""
    model_config = ConfigDict(frozen=True)

    factor: str
    points: float = Field(ge=0.0)
    reason: str


class ScoredCandidate(BaseModel, Generic[EntityT]):
    """
    A candidate with its computed score and ordered reasons.
    Created fresh per request; never persisted.
    """
    model_config = ConfigDict(frozen=True)

    entity: EntityT
    score: float = Field(ge=0.0)
    reasons: Tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.entity.id


class RankedResult(BaseModel, Generic[EntityT]):
    """Ordered candidates plus the profile attributes used as scoring basis."""
    model_config = ConfigDict(frozen=True)

    items: List[ScoredCandidate[EntityT]] = Field(default_factory=list)
    based_on: Dict[str, str] = Field(default_factory=dict)
    total_candidates_evaluated: int = 0
    diversified: bool = False

    def __len__(self) -> int:
        return len(self.items)


class DashboardResult(BaseModel):
    """Combined ranking across all three entity kinds."""
    model_config = ConfigDict(frozen=True)

    institutions: RankedResult[Institution]
    programs: RankedResult[Program]
    awards: RankedResult[Award]
    based_on: Dict[str, str] = Field(default_factory=dict)
    processing_time_ms: Optional[float] = None
