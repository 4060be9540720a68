"""
Candidate Retrieval

Interface the ranking engine consumes to obtain already-materialized
candidate pools. The engine does not know the storage technology; the SQL
implementation lives in ``adapter.py``.

An in-memory implementation with a small mock catalogue is provided for
offline runs and tests.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

from .contracts import Award, CandidateFilter, Institution, Program
from .constants import ProgramLevel


class CandidateRetriever(ABC):
    """Source of candidate pools for the ranking engine."""

    @abstractmethod
    def fetch_institutions(self, candidate_filter: CandidateFilter) -> List[Institution]:
        """Institutions matching the filter (country)."""

    @abstractmethod
    def fetch_programs(self, candidate_filter: CandidateFilter) -> List[Program]:
        """Programs matching the filter (level, field, country)."""

    @abstractmethod
    def fetch_awards(self, candidate_filter: CandidateFilter) -> List[Award]:
        """Awards matching the filter (country)."""

    @abstractmethod
    def fetch_institution_ids_offering_field(self, field_of_study: str) -> Set[str]:
        """Ids of institutions with at least one program in the given field."""


def _matches(value: Optional[str], wanted: Optional[str], partial: bool = False) -> bool:
    if not wanted:
        return True
    if not value:
        return False
    if partial:
        return wanted.lower() in value.lower()
    return value.lower() == wanted.lower()


def _limited(items: List, candidate_filter: CandidateFilter) -> List:
    if candidate_filter.limit is None:
        return items
    return items[:candidate_filter.limit]


class InMemoryCandidateRetriever(CandidateRetriever):
    """
    Serves candidates from in-memory lists, applying the same pre-filters
    the SQL adapter applies.
    """

    def __init__(
        self,
        institutions: Iterable[Institution] = (),
        programs: Iterable[Program] = (),
        awards: Iterable[Award] = ()
    ):
        self.institutions = list(institutions)
        self.programs = list(programs)
        self.awards = list(awards)

    def fetch_institutions(self, candidate_filter: CandidateFilter) -> List[Institution]:
        found = [
            i for i in self.institutions
            if _matches(i.country, candidate_filter.country)
        ]
        return _limited(found, candidate_filter)

    def fetch_programs(self, candidate_filter: CandidateFilter) -> List[Program]:
        found = [
            p for p in self.programs
            if (candidate_filter.program_level is None or p.level == candidate_filter.program_level)
            and _matches(p.field, candidate_filter.field_of_study, partial=True)
            and _matches(p.institution_country, candidate_filter.country)
        ]
        return _limited(found, candidate_filter)

    def fetch_awards(self, candidate_filter: CandidateFilter) -> List[Award]:
        found = [
            a for a in self.awards
            if _matches(a.institution_country, candidate_filter.country)
        ]
        return _limited(found, candidate_filter)

    def fetch_institution_ids_offering_field(self, field_of_study: str) -> Set[str]:
        return {
            p.institution_id for p in self.programs
            if _matches(p.field, field_of_study, partial=True)
        }


def mock_retriever() -> InMemoryCandidateRetriever:
    """
    Build a retriever over a small mock catalogue for testing without a
    database.
    """
    mock_institutions = [
        # id, name, country, city, ranking, acceptance, intl %, tuition min/max
        ("uni-01", "University of Toronto", "Canada", "Toronto", 21, 43.0, 27.0, 45000, 60000),
        ("uni-02", "McGill University", "Canada", "Montreal", 30, 46.0, 31.0, 18000, 42000),
        ("uni-03", "University of Waterloo", "Canada", "Waterloo", 112, 53.0, 19.0, 38000, 52000),
        ("uni-04", "TU Munich", "Germany", "Munich", 28, 8.0, 38.0, 0, 3000),
        ("uni-05", "RWTH Aachen", "Germany", "Aachen", 99, 10.0, 25.0, 0, 1500),
        ("uni-06", "University of Melbourne", "Australia", "Melbourne", 14, 70.0, 45.0, 30000, 48000),
        ("uni-07", "Trinity College Dublin", "Ireland", "Dublin", 87, 33.5, 29.0, 18000, 28000),
        ("uni-08", "University of Auckland", "New Zealand", "Auckland", 68, 45.0, 30.0, 28000, 40000),
        ("uni-09", "Sorbonne University", "France", "Paris", 59, 18.0, 22.0, 2800, 3800),
        ("uni-10", "University of Twente", "Netherlands", "Enschede", 189, 74.0, 33.0, 9000, 16000),
    ]
    institutions = [
        Institution(
            id=uid, name=name, country=country, city=city, ranking=rank,
            acceptance_rate=acceptance, international_student_percentage=intl,
            tuition_min=t_min, tuition_max=t_max,
        )
        for uid, name, country, city, rank, acceptance, intl, t_min, t_max in mock_institutions
    ]
    by_id = {i.id: i for i in institutions}

    mock_programs = [
        ("prog-01", "uni-01", "MSc Computer Science", ProgramLevel.PG, "Computer Science", 58000),
        ("prog-02", "uni-02", "BEng Software Engineering", ProgramLevel.UG, "Software Engineering", 24000),
        ("prog-03", "uni-03", "MMath Data Science", ProgramLevel.PG, "Data Science", 41000),
        ("prog-04", "uni-04", "MSc Informatics", ProgramLevel.PG, "Computer Science", 0),
        ("prog-05", "uni-05", "PhD Mechanical Engineering", ProgramLevel.PHD, "Mechanical Engineering", 0),
        ("prog-06", "uni-06", "Master of Business Analytics", ProgramLevel.PG, "Business Analytics", 46000),
        ("prog-07", "uni-07", "MSc Computer Science", ProgramLevel.PG, "Computer Science", 22000),
        ("prog-08", "uni-08", "BSc Biology", ProgramLevel.UG, "Biology", 36000),
        ("prog-09", "uni-09", "Master Physics", ProgramLevel.PG, "Physics", 3800),
        ("prog-10", "uni-10", "MSc Computer Science", ProgramLevel.PG, "Computer Science", 14000),
    ]
    programs = [
        Program(
            id=pid, institution_id=uid, name=name, level=level, field=field,
            tuition_fee=fee, institution_name=by_id[uid].name,
            institution_ranking=by_id[uid].ranking,
            institution_country=by_id[uid].country,
        )
        for pid, uid, name, level, field, fee in mock_programs
    ]

    awards = [
        Award(
            id="award-01", name="Lester B. Pearson Scholarship", provider="University of Toronto",
            institution_id="uni-01", institution_country="Canada",
            amount="Full tuition", deadline="2027-01-15",
            eligibility=["International students", "Undergraduate applicants"],
        ),
        Award(
            id="award-02", name="DAAD Study Scholarship", provider="DAAD",
            institution_country=None, amount="EUR 11,208 per year", deadline="2026-11-30",
            eligibility=["Graduates in Computer Science or Engineering"],
        ),
        Award(
            id="award-03", name="Global Excellence Scholarship", provider="Trinity College Dublin",
            institution_id="uni-07", institution_country="Ireland",
            program_ids=["prog-07"], program_levels=[ProgramLevel.PG],
            amount="€5,000", deadline="2027-03-01",
            eligibility=["Non-EU applicants to postgraduate programs"],
        ),
        Award(
            id="award-04", name="Melbourne Research Scholarship", provider="University of Melbourne",
            institution_id="uni-06", institution_country="Australia",
            amount="100% tuition fee offset", deadline="not announced",
            eligibility=["Research degree applicants"],
        ),
    ]

    return InMemoryCandidateRetriever(institutions, programs, awards)
