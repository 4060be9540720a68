"""
Data Adapter for the Ranking Engine

Reads institutions, programs, awards and user profiles from the database
and transforms them into the engine's contracts.

This is a pure READ + TRANSFORM layer:
- NO scoring logic
- NO ranking/diversification
- NO DB writes
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import AwardRecord, InstitutionRecord, ProgramRecord, UserProfileRecord
from .constants import DegreeLevel, InstitutionType, ProgramLevel
from .contracts import Award, CandidateFilter, Institution, Program, UserProfile
from .retrieval import CandidateRetriever

logger = logging.getLogger(__name__)


def normalize_program_level(raw_level: Optional[str]) -> Optional[ProgramLevel]:
    """
    Normalize inconsistent level labels to UG / PG / PhD.

    Returns None when the label is not recognized.
    """
    if not raw_level:
        return None
    text = raw_level.lower().strip()

    if text in ("ug", "pg", "phd"):
        return {"ug": ProgramLevel.UG, "pg": ProgramLevel.PG, "phd": ProgramLevel.PHD}[text]

    phd_patterns = ["phd", "ph.d", "doctorate", "doctoral"]
    if any(pattern in text for pattern in phd_patterns):
        return ProgramLevel.PHD

    pg_patterns = ["master", "msc", "mba", "meng", "postgrad", "graduate"]
    if any(pattern in text for pattern in pg_patterns) and "undergrad" not in text:
        return ProgramLevel.PG

    ug_patterns = ["bachelor", "bsc", "beng", "undergrad"]
    if any(pattern in text for pattern in ug_patterns):
        return ProgramLevel.UG

    return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def _to_rank(value: Any) -> Optional[int]:
    try:
        rank = int(value)
    except (ValueError, TypeError):
        return None
    return rank if rank > 0 else None


def _institution_type(value: Optional[str]) -> InstitutionType:
    if value and value.strip().lower() == "private":
        return InstitutionType.PRIVATE
    return InstitutionType.PUBLIC


# =============================================================================
# TRANSFORMS
# =============================================================================

def transform_institution(record: InstitutionRecord) -> Institution:
    """Transform an institution row into the engine contract."""
    return Institution(
        id=str(record.id),
        name=record.name or "",
        country=record.country or "",
        city=record.city or "",
        ranking=_to_rank(record.ranking),
        acceptance_rate=_to_float(record.acceptance_rate),
        international_student_percentage=_to_float(record.international_students_percentage),
        tuition_min=_to_float(record.tuition_min),
        tuition_max=_to_float(record.tuition_max),
        type=_institution_type(record.type),
    )


def transform_program(record: ProgramRecord) -> Program:
    """
    Transform a program row, denormalizing its parent institution's
    ranking and country.
    """
    parent = record.institution
    return Program(
        id=str(record.id),
        institution_id=str(record.institution_id),
        name=record.name or "",
        level=normalize_program_level(record.level),
        field=record.field or "",
        tuition_fee=_to_float(record.tuition_fee),
        institution_name=parent.name if parent else "",
        institution_ranking=_to_rank(parent.ranking) if parent else None,
        institution_country=parent.country if parent else None,
    )


def transform_award(
    record: AwardRecord,
    program_levels: Optional[Dict[str, ProgramLevel]] = None
) -> Award:
    """
    Transform an award row.

    Args:
        record: Award ORM object
        program_levels: Program id -> level for the award's linked programs
    """
    program_levels = program_levels or {}
    program_ids = [str(pid) for pid in (record.program_ids or [])]
    levels: List[ProgramLevel] = []
    for pid in program_ids:
        level = program_levels.get(pid)
        if level is not None and level not in levels:
            levels.append(level)

    return Award(
        id=str(record.id),
        name=record.name or "",
        provider=record.provider or "",
        institution_id=str(record.institution_id) if record.institution_id else None,
        institution_country=record.institution.country if record.institution else None,
        program_ids=program_ids,
        program_levels=levels,
        amount=record.amount,
        deadline=record.deadline,
        eligibility=[str(e) for e in (record.eligibility or [])],
    )


def _transform_all(records: Iterable, transform: Callable, kind: str) -> List:
    results = []
    for record in records:
        try:
            results.append(transform(record))
        except ValidationError as e:
            # Skip rows that fail conversion
            logger.debug(f"Failed to convert {kind} {getattr(record, 'id', '?')}: {e}")
    return results


# =============================================================================
# CANDIDATE RETRIEVAL
# =============================================================================

class SqlCandidateRetriever(CandidateRetriever):
    """
    Candidate retrieval backed by SQLAlchemy.

    Each fetch opens its own session, so the engine may issue the fetches
    from different threads.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def fetch_institutions(self, candidate_filter: CandidateFilter) -> List[Institution]:
        query = select(InstitutionRecord).order_by(InstitutionRecord.id)
        if candidate_filter.country:
            query = query.where(
                func.lower(InstitutionRecord.country) == candidate_filter.country.strip().lower()
            )
        if candidate_filter.limit is not None:
            query = query.limit(candidate_filter.limit)

        with self.session_factory() as session:
            records = session.execute(query).scalars().all()
            institutions = _transform_all(records, transform_institution, "institution")

        logger.info(f"📊 Institutions fetched from DB: {len(institutions)}")
        return institutions

    def fetch_programs(self, candidate_filter: CandidateFilter) -> List[Program]:
        query = select(ProgramRecord).order_by(ProgramRecord.id)
        if candidate_filter.field_of_study:
            query = query.where(ProgramRecord.field.ilike(f"%{candidate_filter.field_of_study.strip()}%"))
        if candidate_filter.country:
            query = query.join(ProgramRecord.institution).where(
                func.lower(InstitutionRecord.country) == candidate_filter.country.strip().lower()
            )
        # Stored levels are free labels ("Masters", "MSc"), so the level
        # filter runs on the normalized value after transform
        wanted_level = candidate_filter.program_level
        if candidate_filter.limit is not None and wanted_level is None:
            query = query.limit(candidate_filter.limit)

        with self.session_factory() as session:
            records = session.execute(query).unique().scalars().all()
            programs = _transform_all(records, transform_program, "program")

        if wanted_level is not None:
            programs = [p for p in programs if p.level == wanted_level]
            if candidate_filter.limit is not None:
                programs = programs[:candidate_filter.limit]

        logger.info(f"📊 Programs fetched from DB: {len(programs)}")
        return programs

    def fetch_awards(self, candidate_filter: CandidateFilter) -> List[Award]:
        query = select(AwardRecord).order_by(AwardRecord.id)
        if candidate_filter.country:
            query = query.join(AwardRecord.institution).where(
                func.lower(InstitutionRecord.country) == candidate_filter.country.strip().lower()
            )
        if candidate_filter.limit is not None:
            query = query.limit(candidate_filter.limit)

        with self.session_factory() as session:
            records = session.execute(query).unique().scalars().all()
            linked_ids: Set[str] = {
                str(pid) for record in records for pid in (record.program_ids or [])
            }
            program_levels: Dict[str, ProgramLevel] = {}
            if linked_ids:
                rows = session.execute(
                    select(ProgramRecord.id, ProgramRecord.level).where(ProgramRecord.id.in_(linked_ids))
                ).all()
                for program_id, raw_level in rows:
                    level = normalize_program_level(raw_level)
                    if level is not None:
                        program_levels[str(program_id)] = level

            awards = _transform_all(
                records, lambda r: transform_award(r, program_levels), "award"
            )

        logger.info(f"📊 Awards fetched from DB: {len(awards)}")
        return awards

    def fetch_institution_ids_offering_field(self, field_of_study: str) -> Set[str]:
        if not field_of_study or not field_of_study.strip():
            return set()
        query = (
            select(ProgramRecord.institution_id)
            .where(ProgramRecord.field.ilike(f"%{field_of_study.strip()}%"))
            .distinct()
        )
        with self.session_factory() as session:
            return {str(row) for row in session.execute(query).scalars().all()}


# =============================================================================
# USER PROFILE PROVIDER
# =============================================================================

def transform_user_profile(record: UserProfileRecord) -> UserProfile:
    """Build a read-only profile snapshot from a stored user row."""
    degree_level = None
    if record.degree_level:
        try:
            degree_level = DegreeLevel(record.degree_level)
        except ValueError:
            logger.debug(f"Unknown degree level {record.degree_level!r} for user {record.user_id}")

    return UserProfile(
        user_id=str(record.user_id),
        preferred_country=(record.preferred_country or "").strip() or None,
        field_of_study=(record.field_of_study or "").strip() or None,
        degree_level=degree_level,
        saved_institution_ids=frozenset(str(i) for i in (record.saved_institution_ids or [])),
    )


def load_user_profile(session: Session, user_id: str) -> Optional[UserProfile]:
    """
    Load a user's stored preferences.

    Returns None when the user has no stored profile.
    """
    record = session.get(UserProfileRecord, user_id)
    if record is None:
        logger.warning(f"⚠️ No stored profile for user {user_id}")
        return None
    return transform_user_profile(record)
