from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from personalization.logic import (
    Award,
    InMemoryCandidateRetriever,
    Institution,
    Program,
    RankingEngine,
    UserProfile,
    WeightTable,
)
from personalization.logic.constants import ProgramLevel

TODAY = date(2026, 10, 17)


@pytest.fixture
def weights():
    return WeightTable()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def empty_profile():
    return UserProfile()


@pytest.fixture
def cs_masters_profile():
    return UserProfile(
        user_id="student-1",
        preferred_country="Canada",
        field_of_study="Computer Science",
        degree_level="Masters",
        saved_institution_ids=["uni-a"],
    )


@pytest.fixture
def catalogue():
    institutions = [
        Institution(id="uni-a", name="Alpha University", country="Canada", ranking=50, acceptance_rate=40),
        Institution(id="uni-b", name="Beta Institute", country="Canada", ranking=400),
        Institution(id="uni-c", name="Gamma College", country="Germany", ranking=20,
                    tuition_min=0, tuition_max=3000, international_student_percentage=30),
    ]
    programs = [
        Program(id="prog-1", institution_id="uni-a", name="MSc Computer Science", level=ProgramLevel.PG,
                field="Computer Science", tuition_fee=12000, institution_ranking=50,
                institution_country="Canada"),
        Program(id="prog-2", institution_id="uni-b", name="BSc Biology", level=ProgramLevel.UG,
                field="Biology", tuition_fee=30000, institution_ranking=400,
                institution_country="Canada"),
        Program(id="prog-3", institution_id="uni-c", name="MSc Informatics", level=ProgramLevel.PG,
                field="Applied Computer Science", tuition_fee=0, institution_ranking=20,
                institution_country="Germany"),
    ]
    awards = [
        Award(id="award-1", name="Alpha Excellence", provider="Alpha University",
              institution_id="uni-a", institution_country="Canada",
              program_ids=["prog-1"], program_levels=[ProgramLevel.PG],
              amount="$12,000", deadline="2026-11-16",
              eligibility=["Open to Computer Science graduates"]),
        Award(id="award-2", name="Open Grant", provider="Foundation",
              amount="Varies", deadline="TBA"),
    ]
    return institutions, programs, awards


@pytest.fixture
def retriever(catalogue):
    institutions, programs, awards = catalogue
    return InMemoryCandidateRetriever(institutions, programs, awards)


@pytest.fixture
def engine(retriever):
    return RankingEngine(retriever, today=lambda: TODAY)


@pytest.fixture
def session_factory(tmp_path):
    # Import registers the tables on Base.metadata
    from personalization.models import Base

    # File-backed so each fetch thread gets its own connection
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'personalization.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(bind=db_engine)
    factory = sessionmaker(bind=db_engine, autoflush=False, future=True)
    yield factory
    db_engine.dispose()
