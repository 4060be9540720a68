from sqlalchemy import JSON, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import Base


class AwardRecord(Base):
    __tablename__ = "awards"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    amount = Column(String)
    deadline = Column(String, index=True)
    eligibility = Column(JSON)
    institution_id = Column(String(64), ForeignKey("institutions.id"), nullable=True)
    program_ids = Column(JSON)

    institution = relationship("InstitutionRecord", lazy="joined")
