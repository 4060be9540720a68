from sqlalchemy import Column, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import Base


class ProgramRecord(Base):
    __tablename__ = "programs"

    id = Column(String(64), primary_key=True)
    institution_id = Column(String(64), ForeignKey("institutions.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    level = Column(String(32), nullable=False)  # UG / PG / PhD, or a free label like "Masters"
    field = Column(String, nullable=False)
    tuition_fee = Column(Float)

    institution = relationship("InstitutionRecord", lazy="joined")
