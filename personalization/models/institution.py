from sqlalchemy import Column, Float, Integer, String

from .base import Base


class InstitutionRecord(Base):
    __tablename__ = "institutions"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    country = Column(String, nullable=False, index=True)
    city = Column(String)
    type = Column(String(16), default="Public")
    ranking = Column(Integer, index=True)
    acceptance_rate = Column(Float)
    international_students_percentage = Column(Float)
    tuition_min = Column(Float)
    tuition_max = Column(Float)
