from sqlalchemy import JSON, Column, String

from .base import Base


class UserProfileRecord(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(64), primary_key=True)
    preferred_country = Column(String, default="")
    degree_level = Column(String(32), default="")
    field_of_study = Column(String, default="")
    saved_institution_ids = Column(JSON)
