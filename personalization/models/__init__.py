# Export all personalization models for easy imports
from .base import Base
from .institution import InstitutionRecord
from .program import ProgramRecord
from .award import AwardRecord
from .user_profile import UserProfileRecord

__all__ = [
    "Base",
    "InstitutionRecord",
    "ProgramRecord",
    "AwardRecord",
    "UserProfileRecord",
]
