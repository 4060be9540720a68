"""
Weight Table

Named, tunable factor weights shared by every entity scorer. Supplied once
when the engine is built; swapping the table changes ranking without code
changes.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError
from .constants import DEFAULT_WEIGHTS


class ConfigModel(BaseModel):
    """
    Frozen settings model. Validation failures raise ConfigurationError on
    every construction path, including when nested in another ConfigModel.
    """
    model_config = ConfigDict(frozen=True)

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {type(self).__name__}: {e}") from e

    @classmethod
    def model_validate(cls, obj: Any, **kwargs):
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {cls.__name__}: {e}") from e

    @classmethod
    def model_validate_json(cls, json_data, **kwargs):
        try:
            return super().model_validate_json(json_data, **kwargs)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {cls.__name__}: {e}") from e


class WeightTable(ConfigModel):
    """
    Points awarded per factor. All weights must be non-negative.

    Invalid tables raise ConfigurationError at construction, never at
    request time.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    country_match: float = Field(default=DEFAULT_WEIGHTS["COUNTRY_MATCH"], ge=0.0)
    field_match: float = Field(default=DEFAULT_WEIGHTS["FIELD_MATCH"], ge=0.0)
    degree_level_match: float = Field(default=DEFAULT_WEIGHTS["DEGREE_LEVEL_MATCH"], ge=0.0)
    ranking_score: float = Field(default=DEFAULT_WEIGHTS["RANKING_SCORE"], ge=0.0)
    acceptance_rate: float = Field(default=DEFAULT_WEIGHTS["ACCEPTANCE_RATE"], ge=0.0)
    tuition_affordability: float = Field(default=DEFAULT_WEIGHTS["TUITION_AFFORDABILITY"], ge=0.0)
    international_diversity: float = Field(default=DEFAULT_WEIGHTS["INTERNATIONAL_DIVERSITY"], ge=0.0)
    deadline_proximity: float = Field(default=DEFAULT_WEIGHTS["DEADLINE_PROXIMITY"], ge=0.0)
    scholarship_amount: float = Field(default=DEFAULT_WEIGHTS["SCHOLARSHIP_AMOUNT"], ge=0.0)

    @classmethod
    def from_mapping(cls, weights: Optional[Mapping[str, float]] = None) -> "WeightTable":
        """
        Build a table from factor names such as ``COUNTRY_MATCH``.

        Factors not present in the mapping keep their default weight.
        """
        data = {name.lower(): value for name, value in (weights or {}).items()}
        return cls(**data)

    def as_dict(self) -> Dict[str, float]:
        """Factor name (upper case) -> weight."""
        return {name.upper(): value for name, value in self.model_dump().items()}
