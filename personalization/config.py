"""
Engine Settings

Reads ranking configuration from the environment (a ``.env`` file is
loaded if present). Weight overrides use ``PERSONALIZATION_WEIGHT_<FACTOR>``,
e.g. ``PERSONALIZATION_WEIGHT_COUNTRY_MATCH=30``.
"""

import os
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field

from .exceptions import ConfigurationError
from .logic.constants import (
    DASHBOARD_LIMIT,
    DEFAULT_DIVERSITY_CAP,
    DEFAULT_LIMIT,
    DEFAULT_WEIGHTS,
)
from .logic.weights import ConfigModel, WeightTable

WEIGHT_ENV_PREFIX = "PERSONALIZATION_WEIGHT_"


class RankingSettings(ConfigModel):
    """Everything needed to build a RankingEngine."""

    weights: WeightTable = Field(default_factory=WeightTable)
    diversity_cap: int = DEFAULT_DIVERSITY_CAP
    default_limit: int = DEFAULT_LIMIT
    dashboard_limit: int = DASHBOARD_LIMIT
    fetch_timeout: Optional[float] = None
    database_url: Optional[str] = None


def _number(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def load_settings(env: Optional[Mapping[str, str]] = None) -> RankingSettings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ after load_dotenv)

    Returns:
        RankingSettings
    """
    if env is None:
        load_dotenv()
        env = os.environ

    overrides: Dict[str, float] = {}
    for factor in DEFAULT_WEIGHTS:
        value = _number(env, WEIGHT_ENV_PREFIX + factor, float, None)
        if value is not None:
            overrides[factor] = value

    return RankingSettings(
        weights=WeightTable.from_mapping(overrides),
        diversity_cap=_number(env, "PERSONALIZATION_DIVERSITY_CAP", int, DEFAULT_DIVERSITY_CAP),
        default_limit=_number(env, "PERSONALIZATION_DEFAULT_LIMIT", int, DEFAULT_LIMIT),
        dashboard_limit=_number(env, "PERSONALIZATION_DASHBOARD_LIMIT", int, DASHBOARD_LIMIT),
        fetch_timeout=_number(env, "PERSONALIZATION_FETCH_TIMEOUT", float, None),
        database_url=env.get("DATABASE_URL") or None,
    )
