"""
Entity Scorers

Pure scoring functions, one per entity kind. Each scorer evaluates a set of
independent additive factors and returns ``(points, reasons)`` where every
reason corresponds to exactly one factor that contributed points.
All logic is deterministic - no AI/ML components.
"""

import logging
import re
from datetime import date, datetime
from typing import List, Optional, Tuple

from .constants import (
    ACCEPTANCE_RATE_SWEET_SPOT,
    AWARD_AMOUNT_HIGH,
    AWARD_AMOUNT_HIGH_FACTOR,
    AWARD_AMOUNT_MEDIUM,
    AWARD_AMOUNT_MEDIUM_FACTOR,
    AWARD_DEGREE_FACTOR,
    AWARD_FIELD_FACTOR,
    DEADLINE_FORMATS,
    DEADLINE_NEAR_DAYS,
    DEADLINE_UPCOMING_DAYS,
    FULL_AWARD_MARKERS,
    INSTITUTION_TUITION_LOW,
    INSTITUTION_TUITION_MODERATE,
    INTERNATIONAL_PERCENTAGE_MIN,
    PROGRAM_PARENT_RANKING_CUTOFF,
    PROGRAM_TUITION_LOW,
    PROGRAM_TUITION_MODERATE,
    RANKING_HORIZON,
    TOP_RANKING_CUTOFF,
)
from .contracts import Award, FactorScore, Institution, Program, UserProfile
from .weights import WeightTable

logger = logging.getLogger(__name__)

# First currency-like figure, e.g. "$12,500" or "EUR 8000.50"
_AMOUNT_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")


# =============================================================================
# HELPERS
# =============================================================================

def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def _contains_text(haystack: Optional[str], needle: Optional[str]) -> bool:
    if not haystack or not needle or not needle.strip():
        return False
    return needle.strip().lower() in haystack.lower()


def _collect(factors: List[FactorScore]) -> Tuple[float, List[str]]:
    """Sum fired factors into (points, reasons)."""
    points = round(sum(f.points for f in factors), 2)
    return points, [f.reason for f in factors]


def _fire(factors: List[FactorScore], factor: str, points: float, reason: str) -> None:
    # Zero-point factors carry no reason
    if points > 0:
        factors.append(FactorScore(factor=factor, points=points, reason=reason))


def parse_amount(amount: Optional[str]) -> Optional[float]:
    """
    Extract the first numeric token from free-form amount text.

    Returns None when the text has no figure; this is never an error.
    """
    if not amount:
        return None
    match = _AMOUNT_PATTERN.search(amount)
    if not match:
        logger.debug(f"No numeric token in award amount: {amount!r}")
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        logger.debug(f"Unparseable award amount: {amount!r}")
        return None


def parse_deadline(deadline: Optional[str]) -> Optional[date]:
    """Parse deadline text to a date. Unparseable values are treated as absent."""
    if not deadline:
        return None
    text = deadline.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DEADLINE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    logger.debug(f"Unparseable award deadline: {deadline!r}")
    return None


# =============================================================================
# INSTITUTION
# =============================================================================

def institution_factors(
    institution: Institution,
    profile: UserProfile,
    weights: WeightTable,
    offers_field: bool = False
) -> List[FactorScore]:
    """
    Evaluate every institution factor.

    Args:
        institution: Institution candidate
        profile: User's profile
        weights: Factor weights
        offers_field: Whether the institution offers programs in the user's
            field, precomputed from the program pool by the caller
    """
    factors: List[FactorScore] = []

    # Country match
    if _same_text(profile.preferred_country, institution.country):
        _fire(factors, "COUNTRY_MATCH", weights.country_match,
              f"Located in your preferred country ({institution.country})")

    # Field of study
    if profile.field_of_study and offers_field:
        _fire(factors, "FIELD_MATCH", weights.field_match,
              f"Offers programs in {profile.field_of_study}")

    # Ranking: diminishing value up to the horizon
    ranking = institution.ranking
    if ranking and ranking > 0:
        points = max(0.0, weights.ranking_score * (1 - ranking / RANKING_HORIZON))
        if ranking <= TOP_RANKING_CUTOFF:
            reason = f"Top {TOP_RANKING_CUTOFF} ranked institution (#{ranking})"
        else:
            reason = f"Globally ranked #{ranking}"
        _fire(factors, "RANKING_SCORE", points, reason)

    # Acceptance rate
    rate = institution.acceptance_rate
    if rate is not None:
        low, high = ACCEPTANCE_RATE_SWEET_SPOT
        if low <= rate <= high:
            _fire(factors, "ACCEPTANCE_RATE", weights.acceptance_rate,
                  f"Balanced selectivity ({rate:g}% acceptance rate)")
        elif rate > high:
            _fire(factors, "ACCEPTANCE_RATE", weights.acceptance_rate / 2,
                  f"High acceptance rate ({rate:g}%)")

    # Tuition affordability
    if institution.tuition_min is not None and institution.tuition_max is not None:
        average = (institution.tuition_min + institution.tuition_max) / 2
        if average < INSTITUTION_TUITION_LOW:
            _fire(factors, "TUITION_AFFORDABILITY", weights.tuition_affordability,
                  f"Affordable tuition (about {average:,.0f} per year)")
        elif average < INSTITUTION_TUITION_MODERATE:
            _fire(factors, "TUITION_AFFORDABILITY", weights.tuition_affordability / 2,
                  f"Moderate tuition (about {average:,.0f} per year)")

    # International diversity
    share = institution.international_student_percentage
    if share is not None and share > INTERNATIONAL_PERCENTAGE_MIN:
        _fire(factors, "INTERNATIONAL_DIVERSITY", weights.international_diversity,
              f"Diverse international community ({share:g}% international students)")

    return factors


def score_institution(
    institution: Institution,
    profile: UserProfile,
    weights: WeightTable,
    offers_field: bool = False
) -> Tuple[float, List[str]]:
    """Score an institution for a user. Returns (points, reasons)."""
    return _collect(institution_factors(institution, profile, weights, offers_field))


# =============================================================================
# PROGRAM
# =============================================================================

def program_factors(
    program: Program,
    profile: UserProfile,
    weights: WeightTable
) -> List[FactorScore]:
    """Evaluate every program factor."""
    factors: List[FactorScore] = []

    target_level = profile.program_level
    if target_level is not None and program.level == target_level:
        _fire(factors, "DEGREE_LEVEL_MATCH", weights.degree_level_match,
              f"Matches your degree level ({profile.degree_level.value})")

    if _contains_text(program.field, profile.field_of_study):
        _fire(factors, "FIELD_MATCH", weights.field_match,
              f"Matches your field of study ({program.field})")

    ranking = program.institution_ranking
    if ranking and 0 < ranking <= PROGRAM_PARENT_RANKING_CUTOFF:
        _fire(factors, "RANKING_SCORE", weights.ranking_score / 2,
              f"Offered by a top {PROGRAM_PARENT_RANKING_CUTOFF} institution (#{ranking})")

    fee = program.tuition_fee
    if fee is not None:
        if fee < PROGRAM_TUITION_LOW:
            _fire(factors, "TUITION_AFFORDABILITY", weights.tuition_affordability,
                  f"Affordable tuition ({fee:,.0f})")
        elif fee < PROGRAM_TUITION_MODERATE:
            _fire(factors, "TUITION_AFFORDABILITY", weights.tuition_affordability / 2,
                  f"Moderate tuition ({fee:,.0f})")

    if _same_text(profile.preferred_country, program.institution_country):
        _fire(factors, "COUNTRY_MATCH", weights.country_match,
              f"Located in your preferred country ({program.institution_country})")

    return factors


def score_program(
    program: Program,
    profile: UserProfile,
    weights: WeightTable
) -> Tuple[float, List[str]]:
    """Score a program for a user. Returns (points, reasons)."""
    return _collect(program_factors(program, profile, weights))


# =============================================================================
# AWARD
# =============================================================================

def award_factors(
    award: Award,
    profile: UserProfile,
    weights: WeightTable,
    today: Optional[date] = None
) -> List[FactorScore]:
    """
    Evaluate every award factor.

    Args:
        award: Award candidate
        profile: User's profile
        weights: Factor weights
        today: Reference date for deadline proximity (defaults to today)
    """
    factors: List[FactorScore] = []
    today = today or date.today()

    if _same_text(profile.preferred_country, award.institution_country):
        _fire(factors, "COUNTRY_MATCH", weights.country_match,
              f"Offered in your preferred country ({award.institution_country})")

    # Amount
    amount_text = (award.amount or "").lower()
    if any(marker in amount_text for marker in FULL_AWARD_MARKERS):
        _fire(factors, "SCHOLARSHIP_AMOUNT", weights.scholarship_amount,
              "Full tuition coverage")
    else:
        value = parse_amount(award.amount)
        if value is not None:
            if value >= AWARD_AMOUNT_HIGH:
                _fire(factors, "SCHOLARSHIP_AMOUNT",
                      weights.scholarship_amount * AWARD_AMOUNT_HIGH_FACTOR,
                      f"Generous award amount ({award.amount})")
            elif value >= AWARD_AMOUNT_MEDIUM:
                _fire(factors, "SCHOLARSHIP_AMOUNT",
                      weights.scholarship_amount * AWARD_AMOUNT_MEDIUM_FACTOR,
                      f"Substantial award amount ({award.amount})")

    # Deadline proximity
    deadline = parse_deadline(award.deadline)
    if deadline is not None:
        days_left = (deadline - today).days
        if 0 < days_left <= DEADLINE_NEAR_DAYS:
            _fire(factors, "DEADLINE_PROXIMITY", weights.deadline_proximity,
                  f"Deadline approaching ({days_left} days)")
        elif DEADLINE_NEAR_DAYS < days_left <= DEADLINE_UPCOMING_DAYS:
            _fire(factors, "DEADLINE_PROXIMITY", weights.deadline_proximity / 2,
                  f"Deadline upcoming ({days_left} days)")

    # Field of study in eligibility
    if any(_contains_text(rule, profile.field_of_study) for rule in award.eligibility):
        _fire(factors, "FIELD_MATCH", weights.field_match * AWARD_FIELD_FACTOR,
              f"Open to {profile.field_of_study} students")

    # Degree level via linked programs
    target_level = profile.program_level
    if target_level is not None and target_level in award.program_levels:
        _fire(factors, "DEGREE_LEVEL_MATCH",
              weights.degree_level_match * AWARD_DEGREE_FACTOR,
              f"Available for {profile.degree_level.value} programs")

    return factors


def score_award(
    award: Award,
    profile: UserProfile,
    weights: WeightTable,
    today: Optional[date] = None
) -> Tuple[float, List[str]]:
    """Score an award for a user. Returns (points, reasons)."""
    return _collect(award_factors(award, profile, weights, today))
