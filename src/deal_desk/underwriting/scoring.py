"""Weighted deal scoring, letter grades and deal comparison.

Each dimension is bucketed through a descending breakpoint table (first
threshold the value meets wins, inclusive), then combined with fixed weights
that sum to 100.
"""

from __future__ import annotations

from datetime import date
from types import MappingProxyType

from loguru import logger

from ..models import (
    DealComparison,
    DealScoreInput,
    DealScoreResult,
    Grade,
    ScoreBreakdown,
    property_type_key,
)
from ..utils import clamp, round_half_up
from .finance import DSCR_THRESHOLD

SCORE_WEIGHTS = MappingProxyType({
    "dscr": 30,
    "cap_rate": 25,
    "cash_on_cash": 20,
    "equity": 15,
    "property": 10,
})

GRADE_THRESHOLDS: tuple[tuple[int, Grade], ...] = (
    (85, "A"),
    (70, "B"),
    (55, "C"),
    (40, "D"),
)

# (minimum value, score) pairs, highest first.
DSCR_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (2.0, 100),
    (1.75, 95),
    (1.5, 85),
    (DSCR_THRESHOLD, 75),
    (1.1, 50),
    (1.0, 30),
    (0.85, 15),
)
CAP_RATE_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (12, 100),
    (10, 95),
    (8, 85),
    (6, 70),
    (5, 55),
    (4, 40),
    (3, 25),
)
CASH_ON_CASH_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (20, 100),
    (15, 95),
    (12, 85),
    (10, 75),
    (8, 65),
    (5, 45),
    (2, 25),
)
EQUITY_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (30, 100),
    (25, 90),
    (20, 80),
    (15, 65),
    (10, 50),
    (5, 35),
    (0, 20),
)

NEUTRAL_EQUITY_SCORE = 50
PROPERTY_BASE_SCORE = 50
DEFAULT_PROPERTY_TYPE_BONUS = 10

PROPERTY_TYPE_BONUS = MappingProxyType({
    "SINGLE_FAMILY": 20,
    "DUPLEX": 18,
    "TRIPLEX": 16,
    "FOURPLEX": 14,
    "TOWNHOUSE": 15,
    "CONDO": 12,
    "MULTI_FAMILY": 15,
    "APARTMENT": 10,
    "MIXED_USE": 12,
    "COMMERCIAL": 10,
})

# (maximum age in years, bonus); anything older gets AGE_BONUS_OLDEST.
AGE_BONUS: tuple[tuple[int, int], ...] = (
    (5, 30),
    (15, 25),
    (30, 15),
    (50, 5),
)
AGE_BONUS_OLDEST = -5

RECOMMENDATIONS = MappingProxyType({
    "A": (
        "Excellent investment opportunity. This deal meets or exceeds all key metrics. "
        "Recommend proceeding with due diligence."
    ),
    "B": (
        "Good investment opportunity. Solid fundamentals with room for improvement. "
        "Consider negotiating for better terms."
    ),
    "C": (
        "Average deal with mixed metrics. Carefully evaluate risks vs potential returns. "
        "May work with specific strategy adjustments."
    ),
    "D": (
        "Below average opportunity. Multiple areas of concern. Only proceed if you can "
        "address key weaknesses through negotiation or value-add."
    ),
    "F": (
        "Poor investment based on current numbers. Recommend passing unless significant "
        "improvements can be negotiated."
    ),
})

_DIMENSIONS = ("dscr_score", "cap_rate_score", "cash_on_cash_score", "equity_score", "property_score")


def _bucket(value: float, breakpoints: tuple[tuple[float, int], ...], floor: int) -> int:
    for minimum, score in breakpoints:
        if value >= minimum:
            return score
    return floor


def calculate_dscr_score(dscr: float) -> int:
    return _bucket(dscr, DSCR_BREAKPOINTS, 0)


def calculate_cap_rate_score(cap_rate: float) -> int:
    return _bucket(cap_rate, CAP_RATE_BREAKPOINTS, 10)


def calculate_cash_on_cash_score(cash_on_cash: float) -> int:
    return _bucket(cash_on_cash, CASH_ON_CASH_BREAKPOINTS, 10)


def calculate_equity_score(
    purchase_price: float,
    after_repair_value: float | None = None,
    rehab_costs: float | None = None,
) -> int:
    """Score built-in equity; neutral when the after-repair value is unknown."""
    if not after_repair_value:
        return NEUTRAL_EQUITY_SCORE
    total_investment = purchase_price + (rehab_costs or 0)
    equity_percent = (after_repair_value - total_investment) / after_repair_value * 100
    return _bucket(equity_percent, EQUITY_BREAKPOINTS, 0)


def _age_bonus(year_built: int | None, current_year: int) -> int:
    if not year_built:
        return 0
    age = current_year - year_built
    for max_age, bonus in AGE_BONUS:
        if age <= max_age:
            return bonus
    return AGE_BONUS_OLDEST


def calculate_property_score(
    property_type: str,
    year_built: int | None = None,
    current_year: int | None = None,
) -> int:
    """Base 50, plus type bonus, plus age bonus/penalty, clamped to 0-100."""
    year = current_year or date.today().year
    score = PROPERTY_BASE_SCORE
    key = property_type_key(property_type)
    if key not in PROPERTY_TYPE_BONUS:
        logger.debug("Unknown property type {!r}, using default bonus", property_type)
    score += PROPERTY_TYPE_BONUS.get(key, DEFAULT_PROPERTY_TYPE_BONUS)
    score += _age_bonus(year_built, year)
    return int(clamp(score, 0, 100))


def get_grade(score: float) -> Grade:
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


def generate_strengths(breakdown: ScoreBreakdown) -> list[str]:
    strengths: list[str] = []
    if breakdown.dscr_score >= 75:
        strengths.append("Strong debt service coverage - bank-ready")
    if breakdown.cap_rate_score >= 70:
        strengths.append("Above average cap rate for solid returns")
    if breakdown.cash_on_cash_score >= 65:
        strengths.append("Excellent cash flow for cash invested")
    if breakdown.equity_score >= 65:
        strengths.append("Built-in equity provides safety margin")
    if breakdown.property_score >= 70:
        strengths.append("Desirable property type/condition")
    return strengths


def generate_weaknesses(breakdown: ScoreBreakdown) -> list[str]:
    weaknesses: list[str] = []
    if breakdown.dscr_score < 50:
        weaknesses.append("Low DSCR may not meet bank requirements")
    if breakdown.cap_rate_score < 50:
        weaknesses.append("Cap rate below market average")
    if breakdown.cash_on_cash_score < 40:
        weaknesses.append("Low cash-on-cash return")
    if breakdown.equity_score < 40:
        weaknesses.append("Limited equity position")
    if breakdown.property_score < 40:
        weaknesses.append("Property type or age may limit appreciation")
    return weaknesses


def generate_recommendation(
    total_score: int,
    grade: Grade,
    strengths: list[str],
    weaknesses: list[str],
) -> str:
    """Recommendation text for a scored deal.

    Only *grade* selects the text; the other arguments are accepted but do not
    change the wording yet.
    """
    return RECOMMENDATIONS.get(grade, RECOMMENDATIONS["F"])


def _weighted_total(breakdown: ScoreBreakdown) -> int:
    weighted = (
        breakdown.dscr_score * SCORE_WEIGHTS["dscr"]
        + breakdown.cap_rate_score * SCORE_WEIGHTS["cap_rate"]
        + breakdown.cash_on_cash_score * SCORE_WEIGHTS["cash_on_cash"]
        + breakdown.equity_score * SCORE_WEIGHTS["equity"]
        + breakdown.property_score * SCORE_WEIGHTS["property"]
    )
    return round_half_up(weighted / 100)


def score_deal(data: DealScoreInput, current_year: int | None = None) -> DealScoreResult:
    """Score a deal 0-100 across five weighted dimensions and grade it A-F."""
    breakdown = ScoreBreakdown(
        dscr_score=calculate_dscr_score(data.dscr),
        cap_rate_score=calculate_cap_rate_score(data.cap_rate),
        cash_on_cash_score=calculate_cash_on_cash_score(data.cash_on_cash),
        equity_score=calculate_equity_score(
            data.purchase_price, data.after_repair_value, data.rehab_costs
        ),
        property_score=calculate_property_score(
            data.property_type, data.year_built, current_year
        ),
    )
    total_score = _weighted_total(breakdown)
    grade = get_grade(total_score)
    strengths = generate_strengths(breakdown)
    weaknesses = generate_weaknesses(breakdown)
    return DealScoreResult(
        total_score=total_score,
        grade=grade,
        breakdown=breakdown,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendation=generate_recommendation(total_score, grade, strengths, weaknesses),
    )


def quick_score(dscr: float, cap_rate: float, cash_on_cash: float) -> int:
    """Score from the three ratio dimensions only, rescaled to 0-100."""
    weight = SCORE_WEIGHTS["dscr"] + SCORE_WEIGHTS["cap_rate"] + SCORE_WEIGHTS["cash_on_cash"]
    weighted = (
        calculate_dscr_score(dscr) * SCORE_WEIGHTS["dscr"]
        + calculate_cap_rate_score(cap_rate) * SCORE_WEIGHTS["cap_rate"]
        + calculate_cash_on_cash_score(cash_on_cash) * SCORE_WEIGHTS["cash_on_cash"]
    )
    return round_half_up(weighted / weight)


def compare_deals(deal1: DealScoreResult, deal2: DealScoreResult) -> DealComparison:
    """Pick the better of two scored deals.

    A total-score lead of more than 5 points wins outright; otherwise the deal
    that wins more of the five dimensions wins.
    """
    deal1_points = 0
    deal2_points = 0
    for dim in _DIMENSIONS:
        s1 = getattr(deal1.breakdown, dim)
        s2 = getattr(deal2.breakdown, dim)
        if s1 > s2:
            deal1_points += 1
        elif s2 > s1:
            deal2_points += 1

    if deal1.total_score > deal2.total_score + 5:
        return DealComparison(
            winner=1,
            reasons=[f"Deal 1 has higher overall score ({deal1.total_score} vs {deal2.total_score})"],
        )
    if deal2.total_score > deal1.total_score + 5:
        return DealComparison(
            winner=2,
            reasons=[f"Deal 2 has higher overall score ({deal2.total_score} vs {deal1.total_score})"],
        )
    if deal1_points > deal2_points:
        return DealComparison(winner=1, reasons=["Deal 1 performs better across more metrics"])
    if deal2_points > deal1_points:
        return DealComparison(winner=2, reasons=["Deal 2 performs better across more metrics"])
    return DealComparison(winner="tie", reasons=["Both deals are comparable"])
