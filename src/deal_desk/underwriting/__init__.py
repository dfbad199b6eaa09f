"""Underwriting, deal scoring and rent estimation calculators."""

from .engine import UnderwritingEngine
from .finance import (
    DSCR_THRESHOLD,
    calculate_annual_debt_service,
    calculate_break_even_rent,
    calculate_cap_rate,
    calculate_cash_on_cash,
    calculate_dscr,
    calculate_ltv,
    calculate_max_loan_for_dscr,
    calculate_monthly_payment,
    calculate_noi,
    calculate_underwriting,
    get_dscr_status,
    quick_dscr,
)
from .rent import (
    calculate_price_to_rent_ratio,
    calculate_rent_per_bedroom,
    estimate_rent,
    evaluate_rent_vs_market,
    get_state_from_zip,
    quick_rent_estimate,
)
from .scoring import SCORE_WEIGHTS, compare_deals, get_grade, quick_score, score_deal

__all__ = [
    "UnderwritingEngine",
    "DSCR_THRESHOLD",
    "calculate_annual_debt_service",
    "calculate_break_even_rent",
    "calculate_cap_rate",
    "calculate_cash_on_cash",
    "calculate_dscr",
    "calculate_ltv",
    "calculate_max_loan_for_dscr",
    "calculate_monthly_payment",
    "calculate_noi",
    "calculate_underwriting",
    "get_dscr_status",
    "quick_dscr",
    "calculate_price_to_rent_ratio",
    "calculate_rent_per_bedroom",
    "estimate_rent",
    "evaluate_rent_vs_market",
    "get_state_from_zip",
    "quick_rent_estimate",
    "SCORE_WEIGHTS",
    "compare_deals",
    "get_grade",
    "quick_score",
    "score_deal",
]
