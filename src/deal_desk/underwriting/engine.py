"""Underwriting engine: composes underwriting, scoring and rent estimation."""

from __future__ import annotations

import random
from typing import Any, List

from loguru import logger

from ..config import get_rent_settings, get_underwriting_assumptions
from ..models import (
    DealAnalysis,
    DealInput,
    RentEstimationInput,
    RentEstimationResult,
    RentSettings,
    UnderwritingAssumptions,
    UnderwritingInput,
    UnderwritingResult,
)
from .finance import DEFAULT_ASSUMPTIONS, calculate_underwriting
from .rent import DEFAULT_RENT_SETTINGS, estimate_rent
from .scoring import score_deal


class UnderwritingEngine:
    """
    Runs the calculators with one set of assumptions.
    Holds no per-deal state; safe to share between callers.
    """

    def __init__(
        self,
        assumptions: UnderwritingAssumptions | None = None,
        rent_settings: RentSettings | None = None,
        config: dict[str, Any] | None = None,
        current_year: int | None = None,
    ) -> None:
        if config is not None:
            assumptions = assumptions or get_underwriting_assumptions(config)
            rent_settings = rent_settings or get_rent_settings(config)
        self.assumptions = assumptions or DEFAULT_ASSUMPTIONS
        self.rent_settings = rent_settings or DEFAULT_RENT_SETTINGS
        self.current_year = current_year

    def underwrite(self, data: UnderwritingInput) -> UnderwritingResult:
        """Underwrite one set of deal financials."""
        return calculate_underwriting(data, self.assumptions)

    def underwrite_many(self, inputs: List[UnderwritingInput]) -> List[UnderwritingResult]:
        return [self.underwrite(i) for i in inputs]

    def analyze(self, deal: DealInput) -> DealAnalysis:
        """Underwrite a deal, then score it from the resulting ratios."""
        underwriting = self.underwrite(deal.to_underwriting_input())
        score = score_deal(deal.to_score_input(underwriting), current_year=self.current_year)
        return DealAnalysis(deal=deal, underwriting=underwriting, score=score)

    def analyze_many(self, deals: List[DealInput]) -> List[DealAnalysis]:
        """Analyze deals and rank them by score, then monthly cash flow."""
        ranked = self.rank([self.analyze(d) for d in deals])
        logger.info("Analyzed {} deals", len(ranked))
        return ranked

    @staticmethod
    def rank(analyses: List[DealAnalysis]) -> List[DealAnalysis]:
        """Best score first; ties go to the higher monthly cash flow."""
        return sorted(
            analyses,
            key=lambda a: (-a.score.total_score, -a.underwriting.monthly_cash_flow),
        )

    def estimate_rent(
        self,
        data: RentEstimationInput,
        rng: random.Random | None = None,
    ) -> RentEstimationResult:
        return estimate_rent(
            data,
            rng=rng,
            settings=self.rent_settings,
            current_year=self.current_year,
        )
