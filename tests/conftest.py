"""Pytest fixtures."""

import random

import pytest

from deal_desk.models import DealInput, PropertyType, RentEstimationInput, UnderwritingInput
from deal_desk.underwriting import UnderwritingEngine

# Pinned so age-based bonuses don't drift with the calendar.
CURRENT_YEAR = 2025


@pytest.fixture
def current_year() -> int:
    return CURRENT_YEAR


@pytest.fixture
def leveraged_input() -> UnderwritingInput:
    """$500k purchase, $4k/mo rent, 75% LTV at 7.5% over 30 years."""
    return UnderwritingInput(
        purchase_price=500000,
        monthly_rent=4000,
        loan_amount=375000,
        interest_rate=7.5,
        loan_term_years=30,
    )


@pytest.fixture
def beverly_hills_rent_input() -> RentEstimationInput:
    return RentEstimationInput(
        zip_code="90210",
        property_type="SINGLE_FAMILY",
        bedrooms=3,
        bathrooms=2,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def engine() -> UnderwritingEngine:
    return UnderwritingEngine(current_year=CURRENT_YEAR)


@pytest.fixture
def strong_deal() -> DealInput:
    """Cash-flowing duplex bought under ARV."""
    return DealInput(
        property_name="Maple Duplex",
        address="12 Maple Ave",
        city="Austin",
        state="TX",
        zip_code="78701",
        property_type=PropertyType.DUPLEX,
        year_built=2015,
        purchase_price=250000,
        after_repair_value=340000,
        rehab_costs=15000,
        monthly_rent=3200,
        loan_amount=187500,
        interest_rate=6.0,
        loan_term_years=30,
    )


@pytest.fixture
def weak_deal() -> DealInput:
    """Thin-margin condo with heavy leverage."""
    return DealInput(
        property_name="Harbor Condo",
        address="400 Harbor Blvd Unit 9",
        city="Miami",
        state="FL",
        zip_code="33101",
        property_type=PropertyType.CONDO,
        year_built=1968,
        purchase_price=420000,
        monthly_rent=2600,
        hoa_fees=450,
        loan_amount=378000,
        interest_rate=7.25,
        loan_term_years=30,
    )
