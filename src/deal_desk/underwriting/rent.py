"""Rule-based market rent estimation.

The estimate is a chain: base rent by bedrooms, times property-type and
location multipliers, plus dollar adjustments for size, age, bathrooms and
amenities. Each stage that moves the number is recorded as a RentAdjustment.
Rates are static national fallbacks, not live market data.
"""

from __future__ import annotations

import math
import random
from datetime import date
from types import MappingProxyType
from typing import Optional

from loguru import logger

from ..models import (
    PropertyType,
    RentAdjustment,
    RentComparable,
    RentEstimationInput,
    RentEstimationResult,
    RentRange,
    RentSettings,
    property_type_key,
)
from ..utils import round_half_up

BASE_RENT_BY_BEDROOMS = MappingProxyType({
    0: 1200,  # studio
    1: 1400,
    2: 1700,
    3: 2100,
    4: 2500,
    5: 3000,
})
DEFAULT_BEDROOMS = 2

PROPERTY_TYPE_MULTIPLIERS = MappingProxyType({
    "SINGLE_FAMILY": 1.15,
    "MULTI_FAMILY": 1.0,
    "CONDO": 1.05,
    "TOWNHOUSE": 1.08,
    "DUPLEX": 0.95,
    "TRIPLEX": 0.93,
    "FOURPLEX": 0.90,
    "APARTMENT": 0.95,
})

STATE_MULTIPLIERS = MappingProxyType({
    "CA": 1.45,
    "NY": 1.40,
    "MA": 1.35,
    "WA": 1.30,
    "CO": 1.20,
    "TX": 0.95,
    "FL": 1.10,
    "AZ": 1.05,
    "NC": 0.95,
    "GA": 0.98,
    "OH": 0.85,
    "MI": 0.80,
    "PA": 0.95,
    "IL": 1.05,
    "NJ": 1.25,
})
UNKNOWN_STATE = "DEFAULT"

# (low, high, state) over the first three ZIP digits. Simplified, not a ZIP database.
ZIP_PREFIX_STATES: tuple[tuple[int, int, str], ...] = (
    (900, 961, "CA"),
    (100, 149, "NY"),
    (750, 799, "TX"),
    (320, 349, "FL"),
    (850, 865, "AZ"),
    (800, 816, "CO"),
)

EXPECTED_SQFT_BY_BEDROOMS = MappingProxyType({
    0: 500,
    1: 700,
    2: 1000,
    3: 1400,
    4: 1800,
    5: 2200,
})
DEFAULT_EXPECTED_SQFT = 1000
SQFT_RATE = 0.50  # $ per sqft over/under expected

# (maximum age in years, monthly $); anything older gets AGE_ADJUSTMENT_OLDEST.
AGE_ADJUSTMENTS: tuple[tuple[int, int], ...] = (
    (5, 150),
    (15, 75),
    (30, 0),
    (50, -50),
)
AGE_ADJUSTMENT_OLDEST = -100

BATHROOM_RATE = 80  # $ per full bath over/under expected

AMENITY_ADJUSTMENTS = MappingProxyType({
    "garage": 100,
    "pool": 75,
    "washer_dryer": 50,
    "dishwasher": 25,
    "central_ac": 50,
    "hardwood_floors": 35,
    "updated_kitchen": 75,
    "updated_bathroom": 50,
    "fireplace": 40,
    "fenced_yard": 60,
    "pet_friendly": 30,
    "smart_home": 45,
})

BASE_CONFIDENCE = 0.5
CONFIDENCE_STEP = 0.1
MIN_RANGE_PERCENT = 0.08
RANGE_PERCENT_SPREAD = 0.07
MARKET_AVERAGE_RATIO = 0.95

DEFAULT_RENT_SETTINGS = RentSettings()


def get_state_from_zip(zip_code: str) -> str:
    """Map a ZIP code to a state by its three-digit prefix, or ``"DEFAULT"``."""
    digits = str(zip_code or "").strip()[:3]
    try:
        prefix = int(digits)
    except ValueError:
        return UNKNOWN_STATE
    for low, high, state in ZIP_PREFIX_STATES:
        if low <= prefix <= high:
            return state
    return UNKNOWN_STATE


def get_state_multiplier(state: str) -> float:
    return STATE_MULTIPLIERS.get(state.upper(), 1.0)


def calculate_sqft_adjustment(square_footage: Optional[float], bedrooms: int) -> float:
    if not square_footage:
        return 0.0
    expected = EXPECTED_SQFT_BY_BEDROOMS.get(bedrooms, DEFAULT_EXPECTED_SQFT)
    return (square_footage - expected) * SQFT_RATE


def calculate_age_adjustment(year_built: Optional[int], current_year: Optional[int] = None) -> float:
    if not year_built:
        return 0.0
    age = (current_year or date.today().year) - year_built
    for max_age, amount in AGE_ADJUSTMENTS:
        if age <= max_age:
            return float(amount)
    return float(AGE_ADJUSTMENT_OLDEST)


def calculate_bathroom_adjustment(bathrooms: float, bedrooms: int) -> float:
    """$80 per bath away from ``ceil(bedrooms / 2) + 0.5``."""
    expected = math.ceil(bedrooms / 2) + 0.5
    return (bathrooms - expected) * BATHROOM_RATE


def calculate_amenity_adjustment(amenities: list[str]) -> float:
    """Sum of known amenity premiums; unknown amenities add nothing."""
    total = 0.0
    for amenity in amenities:
        amount = AMENITY_ADJUSTMENTS.get(str(amenity).strip().lower())
        if amount is None:
            logger.debug("Ignoring unknown amenity {!r}", amenity)
            continue
        total += amount
    return total


def _bath_label(bathrooms: float) -> str:
    return f"{bathrooms:g} bathroom{'s' if bathrooms != 1 else ''}"


def generate_comparables(
    estimated_rent: float,
    bedrooms: int,
    bathrooms: float,
    rng: random.Random,
    settings: RentSettings = DEFAULT_RENT_SETTINGS,
) -> list[RentComparable]:
    """Synthetic comparables scattered around the estimate.

    Placeholders for illustration only; pass a seeded ``rng`` to reproduce them.
    """
    variance = settings.comparable_variance
    comparables: list[RentComparable] = []
    for i in range(settings.comparable_count):
        rent_variance = 1 + (rng.random() * variance * 2 - variance)
        comparables.append(
            RentComparable(
                address=f"{1000 + i * 100} Example St",
                rent=round_half_up(estimated_rent * rent_variance),
                bedrooms=bedrooms,
                bathrooms=bathrooms,
                square_footage=800 + bedrooms * 300 + math.floor(rng.random() * 200),
                distance=round_half_up((0.5 + rng.random() * 2) * 10) / 10,
            )
        )
    return comparables


def estimate_rent(
    data: RentEstimationInput,
    rng: Optional[random.Random] = None,
    settings: Optional[RentSettings] = None,
    current_year: Optional[int] = None,
) -> RentEstimationResult:
    """Estimate monthly market rent for a property.

    Multipliers apply first (base, type, location), then additive dollar
    adjustments. Stages with a zero delta are left out of ``adjustments`` but
    the estimate is always the full chain.
    """
    amenities = list(data.amenities or [])
    adjustments: list[RentAdjustment] = []

    base_rent = BASE_RENT_BY_BEDROOMS.get(data.bedrooms, BASE_RENT_BY_BEDROOMS[DEFAULT_BEDROOMS])
    adjustments.append(
        RentAdjustment(
            factor="Base Rent",
            amount=base_rent,
            description=f"{data.bedrooms} bedroom base rent",
        )
    )

    type_key = property_type_key(data.property_type)
    type_multiplier = PROPERTY_TYPE_MULTIPLIERS.get(type_key, 1.0)
    after_type = base_rent * type_multiplier
    if type_multiplier != 1.0:
        adjustments.append(
            RentAdjustment(
                factor="Property Type",
                amount=after_type - base_rent,
                description=f"{type_key.replace('_', ' ').lower()} adjustment",
            )
        )

    state = get_state_from_zip(data.zip_code)
    state_multiplier = get_state_multiplier(state)
    after_location = after_type * state_multiplier
    if state_multiplier != 1.0:
        adjustments.append(
            RentAdjustment(
                factor="Location",
                amount=after_location - after_type,
                description=f"{state} market adjustment",
            )
        )

    sqft_adj = calculate_sqft_adjustment(data.square_footage, data.bedrooms)
    if sqft_adj != 0:
        adjustments.append(
            RentAdjustment(
                factor="Square Footage",
                amount=sqft_adj,
                description=f"{data.square_footage:g} sqft adjustment",
            )
        )

    age_adj = calculate_age_adjustment(data.year_built, current_year)
    if age_adj != 0:
        adjustments.append(
            RentAdjustment(
                factor="Property Age",
                amount=age_adj,
                description=f"Built in {data.year_built}",
            )
        )

    bath_adj = calculate_bathroom_adjustment(data.bathrooms, data.bedrooms)
    if bath_adj != 0:
        adjustments.append(
            RentAdjustment(
                factor="Bathrooms",
                amount=bath_adj,
                description=_bath_label(data.bathrooms),
            )
        )

    amenity_total = calculate_amenity_adjustment(amenities)
    if amenity_total != 0:
        adjustments.append(
            RentAdjustment(
                factor="Amenities",
                amount=amenity_total,
                description=f"{len(amenities)} amenity adjustments",
            )
        )

    estimated_rent = round_half_up(after_location + sqft_adj + age_adj + bath_adj + amenity_total)

    signals = [
        bool(data.square_footage),
        bool(data.year_built),
        bool(data.bathrooms),
        len(amenities) > 0,
        state in STATE_MULTIPLIERS,
    ]
    confidence = min(BASE_CONFIDENCE + CONFIDENCE_STEP * sum(signals), 1.0)

    # Band narrows toward +-8% as confidence rises, widens toward +-15%.
    range_percent = MIN_RANGE_PERCENT + (1 - confidence) * RANGE_PERCENT_SPREAD
    rent_range = RentRange(
        low=round_half_up(estimated_rent * (1 - range_percent)),
        high=round_half_up(estimated_rent * (1 + range_percent)),
    )

    comparables = generate_comparables(
        estimated_rent,
        data.bedrooms,
        data.bathrooms,
        rng or random.Random(),
        settings or DEFAULT_RENT_SETTINGS,
    )

    return RentEstimationResult(
        estimated_rent=estimated_rent,
        rent_range=rent_range,
        confidence=confidence,
        comparables=comparables,
        market_average=estimated_rent * MARKET_AVERAGE_RATIO,
        adjustments=adjustments,
    )


def quick_rent_estimate(
    bedrooms: int,
    zip_code: str,
    property_type: PropertyType | str = PropertyType.SINGLE_FAMILY,
) -> int:
    """Estimate from bedrooms and ZIP alone, assuming the typical bath count."""
    result = estimate_rent(
        RentEstimationInput(
            zip_code=zip_code,
            property_type=property_type,
            bedrooms=bedrooms,
            bathrooms=math.ceil(bedrooms / 2) + 0.5,
        )
    )
    return result.estimated_rent


def calculate_rent_per_bedroom(total_rent: float, bedrooms: int) -> float:
    if bedrooms <= 0:
        return total_rent
    return round_half_up(total_rent / bedrooms)


def calculate_price_to_rent_ratio(purchase_price: float, monthly_rent: float) -> float:
    """Purchase price over annual rent; 0 when rent is not positive."""
    if monthly_rent <= 0:
        return 0.0
    return purchase_price / (monthly_rent * 12)


def evaluate_rent_vs_market(actual_rent: float, estimated_rent: float) -> tuple[str, float]:
    """Classify a rent as ``below``/``at``/``above`` market (+-5% band).

    Returns ``(status, percent difference)``.
    """
    if estimated_rent <= 0:
        return "at", 0.0
    percentage = (actual_rent - estimated_rent) / estimated_rent * 100
    if percentage < -5:
        return "below", percentage
    if percentage > 5:
        return "above", percentage
    return "at", percentage
