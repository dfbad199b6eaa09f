"""Data models for deal inputs, underwriting, scoring and rent estimates."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Literal, Optional


class PropertyType(str, Enum):
    """Property categories recognised by the lookup tables."""

    SINGLE_FAMILY = "SINGLE_FAMILY"
    MULTI_FAMILY = "MULTI_FAMILY"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    DUPLEX = "DUPLEX"
    TRIPLEX = "TRIPLEX"
    FOURPLEX = "FOURPLEX"
    APARTMENT = "APARTMENT"
    MIXED_USE = "MIXED_USE"
    COMMERCIAL = "COMMERCIAL"


class DealStatus(str, Enum):
    """Pipeline status of a tracked deal."""

    DRAFT = "DRAFT"
    ANALYZING = "ANALYZING"
    REVIEWED = "REVIEWED"
    SUBMITTED = "SUBMITTED"
    FUNDED = "FUNDED"
    CLOSED = "CLOSED"
    REJECTED = "REJECTED"


DSCRStatus = Literal["excellent", "good", "marginal", "poor"]
Grade = Literal["A", "B", "C", "D", "F"]


def property_type_key(value: PropertyType | str | None) -> str:
    """Normalize a property type to its table key.

    ``"Single Family"``, ``"single-family"`` and ``PropertyType.SINGLE_FAMILY``
    all map to ``"SINGLE_FAMILY"``. Unknown values pass through normalized;
    callers fall back to defaults for keys they don't know.
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().upper().replace("-", "_").replace(" ", "_")


_NUMBER_TYPES = {"float": float, "int": int}


def _coerce_number(owner: str, name: str, type_name: str, value: Any) -> Any:
    """Coerce *value* for a ``float``/``int`` field; other fields pass through."""
    optional = type_name.startswith("Optional[")
    convert = _NUMBER_TYPES.get(type_name[len("Optional["):-1] if optional else type_name)
    if convert is None:
        return value
    if value is None:
        if optional:
            return None
        raise ValueError(f"{owner}.{name} is required")
    if isinstance(value, bool):
        raise ValueError(f"{owner}.{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{owner}.{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ValueError(f"{owner}.{name} must be finite, got {value!r}")
    if convert is int:
        if not number.is_integer():
            raise ValueError(f"{owner}.{name} must be a whole number, got {value!r}")
        return int(number)
    return number


def _from_mapping(cls, data: dict[str, Any]):
    """Build dataclass *cls* from a plain mapping.

    Unknown keys are rejected and numeric fields are coerced with
    ``float``/``int``, so bad input fails here with a ``ValueError`` naming
    the field rather than later inside the calculators.
    """
    if not isinstance(data, dict):
        raise ValueError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
    types = {f.name: f.type for f in fields(cls)}
    unknown = sorted(set(data) - set(types))
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} field(s): {', '.join(unknown)}")
    values = {
        key: _coerce_number(cls.__name__, key, str(types[key]), value)
        for key, value in data.items()
    }
    try:
        return cls(**values)
    except TypeError as exc:
        raise ValueError(f"Invalid {cls.__name__}: {exc}") from exc


@dataclass(frozen=True)
class UnderwritingAssumptions:
    """Default expense rates used when a deal leaves an expense line blank."""

    property_tax_rate: float = 0.012  # of purchase price, annual
    insurance_rate: float = 0.005  # of purchase price, annual
    maintenance_rate: float = 0.01  # of purchase price, annual
    management_rate: float = 0.08  # of gross annual income
    vacancy_rate: float = 0.05


@dataclass(frozen=True)
class RentSettings:
    """Comparable-generation parameters for rent estimates."""

    comparable_count: int = 5
    comparable_variance: float = 0.12


@dataclass
class UnderwritingInput:
    """Financial inputs for a single deal.

    ``utilities`` and the expense lines that default from rates are annual.
    ``hoa_fees`` and ``other_expenses`` are monthly and annualised.
    ``interest_rate`` is a percent (7.5 means 7.5%).
    """

    purchase_price: float
    monthly_rent: float
    other_income: float = 0.0
    vacancy_rate: Optional[float] = None
    property_taxes: Optional[float] = None
    insurance: Optional[float] = None
    utilities: float = 0.0
    maintenance: Optional[float] = None
    property_management: Optional[float] = None
    hoa_fees: float = 0.0
    other_expenses: float = 0.0
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    loan_term_years: int = 30

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UnderwritingInput":
        return _from_mapping(cls, data)


@dataclass
class ExpenseBreakdown:
    """Annual operating expenses by line item."""

    property_taxes: float
    insurance: float
    utilities: float
    maintenance: float
    property_management: float
    hoa_fees: float
    other_expenses: float

    @property
    def total(self) -> float:
        return (
            self.property_taxes
            + self.insurance
            + self.utilities
            + self.maintenance
            + self.property_management
            + self.hoa_fees
            + self.other_expenses
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class UnderwritingResult:
    """Income, expense and debt-service figures derived from an UnderwritingInput."""

    gross_annual_income: float
    effective_gross_income: float
    total_operating_expenses: float
    expense_breakdown: ExpenseBreakdown
    noi: float
    annual_debt_service: float
    dscr: float
    cap_rate: float
    cash_on_cash: float
    monthly_noi: float
    monthly_debt_service: float
    monthly_cash_flow: float
    is_bank_ready: bool
    dscr_status: DSCRStatus

    @property
    def annual_cash_flow(self) -> float:
        return self.noi - self.annual_debt_service

    def to_dict(self) -> dict[str, Any]:
        return {
            "gross_annual_income": self.gross_annual_income,
            "effective_gross_income": self.effective_gross_income,
            "total_operating_expenses": self.total_operating_expenses,
            "expense_breakdown": self.expense_breakdown.to_dict(),
            "noi": self.noi,
            "annual_debt_service": self.annual_debt_service,
            "dscr": self.dscr,
            "cap_rate": self.cap_rate,
            "cash_on_cash": self.cash_on_cash,
            "monthly_noi": self.monthly_noi,
            "monthly_debt_service": self.monthly_debt_service,
            "monthly_cash_flow": self.monthly_cash_flow,
            "is_bank_ready": self.is_bank_ready,
            "dscr_status": self.dscr_status,
        }


@dataclass
class DealScoreInput:
    """Ratios and property attributes fed into the deal scorer."""

    dscr: float
    cap_rate: float
    cash_on_cash: float
    purchase_price: float
    property_type: PropertyType | str
    after_repair_value: Optional[float] = None
    rehab_costs: Optional[float] = None
    year_built: Optional[int] = None


@dataclass
class ScoreBreakdown:
    """Per-dimension scores, each 0-100."""

    dscr_score: int
    cap_rate_score: int
    cash_on_cash_score: int
    equity_score: int
    property_score: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class DealScoreResult:
    total_score: int
    grade: Grade
    breakdown: ScoreBreakdown
    strengths: list[str]
    weaknesses: list[str]
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_score": self.total_score,
            "grade": self.grade,
            "breakdown": self.breakdown.to_dict(),
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendation": self.recommendation,
        }


@dataclass
class DealComparison:
    """Outcome of comparing two scored deals. ``winner`` is 1, 2 or ``"tie"``."""

    winner: int | str
    reasons: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"winner": self.winner, "reasons": list(self.reasons)}


@dataclass
class RentEstimationInput:
    zip_code: str
    property_type: PropertyType | str
    bedrooms: int
    bathrooms: float
    square_footage: Optional[float] = None
    year_built: Optional[int] = None
    amenities: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RentEstimationInput":
        return _from_mapping(cls, data)


@dataclass
class RentAdjustment:
    """One labelled step of the rent adjustment chain (dollar delta)."""

    factor: str
    amount: float
    description: str


@dataclass
class RentRange:
    low: int
    high: int


@dataclass
class RentComparable:
    """Synthetic comparable rental. Illustrative only, not market data."""

    address: str
    rent: int
    bedrooms: int
    bathrooms: float
    square_footage: Optional[int]
    distance: float


@dataclass
class RentEstimationResult:
    estimated_rent: int
    rent_range: RentRange
    confidence: float
    comparables: list[RentComparable]
    market_average: float
    adjustments: list[RentAdjustment]

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_rent": self.estimated_rent,
            "rent_range": asdict(self.rent_range),
            "confidence": self.confidence,
            "comparables": [asdict(c) for c in self.comparables],
            "market_average": self.market_average,
            "adjustments": [asdict(a) for a in self.adjustments],
        }


@dataclass
class DealInput:
    """Everything a user enters for a deal: property facts plus financials."""

    purchase_price: float
    property_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    property_type: PropertyType | str = PropertyType.SINGLE_FAMILY
    year_built: Optional[int] = None
    square_footage: Optional[float] = None
    units: int = 1
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    after_repair_value: Optional[float] = None
    rehab_costs: Optional[float] = None
    monthly_rent: float = 0.0
    other_income: float = 0.0
    vacancy_rate: Optional[float] = None
    property_taxes: Optional[float] = None
    insurance: Optional[float] = None
    utilities: float = 0.0
    maintenance: Optional[float] = None
    property_management: Optional[float] = None
    hoa_fees: float = 0.0
    other_expenses: float = 0.0
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    loan_term_years: int = 30
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DealInput":
        return _from_mapping(cls, data)

    def to_underwriting_input(self) -> UnderwritingInput:
        return UnderwritingInput(
            purchase_price=self.purchase_price,
            monthly_rent=self.monthly_rent or 0.0,
            other_income=self.other_income or 0.0,
            vacancy_rate=self.vacancy_rate,
            property_taxes=self.property_taxes,
            insurance=self.insurance,
            utilities=self.utilities or 0.0,
            maintenance=self.maintenance,
            property_management=self.property_management,
            hoa_fees=self.hoa_fees or 0.0,
            other_expenses=self.other_expenses or 0.0,
            loan_amount=self.loan_amount or 0.0,
            interest_rate=self.interest_rate or 0.0,
            loan_term_years=self.loan_term_years or 30,
        )

    def to_score_input(self, underwriting: UnderwritingResult) -> DealScoreInput:
        return DealScoreInput(
            dscr=underwriting.dscr,
            cap_rate=underwriting.cap_rate,
            cash_on_cash=underwriting.cash_on_cash,
            purchase_price=self.purchase_price,
            property_type=self.property_type,
            after_repair_value=self.after_repair_value,
            rehab_costs=self.rehab_costs,
            year_built=self.year_built,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["property_type"] = property_type_key(self.property_type)
        return data


@dataclass
class DealAnalysis:
    """Underwriting plus score for one deal input."""

    deal: DealInput
    underwriting: UnderwritingResult
    score: DealScoreResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "deal": self.deal.to_dict(),
            "underwriting": self.underwriting.to_dict(),
            "score": self.score.to_dict(),
        }


@dataclass
class Deal:
    """A tracked deal. ``analysis`` is derived from ``inputs`` and is never authoritative."""

    id: str
    inputs: DealInput
    status: DealStatus | str = DealStatus.DRAFT
    analysis: Optional[DealAnalysis] = None

    @property
    def dscr(self) -> float:
        return self.analysis.underwriting.dscr if self.analysis else 0.0

    @property
    def cap_rate(self) -> float:
        return self.analysis.underwriting.cap_rate if self.analysis else 0.0

    @property
    def status_key(self) -> str:
        return self.status.value if isinstance(self.status, Enum) else str(self.status).upper()


@dataclass
class DealFilters:
    """Deal list filters. Empty lists and zero/None bounds mean "no filter"."""

    status: list[str] = field(default_factory=list)
    property_type: list[str] = field(default_factory=list)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_dscr: Optional[float] = None
    state: Optional[str] = None
    search: Optional[str] = None


@dataclass
class PortfolioMetrics:
    total_deals: int
    active_deals: int
    total_portfolio_value: float
    average_dscr: float
    average_cap_rate: float
    deals_by_status: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
