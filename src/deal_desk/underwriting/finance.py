"""Underwriting math: debt service, NOI, DSCR, cap rate and cash-on-cash.

Every ratio guards its denominator explicitly and returns 0 when the ratio is
undefined, so callers always get a finite number to render.
"""

from __future__ import annotations

import math

from ..models import (
    DSCRStatus,
    ExpenseBreakdown,
    UnderwritingAssumptions,
    UnderwritingInput,
    UnderwritingResult,
)

# Bank-ready DSCR threshold
DSCR_THRESHOLD = 1.25

DEFAULT_ASSUMPTIONS = UnderwritingAssumptions()


def calculate_monthly_payment(
    loan_amount: float,
    annual_interest_rate: float,
    loan_term_years: int = 30,
) -> float:
    """Monthly principal + interest from the standard amortization formula.

    ``annual_interest_rate`` is a percent. A zero rate amortizes straight-line.
    """
    if loan_amount <= 0 or loan_term_years <= 0:
        return 0.0
    n = loan_term_years * 12
    if annual_interest_rate <= 0:
        return loan_amount / n
    r = annual_interest_rate / 100 / 12
    growth = (1 + r) ** n
    return loan_amount * r * growth / (growth - 1)


def calculate_annual_debt_service(
    loan_amount: float,
    annual_interest_rate: float,
    loan_term_years: int = 30,
) -> float:
    return calculate_monthly_payment(loan_amount, annual_interest_rate, loan_term_years) * 12


def calculate_noi(effective_gross_income: float, total_operating_expenses: float) -> float:
    """Net Operating Income. Excludes debt service; may be negative."""
    return effective_gross_income - total_operating_expenses


def calculate_dscr(noi: float, annual_debt_service: float) -> float:
    """Debt Service Coverage Ratio; 0 means "no debt", not "no coverage"."""
    if annual_debt_service <= 0:
        return 0.0
    return noi / annual_debt_service


def calculate_cap_rate(noi: float, purchase_price: float) -> float:
    """Cap rate as a percent."""
    if purchase_price <= 0:
        return 0.0
    return noi / purchase_price * 100


def calculate_cash_on_cash(annual_cash_flow: float, total_cash_invested: float) -> float:
    """Cash-on-cash return as a percent."""
    if total_cash_invested <= 0:
        return 0.0
    return annual_cash_flow / total_cash_invested * 100


def calculate_ltv(loan_amount: float, purchase_price: float) -> float:
    """Loan-to-value as a percent."""
    if purchase_price <= 0:
        return 0.0
    return loan_amount / purchase_price * 100


def get_dscr_status(dscr: float) -> DSCRStatus:
    if dscr >= 1.5:
        return "excellent"
    if dscr >= DSCR_THRESHOLD:
        return "good"
    if dscr >= 1.0:
        return "marginal"
    return "poor"


def _expense_breakdown(
    data: UnderwritingInput,
    gross_annual_income: float,
    assumptions: UnderwritingAssumptions,
) -> ExpenseBreakdown:
    """Annual expense lines; blank lines default from purchase price or income."""
    price = data.purchase_price

    def _or(value: float | None, default: float) -> float:
        return default if value is None else value

    return ExpenseBreakdown(
        property_taxes=_or(data.property_taxes, price * assumptions.property_tax_rate),
        insurance=_or(data.insurance, price * assumptions.insurance_rate),
        utilities=data.utilities or 0.0,
        maintenance=_or(data.maintenance, price * assumptions.maintenance_rate),
        property_management=_or(
            data.property_management, gross_annual_income * assumptions.management_rate
        ),
        hoa_fees=(data.hoa_fees or 0.0) * 12,
        other_expenses=(data.other_expenses or 0.0) * 12,
    )


def calculate_underwriting(
    data: UnderwritingInput,
    assumptions: UnderwritingAssumptions | None = None,
) -> UnderwritingResult:
    """Run the full underwriting calculation for one deal. Never raises on numbers."""
    a = assumptions or DEFAULT_ASSUMPTIONS
    vacancy = a.vacancy_rate if data.vacancy_rate is None else data.vacancy_rate

    gross_annual_income = (data.monthly_rent + (data.other_income or 0.0)) * 12
    effective_gross_income = gross_annual_income * (1 - vacancy)

    expenses = _expense_breakdown(data, gross_annual_income, a)
    total_operating_expenses = expenses.total

    loan_amount = data.loan_amount or 0.0
    noi = calculate_noi(effective_gross_income, total_operating_expenses)
    annual_debt_service = calculate_annual_debt_service(
        loan_amount, data.interest_rate or 0.0, data.loan_term_years or 30
    )
    dscr = calculate_dscr(noi, annual_debt_service)
    cap_rate = calculate_cap_rate(noi, data.purchase_price)

    down_payment = data.purchase_price - loan_amount
    annual_cash_flow = noi - annual_debt_service
    cash_on_cash = calculate_cash_on_cash(annual_cash_flow, down_payment)

    return UnderwritingResult(
        gross_annual_income=gross_annual_income,
        effective_gross_income=effective_gross_income,
        total_operating_expenses=total_operating_expenses,
        expense_breakdown=expenses,
        noi=noi,
        annual_debt_service=annual_debt_service,
        dscr=dscr,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        monthly_noi=noi / 12,
        monthly_debt_service=annual_debt_service / 12,
        monthly_cash_flow=annual_cash_flow / 12,
        is_bank_ready=dscr >= DSCR_THRESHOLD,
        dscr_status=get_dscr_status(dscr),
    )


def quick_dscr(
    monthly_rent: float,
    purchase_price: float,
    loan_amount: float,
    interest_rate: float,
    loan_term_years: int = 30,
) -> float:
    """DSCR for a deal using default expenses and vacancy."""
    result = calculate_underwriting(
        UnderwritingInput(
            purchase_price=purchase_price,
            monthly_rent=monthly_rent,
            loan_amount=loan_amount,
            interest_rate=interest_rate,
            loan_term_years=loan_term_years,
        )
    )
    return result.dscr


def calculate_max_loan_for_dscr(
    target_dscr: float,
    noi: float,
    interest_rate: float,
    loan_term_years: int = 30,
) -> int:
    """Largest principal whose debt service keeps DSCR at *target_dscr*.

    Inverts the amortization formula and floors, so the serviceable loan is
    never overstated. Returns 0 when the rate, target or term is not positive.
    """
    if interest_rate <= 0 or target_dscr <= 0 or loan_term_years <= 0:
        return 0
    max_monthly_payment = noi / target_dscr / 12
    r = interest_rate / 100 / 12
    growth = (1 + r) ** (loan_term_years * 12)
    max_loan = max_monthly_payment * (growth - 1) / (r * growth)
    return math.floor(max_loan)


def calculate_break_even_rent(
    total_operating_expenses: float,
    annual_debt_service: float,
    vacancy_rate: float = 0.05,
) -> float:
    """Monthly gross rent needed to cover expenses and debt service after vacancy."""
    if vacancy_rate >= 1:
        return 0.0
    required_income = total_operating_expenses + annual_debt_service
    return required_income / (1 - vacancy_rate) / 12
