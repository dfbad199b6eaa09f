"""CLI for the deal-desk underwriting calculator."""

from __future__ import annotations

import os
import random
import sys
from pathlib import Path

from dotenv import load_dotenv
from typing import Any, List, NoReturn, Optional

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

import typer
import yaml
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, load_config, load_deals
from .export import export_csv, export_json
from .filters import filter_deals
from .models import (
    Deal,
    DealAnalysis,
    DealFilters,
    DealScoreInput,
    DealScoreResult,
    RentEstimationInput,
    UnderwritingInput,
)
from .portfolio import load_deal_records, portfolio_metrics
from .underwriting import (
    UnderwritingEngine,
    calculate_break_even_rent,
    calculate_max_loan_for_dscr,
    compare_deals,
    score_deal,
)

app = typer.Typer(
    name="deal-desk",
    help="Real-estate underwriting calculator - NOI, DSCR, deal scores and rent estimates",
)
console = Console()


def _money(value: float) -> str:
    return f"-${-value:,.0f}" if value < 0 else f"${value:,.0f}"


def _pct(value: float) -> str:
    return f"{value:.2f}%"


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(1)


def _engine(config_path: Optional[Path]) -> UnderwritingEngine:
    """Engine from config; the default config.yaml is optional, explicit paths are not."""
    explicit = config_path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    cfg: dict[str, Any] = {}
    try:
        if explicit or DEFAULT_CONFIG_PATH.exists():
            cfg = load_config(config_path)
        return UnderwritingEngine(config=cfg)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        _fail(f"Config error: {exc}")


def _print_payload(payload: Any) -> None:
    console.print_json(data=payload, default=str)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Configure logging for all commands."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command()
def underwrite(
    price: float = typer.Option(..., "--price", "-p", help="Purchase price"),
    rent: float = typer.Option(..., "--rent", "-r", help="Monthly rent"),
    other_income: float = typer.Option(0.0, "--other-income", help="Other monthly income"),
    vacancy: Optional[float] = typer.Option(None, "--vacancy", help="Vacancy rate as a fraction (default 0.05)"),
    taxes: Optional[float] = typer.Option(None, "--taxes", help="Annual property taxes"),
    insurance: Optional[float] = typer.Option(None, "--insurance", help="Annual insurance"),
    utilities: float = typer.Option(0.0, "--utilities", help="Annual utilities"),
    maintenance: Optional[float] = typer.Option(None, "--maintenance", help="Annual maintenance"),
    management: Optional[float] = typer.Option(None, "--management", help="Annual property management"),
    hoa: float = typer.Option(0.0, "--hoa", help="Monthly HOA fees"),
    other_expenses: float = typer.Option(0.0, "--other-expenses", help="Other monthly expenses"),
    loan: float = typer.Option(0.0, "--loan", "-l", help="Loan amount"),
    rate: float = typer.Option(0.0, "--rate", help="Annual interest rate, percent"),
    term: int = typer.Option(30, "--term", help="Loan term in years"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Underwrite one deal: NOI, debt service, DSCR, cap rate, cash-on-cash."""
    engine = _engine(config_path)
    result = engine.underwrite(
        UnderwritingInput(
            purchase_price=price,
            monthly_rent=rent,
            other_income=other_income,
            vacancy_rate=vacancy,
            property_taxes=taxes,
            insurance=insurance,
            utilities=utilities,
            maintenance=maintenance,
            property_management=management,
            hoa_fees=hoa,
            other_expenses=other_expenses,
            loan_amount=loan,
            interest_rate=rate,
            loan_term_years=term,
        )
    )
    if as_json:
        _print_payload(result.to_dict())
        return

    table = Table(title="Underwriting")
    table.add_column("Metric", style="cyan")
    table.add_column("Annual", justify="right")
    table.add_column("Monthly", justify="right")
    table.add_row("Gross income", _money(result.gross_annual_income), _money(result.gross_annual_income / 12))
    table.add_row("Effective gross income", _money(result.effective_gross_income), _money(result.effective_gross_income / 12))
    for name, value in result.expense_breakdown.to_dict().items():
        table.add_row(f"  {name.replace('_', ' ')}", _money(value), _money(value / 12))
    table.add_row("Operating expenses", _money(result.total_operating_expenses), _money(result.total_operating_expenses / 12))
    table.add_row("NOI", _money(result.noi), _money(result.monthly_noi))
    table.add_row("Debt service", _money(result.annual_debt_service), _money(result.monthly_debt_service))
    table.add_row("Cash flow", _money(result.annual_cash_flow), _money(result.monthly_cash_flow))
    console.print(table)

    ready = "[green]bank-ready[/green]" if result.is_bank_ready else "[yellow]not bank-ready[/yellow]"
    console.print(f"DSCR {result.dscr:.2f} ({result.dscr_status}, {ready})")
    console.print(f"Cap rate {_pct(result.cap_rate)}  Cash-on-cash {_pct(result.cash_on_cash)}")


def _display_score(title: str, result: DealScoreResult) -> None:
    table = Table(title=title)
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    for name, value in result.breakdown.to_dict().items():
        table.add_row(name.replace("_score", "").replace("_", " "), str(value))
    table.add_row("[bold]Total[/bold]", f"[bold]{result.total_score} ({result.grade})[/bold]")
    console.print(table)
    for s in result.strengths:
        console.print(f"[green]+ {s}[/green]")
    for w in result.weaknesses:
        console.print(f"[yellow]- {w}[/yellow]")
    console.print(result.recommendation)


@app.command()
def score(
    dscr: float = typer.Option(..., "--dscr", help="Debt service coverage ratio"),
    cap_rate: float = typer.Option(..., "--cap-rate", help="Cap rate, percent"),
    coc: float = typer.Option(..., "--coc", help="Cash-on-cash return, percent"),
    price: float = typer.Option(..., "--price", "-p", help="Purchase price"),
    property_type: str = typer.Option("SINGLE_FAMILY", "--type", "-t", help="Property type"),
    arv: Optional[float] = typer.Option(None, "--arv", help="After-repair value"),
    rehab: Optional[float] = typer.Option(None, "--rehab", help="Rehab costs"),
    year_built: Optional[int] = typer.Option(None, "--year-built", help="Year built"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Score a deal from its ratios and property attributes."""
    result = score_deal(
        DealScoreInput(
            dscr=dscr,
            cap_rate=cap_rate,
            cash_on_cash=coc,
            purchase_price=price,
            property_type=property_type,
            after_repair_value=arv,
            rehab_costs=rehab,
            year_built=year_built,
        )
    )
    if as_json:
        _print_payload(result.to_dict())
        return
    _display_score("Deal Score", result)


@app.command()
def rent(
    zip_code: str = typer.Option(..., "--zip", "-z", help="ZIP code"),
    bedrooms: int = typer.Option(..., "--beds", "-b", help="Bedrooms"),
    bathrooms: float = typer.Option(..., "--baths", help="Bathrooms"),
    property_type: str = typer.Option("SINGLE_FAMILY", "--type", "-t", help="Property type"),
    sqft: Optional[float] = typer.Option(None, "--sqft", help="Square footage"),
    year_built: Optional[int] = typer.Option(None, "--year-built", help="Year built"),
    amenities: Optional[List[str]] = typer.Option(None, "--amenity", "-a", help="Amenity (repeatable)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible comparables"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Estimate market rent from property attributes."""
    engine = _engine(config_path)
    rng = random.Random(seed) if seed is not None else None
    result = engine.estimate_rent(
        RentEstimationInput(
            zip_code=zip_code,
            property_type=property_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            square_footage=sqft,
            year_built=year_built,
            amenities=list(amenities or []),
        ),
        rng=rng,
    )
    if as_json:
        _print_payload(result.to_dict())
        return

    table = Table(title="Rent Adjustments")
    table.add_column("Factor", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Description", style="dim")
    for adj in result.adjustments:
        table.add_row(adj.factor, _money(adj.amount), adj.description)
    console.print(table)
    console.print(
        f"[bold]Estimated rent {_money(result.estimated_rent)}[/bold] "
        f"(range {_money(result.rent_range.low)} - {_money(result.rent_range.high)}, "
        f"confidence {result.confidence:.0%})"
    )

    comps = Table(title="Comparables (illustrative)")
    comps.add_column("Address", style="cyan")
    comps.add_column("Rent", justify="right")
    comps.add_column("Sqft", justify="right")
    comps.add_column("Miles", justify="right")
    for c in result.comparables:
        comps.add_row(c.address, _money(c.rent), f"{c.square_footage:,}", f"{c.distance:.1f}")
    console.print(comps)


def _display_analyses(analyses: list[DealAnalysis], limit: int = 20) -> None:
    if not analyses:
        console.print("[yellow]No deals to display.[/yellow]")
        return

    table = Table(title="Ranked Deals")
    table.add_column("Rank", style="dim")
    table.add_column("Property", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("NOI", justify="right")
    table.add_column("CF/mo", justify="right")
    table.add_column("DSCR", justify="right")
    table.add_column("Cap", justify="right")
    table.add_column("CoC", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Bank", justify="center")

    for i, a in enumerate(analyses[:limit], 1):
        name = a.deal.property_name or a.deal.address or f"Deal {i}"
        name = name[:30] + "..." if len(name) > 30 else name
        uw = a.underwriting
        table.add_row(
            str(i),
            name,
            _money(a.deal.purchase_price),
            _money(uw.noi),
            _money(uw.monthly_cash_flow),
            f"{uw.dscr:.2f}",
            _pct(uw.cap_rate),
            _pct(uw.cash_on_cash),
            f"{a.score.total_score} {a.score.grade}",
            "✓" if uw.is_bank_ready else "✗",
        )
    console.print(table)


def _load_records(deals_path: Path, engine: UnderwritingEngine) -> list[Deal]:
    try:
        return load_deal_records(deals_path, engine)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        _fail(f"Could not load deals: {exc}")


@app.command()
def analyze(
    deals_path: Path = typer.Argument(..., help="YAML/JSON file with one or more deals"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max deals to show"),
    status: Optional[List[str]] = typer.Option(None, "--status", help="Keep deals with this status (repeatable)"),
    property_types: Optional[List[str]] = typer.Option(None, "--type", "-t", help="Keep this property type (repeatable)"),
    min_price: Optional[float] = typer.Option(None, "--min-price", help="Minimum purchase price"),
    max_price: Optional[float] = typer.Option(None, "--max-price", help="Maximum purchase price"),
    min_dscr: Optional[float] = typer.Option(None, "--min-dscr", help="Minimum DSCR"),
    state: Optional[str] = typer.Option(None, "--state", help="Two-letter state"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Text in name, address or city"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write ranked summary CSV"),
    json_path: Optional[Path] = typer.Option(None, "--json-out", help="Write full analysis JSON"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Underwrite and score every deal in a file, filter, and rank by score."""
    engine = _engine(config_path)
    deals = _load_records(deals_path, engine)

    filters = DealFilters(
        status=list(status or []),
        property_type=list(property_types or []),
        min_price=min_price,
        max_price=max_price,
        min_dscr=min_dscr,
        state=state,
        search=search,
    )
    matched = filter_deals(deals, filters)
    if len(matched) < len(deals):
        logger.info("Filtered {} deals to {}", len(deals), len(matched))

    analyses = engine.rank([d.analysis for d in matched if d.analysis is not None])
    if csv_path:
        export_csv(analyses, csv_path)
        console.print(f"[dim]CSV:  {csv_path}[/dim]")
    if json_path:
        export_json(analyses, json_path)
        console.print(f"[dim]JSON: {json_path}[/dim]")

    if as_json:
        _print_payload([a.to_dict() for a in analyses])
        return
    _display_analyses(analyses, limit=limit)


@app.command("portfolio")
def portfolio_summary(
    deals_path: Path = typer.Argument(..., help="YAML/JSON file of deal records (with optional id/status)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Portfolio totals, averages over active deals, and counts by status."""
    engine = _engine(config_path)
    metrics = portfolio_metrics(_load_records(deals_path, engine))
    if as_json:
        _print_payload(metrics.to_dict())
        return

    table = Table(title="Portfolio")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total deals", str(metrics.total_deals))
    table.add_row("Active deals", str(metrics.active_deals))
    table.add_row("Portfolio value", _money(metrics.total_portfolio_value))
    table.add_row("Average DSCR", f"{metrics.average_dscr:.2f}")
    table.add_row("Average cap rate", _pct(metrics.average_cap_rate))
    console.print(table)

    by_status = Table(title="Deals by Status")
    by_status.add_column("Status", style="cyan")
    by_status.add_column("Count", justify="right")
    for name, count in sorted(metrics.deals_by_status.items()):
        by_status.add_row(name, str(count))
    console.print(by_status)


@app.command()
def compare(
    first: Path = typer.Argument(..., help="Deal file for deal 1"),
    second: Path = typer.Argument(..., help="Deal file for deal 2"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
) -> None:
    """Compare two deals (first deal in each file)."""
    engine = _engine(config_path)
    picked = []
    for path in (first, second):
        try:
            deals = load_deals(path)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
            _fail(f"Could not load deals: {exc}")
        if not deals:
            _fail(f"No deals in {path}")
        picked.append(engine.analyze(deals[0]))

    result = compare_deals(picked[0].score, picked[1].score)
    if as_json:
        _print_payload({
            **result.to_dict(),
            "scores": [picked[0].score.total_score, picked[1].score.total_score],
        })
        return
    _display_analyses(picked)
    winner = "Tie" if result.winner == "tie" else f"Deal {result.winner} wins"
    console.print(f"[bold]{winner}[/bold]")
    for reason in result.reasons:
        console.print(f"  {reason}")


@app.command("max-loan")
def max_loan(
    noi: float = typer.Option(..., "--noi", help="Annual NOI"),
    rate: float = typer.Option(..., "--rate", help="Annual interest rate, percent"),
    target_dscr: float = typer.Option(1.25, "--target-dscr", help="Target DSCR"),
    term: int = typer.Option(30, "--term", help="Loan term in years"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
) -> None:
    """Largest loan the NOI can service at a target DSCR."""
    amount = calculate_max_loan_for_dscr(target_dscr, noi, rate, term)
    if as_json:
        _print_payload({"max_loan": amount, "target_dscr": target_dscr})
        return
    console.print(f"Max loan at DSCR {target_dscr:.2f}: [bold]{_money(amount)}[/bold]")


@app.command("break-even")
def break_even(
    opex: float = typer.Option(..., "--opex", help="Annual operating expenses"),
    debt_service: float = typer.Option(0.0, "--debt-service", help="Annual debt service"),
    vacancy: float = typer.Option(0.05, "--vacancy", help="Vacancy rate as a fraction"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
) -> None:
    """Monthly rent needed to cover expenses and debt service."""
    amount = calculate_break_even_rent(opex, debt_service, vacancy)
    if as_json:
        _print_payload({"break_even_rent": amount})
        return
    console.print(f"Break-even rent: [bold]{_money(amount)}/mo[/bold]")


if __name__ == "__main__":
    app()
