"""Deal records: recompute-on-write and portfolio roll-ups."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from loguru import logger

from .config import deal_input_fields, load_deal_entries
from .models import Deal, DealInput, DealStatus, PortfolioMetrics
from .underwriting import UnderwritingEngine

INACTIVE_STATUSES = frozenset({"CLOSED", "ARCHIVED", "REJECTED"})


def parse_status(value: object) -> DealStatus | str:
    """``DealStatus`` member for known names, else the upper-cased string."""
    if value is None or value == "":
        return DealStatus.DRAFT
    key = str(value).strip().upper()
    try:
        return DealStatus(key)
    except ValueError:
        return key


def refresh_deal(deal: Deal, engine: UnderwritingEngine | None = None) -> Deal:
    """Return a copy of *deal* with its analysis recomputed from raw inputs.

    Stored analyses are never trusted; call this whenever inputs change.
    """
    engine = engine or UnderwritingEngine()
    return replace(deal, analysis=engine.analyze(deal.inputs))


def update_deal(deal: Deal, engine: UnderwritingEngine | None = None, **changes) -> Deal:
    """Apply input changes to a deal and recompute its analysis."""
    inputs = replace(deal.inputs, **changes) if changes else deal.inputs
    return refresh_deal(replace(deal, inputs=inputs), engine)


def create_deal(
    deal_id: str,
    inputs: DealInput,
    engine: UnderwritingEngine | None = None,
    status: DealStatus | str = DealStatus.DRAFT,
) -> Deal:
    return refresh_deal(Deal(id=deal_id, inputs=inputs, status=status), engine)


def load_deal_records(path: Path | str, engine: UnderwritingEngine | None = None) -> list[Deal]:
    """Load a deal file as analysed records.

    Each entry may carry an ``id`` (default: its 1-based position) and a
    ``status`` (default DRAFT) next to the deal fields.
    """
    engine = engine or UnderwritingEngine()
    records = []
    for i, entry in enumerate(load_deal_entries(path), 1):
        inputs = DealInput.from_dict(deal_input_fields(entry))
        records.append(
            create_deal(str(entry.get("id", i)), inputs, engine, parse_status(entry.get("status")))
        )
    logger.info("Loaded {} deal records from {}", len(records), path)
    return records


def portfolio_metrics(deals: list[Deal]) -> PortfolioMetrics:
    """Totals over all deals; averages over active (not closed/archived/rejected) deals."""
    active = [d for d in deals if d.status_key not in INACTIVE_STATUSES]
    by_status: dict[str, int] = {}
    for d in deals:
        by_status[d.status_key] = by_status.get(d.status_key, 0) + 1

    if active:
        avg_dscr = sum(d.dscr for d in active) / len(active)
        avg_cap = sum(d.cap_rate for d in active) / len(active)
    else:
        avg_dscr = 0.0
        avg_cap = 0.0

    metrics = PortfolioMetrics(
        total_deals=len(deals),
        active_deals=len(active),
        total_portfolio_value=sum(d.inputs.purchase_price for d in deals),
        average_dscr=avg_dscr,
        average_cap_rate=avg_cap,
        deals_by_status=by_status,
    )
    logger.debug("Portfolio metrics: {}", metrics)
    return metrics
