"""Export deal analyses to CSV and JSON."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from .models import DealAnalysis


def _serialize(obj: Any) -> Any:
    """JSON serializer for datetime and enum values."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def export_csv(analyses: list[DealAnalysis], path: Path | str) -> None:
    """Export ranked deal analyses to CSV (one summary row per deal)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "rank",
        "property_name",
        "address",
        "city",
        "state",
        "purchase_price",
        "monthly_rent",
        "noi",
        "annual_debt_service",
        "monthly_cash_flow",
        "dscr",
        "cap_rate",
        "cash_on_cash",
        "is_bank_ready",
        "total_score",
        "grade",
    ]

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for i, a in enumerate(analyses, 1):
            uw = a.underwriting
            writer.writerow({
                "rank": i,
                "property_name": a.deal.property_name,
                "address": a.deal.address,
                "city": a.deal.city,
                "state": a.deal.state,
                "purchase_price": a.deal.purchase_price,
                "monthly_rent": a.deal.monthly_rent,
                "noi": round(uw.noi, 2),
                "annual_debt_service": round(uw.annual_debt_service, 2),
                "monthly_cash_flow": round(uw.monthly_cash_flow, 2),
                "dscr": round(uw.dscr, 4),
                "cap_rate": round(uw.cap_rate, 4),
                "cash_on_cash": round(uw.cash_on_cash, 4),
                "is_bank_ready": uw.is_bank_ready,
                "total_score": a.score.total_score,
                "grade": a.score.grade,
            })


def export_json(analyses: list[DealAnalysis], path: Path | str) -> None:
    """Export full analysis details to JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "run_at": datetime.now(timezone.utc).isoformat(),
        "count": len(analyses),
        "results": [a.to_dict() for a in analyses],
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=_serialize)
