"""Deal list filters for status, type, price, DSCR, state and free-text search."""

from __future__ import annotations

from .models import Deal, DealFilters, property_type_key


def filter_deals(deals: list[Deal], filters: DealFilters | None = None) -> list[Deal]:
    """
    Filter deals. Every set criterion must match:
    - status / property type in the given lists (when non-empty)
    - purchase price within min/max (zero or None bounds are ignored)
    - DSCR >= min_dscr (from the latest analysis)
    - state equals filter state (case-insensitive)
    - search text in property name, address or city (case-insensitive)
    """
    if filters is None:
        return list(deals)
    statuses = {s.upper() for s in filters.status}
    types = {property_type_key(t) for t in filters.property_type}
    search = (filters.search or "").strip().lower()
    text_fields = ["property_name", "address", "city"]

    result = []
    for d in deals:
        price = d.inputs.purchase_price
        if statuses and d.status_key not in statuses:
            continue
        if types and property_type_key(d.inputs.property_type) not in types:
            continue
        if filters.min_price and price < filters.min_price:
            continue
        if filters.max_price and price > filters.max_price:
            continue
        if filters.min_dscr and d.dscr < filters.min_dscr:
            continue
        if filters.state and d.inputs.state.strip().upper() != filters.state.strip().upper():
            continue
        if search:
            combined = " ".join(str(getattr(d.inputs, f, "")) for f in text_fields).lower()
            if search not in combined:
                continue
        result.append(d)
    return result
