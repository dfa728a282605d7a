"""Shipping fees by delivery region.

Fees grow with distance from Greater Accra. Any region outside the table is
charged ``DEFAULT_SHIPPING_FEE``; no region at all costs nothing (the buyer
has not chosen where to ship yet).
"""

DEFAULT_SHIPPING_FEE = 15.99

SHIPPING_FEES: dict[str, float] = {
    "greater-accra": 5.99,
    "central": 8.99,
    "eastern": 8.99,
    "western": 12.99,
    "ashanti": 15.99,
    "volta": 15.99,
    "bono": 18.99,
    "ahafo": 18.99,
    "bono-east": 18.99,
    "northern": 25.99,
    "upper-east": 28.99,
    "upper-west": 28.99,
    "north-east": 28.99,
    "savannah": 25.99,
    "oti": 20.99,
    "western-north": 18.99,
}


def shipping_fee(region: str | None) -> float:
    """Return the shipping fee for ``region``."""
    if not region:
        return 0.0
    return SHIPPING_FEES.get(region.strip().lower(), DEFAULT_SHIPPING_FEE)


def region_label(region: str | None) -> str:
    """Human readable region name, e.g. ``greater-accra`` -> ``Greater Accra``."""
    if not region:
        return "Not specified"
    return region.replace("-", " ").title()


def order_total(subtotal: float, region: str | None) -> float:
    """Cart subtotal plus the region's shipping fee, rounded to cents."""
    return round(subtotal + shipping_fee(region), 2)
