# portfolio/utils/billing.py
"""
Rechnungs- und Angebotsberechnung.

Alle Beträge laufen als Decimal durch und werden kaufmännisch auf Cent
gerundet, damit 0.1 + 0.2 nicht zu 0.30000000000000004 wird.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

TAX_RATE = Decimal("0.19")
DEFAULT_PAYMENT_DAYS = 14
DEFAULT_VALIDITY_DAYS = 30
DEFAULT_HOURLY_RATE = Decimal("75")

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class BillingResult:
    lines: List[dict] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    small_business: bool = False
    issue_date: Optional[date] = None
    # Fälligkeit (Rechnung) bzw. gültig bis (Angebot)
    deadline: Optional[date] = None

    def as_dict(self) -> dict:
        return {
            "items": self.lines,
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "total": float(self.total),
            "small_business": self.small_business,
        }


def _totals(result: BillingResult, small_business: bool) -> BillingResult:
    result.subtotal = to_money(sum((Decimal(str(line["line_total"])) for line in result.lines), Decimal("0")))
    result.tax = Decimal("0.00") if small_business else to_money(result.subtotal * TAX_RATE)
    result.total = to_money(result.subtotal + result.tax)
    result.small_business = small_business
    return result


def compute_invoice(
    items: Iterable[dict],
    small_business: bool = False,
    invoice_date: Optional[date] = None,
    payment_days: int = DEFAULT_PAYMENT_DAYS,
) -> BillingResult:
    """Positionen: {description, quantity, unit_price} → Zwischensumme, MwSt., Gesamt, Fälligkeit."""
    result = BillingResult()
    for item in items:
        quantity = Decimal(str(item.get("quantity") or 0))
        unit_price = Decimal(str(item.get("unit_price") or 0))
        line_total = to_money(quantity * unit_price)
        result.lines.append({
            "description": item.get("description") or "",
            "quantity": float(quantity),
            "unit_price": float(to_money(unit_price)),
            "line_total": float(line_total),
        })

    _totals(result, small_business)
    result.issue_date = invoice_date or date.today()
    result.deadline = result.issue_date + timedelta(days=payment_days)
    return result


def compute_quote(
    items: Iterable[dict],
    small_business: bool = False,
    quote_date: Optional[date] = None,
    validity_days: int = DEFAULT_VALIDITY_DAYS,
    default_rate=DEFAULT_HOURLY_RATE,
) -> BillingResult:
    """Positionen: {description, hours, rate} → Summen + 'gültig bis'."""
    result = BillingResult()
    for item in items:
        hours = Decimal(str(item.get("hours") or 0))
        rate = item.get("rate")
        rate = Decimal(str(rate)) if rate not in (None, "") else Decimal(str(default_rate))
        line_total = to_money(hours * rate)
        result.lines.append({
            "description": item.get("description") or "",
            "hours": float(hours),
            "rate": float(to_money(rate)),
            "line_total": float(line_total),
        })

    _totals(result, small_business)
    result.issue_date = quote_date or date.today()
    result.deadline = result.issue_date + timedelta(days=validity_days)
    return result
