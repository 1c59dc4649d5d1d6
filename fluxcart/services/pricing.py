# fluxcart/services/pricing.py
from dataclasses import dataclass
from typing import Iterable, Protocol

#1000 INR w paisach
DISCOUNT_THRESHOLD_CENTS = 1000 * 100
DISCOUNT_PERCENT = 10


class PricedLine(Protocol):
    unit_price_cents: int
    qty: int


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    discount_cents: int
    total_cents: int


def calc_discount(subtotal_cents: int) -> int:
    if subtotal_cents >= DISCOUNT_THRESHOLD_CENTS:
        # liczby calkowite, floor bez floatow
        return subtotal_cents * DISCOUNT_PERCENT // 100
    return 0


def compute_totals(lines: Iterable[PricedLine]) -> Totals:
    """Suma, rabat progowy i total.

    Ta sama funkcja dla checkoutu symulowanego i potwierdzonego przez
    operatora platnosci, wiec oba daja identyczne kwoty dla tego samego koszyka.
    """
    subtotal = sum(line.unit_price_cents * line.qty for line in lines)
    discount = calc_discount(subtotal)
    return Totals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        total_cents=subtotal - discount,
    )
