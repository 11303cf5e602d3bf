from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from app.errors import InvalidCategory

CATEGORIES = ("business", "creative", "technology", "social-impact")
ENTRY_TYPES = ("text", "pitch-deck", "video")

# Whole currency units
BASE_FEES = {"business": 49, "creative": 49, "technology": 99, "social-impact": 49}
PROCESSING_RATE = Decimal("0.04")


@dataclass(frozen=True)
class FeeBreakdown:
    entry_fee: int
    processing_fee: int
    total_amount: int


def processing_fee_for(entry_fee: int) -> int:
    return int((Decimal(entry_fee) * PROCESSING_RATE).to_integral_value(rounding=ROUND_CEILING))

def compute_fees(category: str) -> FeeBreakdown:
    if category not in BASE_FEES:
        raise InvalidCategory(f"Invalid category: {category!r}. Valid categories: {', '.join(CATEGORIES)}")
    entry_fee = BASE_FEES[category]
    processing_fee = processing_fee_for(entry_fee)
    return FeeBreakdown(entry_fee=entry_fee, processing_fee=processing_fee, total_amount=entry_fee + processing_fee)

def amount_in_minor_units(total_amount: int) -> int:
    # Stripe charges in cents
    return int(total_amount) * 100
