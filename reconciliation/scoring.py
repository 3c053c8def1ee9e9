"""Match confidence scoring for (payment, invoice) pairs.

Exposes:
- score_match(payment, invoice, rules) -> float
- score_breakdown(payment, invoice, rules) -> MatchScore

The score is a weighted sum of four signals: reference equality, amount
closeness (or partial-payment ratio), payer/customer name similarity and
payment-date proximity to the due date. The raw sum is unbounded (the
default weights add up to 110); results report it capped at
MAX_CONFIDENCE via reported_confidence().
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.models.canonical import Invoice, Payment, parse_date
from reconciliation.name_similarity import name_similarity
from reconciliation.rules import ReconciliationRules


# Amounts closer than this are considered the same payment amount
DUPLICATE_AMOUNT_EPSILON = Decimal("0.01")

MAX_CONFIDENCE = 100.0


# =============================================================================
# Utility Functions
# =============================================================================

def to_decimal(value) -> Optional[Decimal]:
    """Convert value to Decimal."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def amount_tolerance(invoice: Invoice, rules: ReconciliationRules) -> Decimal:
    """Allowed deviation from the invoice amount."""
    pct = to_decimal(rules.thresholds.amount_match_tolerance)
    return abs(invoice.amount_due) * pct / Decimal("100")


def within_tolerance(payment: Payment, invoice: Invoice, rules: ReconciliationRules) -> bool:
    """Check if the payment amount matches the invoice within tolerance."""
    return abs(payment.amount - invoice.amount_due) <= amount_tolerance(invoice, rules)


def payment_ratio(payment: Payment, invoice: Invoice) -> Optional[Decimal]:
    """Share of the invoice covered by the payment (None for a zero invoice)."""
    if invoice.amount_due == 0:
        return None
    return payment.amount / invoice.amount_due


def is_valid_partial_payment(payment: Payment, invoice: Invoice, rules: ReconciliationRules) -> bool:
    """Check if a payment qualifies as an installment against the invoice.

    The payment must be smaller than the invoice and cover at least
    partial_payment_min_percentage of it. Zero-amount invoices have no
    partial-payment path.
    """
    if not rules.enabled_rules.partial_payment_matching:
        return False
    if payment.amount >= invoice.amount_due:
        return False
    ratio = payment_ratio(payment, invoice)
    if ratio is None:
        return False
    min_ratio = to_decimal(rules.thresholds.partial_payment_min_percentage) / Decimal("100")
    return ratio >= min_ratio


def days_between(first: str, second: str) -> Optional[int]:
    """Absolute number of days between two date strings, None if either fails to parse."""
    d1 = parse_date(first)
    d2 = parse_date(second)
    if d1 is None or d2 is None:
        return None
    return abs((d1 - d2).days)


# =============================================================================
# Scoring
# =============================================================================

@dataclass(frozen=True)
class MatchScore:
    """Points contributed by each signal for one (payment, invoice) pair."""
    reference_points: float = 0.0
    amount_points: float = 0.0
    name_points: float = 0.0
    date_points: float = 0.0
    name_similarity: float = 0.0
    days_difference: Optional[int] = None

    @property
    def total(self) -> float:
        return self.reference_points + self.amount_points + self.name_points + self.date_points

    def to_dict(self) -> dict:
        return {
            "reference": round(self.reference_points, 2),
            "amount": round(self.amount_points, 2),
            "name": round(self.name_points, 2),
            "date": round(self.date_points, 2),
            "total": round(self.total, 2),
        }


def score_breakdown(
    payment: Payment,
    invoice: Invoice,
    rules: ReconciliationRules,
) -> MatchScore:
    """Score a payment against an invoice, keeping per-signal points."""
    weights = rules.weights

    reference_points = 0.0
    if payment.reference_note == invoice.invoice_id:
        reference_points = weights.reference_match

    amount_points = 0.0
    if within_tolerance(payment, invoice, rules):
        amount_points = weights.amount_match
    elif is_valid_partial_payment(payment, invoice, rules):
        amount_points = weights.amount_match * float(payment_ratio(payment, invoice))

    similarity = name_similarity(payment.payer_name, invoice.customer_name)
    name_points = weights.name_match * similarity

    date_points = 0.0
    days = None
    if rules.enabled_rules.date_proximity:
        days = days_between(payment.payment_date, invoice.due_date)
        threshold = rules.thresholds.date_difference_threshold
        if days is not None and days <= threshold:
            # A zero-day window only rewards same-day payments
            proximity = 1.0 if threshold == 0 else 1 - days / threshold
            date_points = weights.date_match * proximity

    return MatchScore(
        reference_points=reference_points,
        amount_points=amount_points,
        name_points=name_points,
        date_points=date_points,
        name_similarity=similarity,
        days_difference=days,
    )


def score_match(payment: Payment, invoice: Invoice, rules: ReconciliationRules) -> float:
    """Weighted confidence (0-100 nominal) that `payment` settles `invoice`."""
    return score_breakdown(payment, invoice, rules).total


def reported_confidence(score: float) -> float:
    """Clamp a raw score into the 0-100 range shown on results."""
    return min(MAX_CONFIDENCE, max(0.0, score))
