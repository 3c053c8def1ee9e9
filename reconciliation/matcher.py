"""Invoice Matcher - best invoice candidate for a single payment.

Selection runs once per payment:
1. Exact reference: the invoice whose id equals the payment's reference note
2. Scan: when there is no exact candidate, or fuzzy matching is on and the
   exact candidate scores below min_confidence_score, every invoice is
   scored and the best one at or above the threshold wins

Ties keep the earliest invoice in input order. This is an independent
best match per payment, not a global assignment: two payments may match
the same invoice.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from core.models.canonical import Invoice, Payment
from core.observability.logging import get_logger, with_correlation
from reconciliation.models import (
    AmountMismatchIssue,
    MissingInvoiceIssue,
    PayerNameMismatchIssue,
    ReconciliationIssue,
)
from reconciliation.rules import ReconciliationRules
from reconciliation.scoring import (
    MatchScore,
    is_valid_partial_payment,
    score_breakdown,
    within_tolerance,
)


logger = get_logger(__name__)


@dataclass
class InvoiceMatch:
    """Outcome of invoice selection for one payment.

    Attributes:
        invoice: Matched invoice, or None
        score: Breakdown of the winning score (None when unmatched)
        match_type: "exact_reference", "scored" or "no_match"
        issues: Issues found while matching, in detection order
    """
    invoice: Optional[Invoice] = None
    score: Optional[MatchScore] = None
    match_type: str = "no_match"
    issues: List[ReconciliationIssue] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return self.score.total if self.score else 0.0


def find_exact_reference(payment: Payment, invoices: Sequence[Invoice]) -> Optional[Invoice]:
    """First invoice whose id equals the payment reference note."""
    if not payment.reference_note:
        return None
    for invoice in invoices:
        if invoice.invoice_id == payment.reference_note:
            return invoice
    return None


def select_invoice(
    payment: Payment,
    invoices: Sequence[Invoice],
    rules: ReconciliationRules,
) -> InvoiceMatch:
    """Pick the best invoice for `payment` without classifying issues."""
    enabled = rules.enabled_rules
    min_score = rules.thresholds.min_confidence_score

    best: Optional[Invoice] = None
    best_score: Optional[MatchScore] = None
    match_type = "no_match"

    if enabled.exact_reference_match:
        best = find_exact_reference(payment, invoices)
        if best is not None:
            best_score = score_breakdown(payment, best, rules)
            match_type = "exact_reference"

    needs_scan = best is None or (
        enabled.fuzzy_customer_match and best_score.total < min_score
    )
    if needs_scan:
        highest = best_score.total if best_score else 0.0
        for invoice in invoices:
            candidate = score_breakdown(payment, invoice, rules)
            # Strict comparison keeps the earliest invoice on ties
            if candidate.total > highest and candidate.total >= min_score:
                highest = candidate.total
                best = invoice
                best_score = candidate
                match_type = "scored"

    if best is None:
        return InvoiceMatch()

    return InvoiceMatch(invoice=best, score=best_score, match_type=match_type)


def is_amount_mismatch(payment: Payment, invoice: Invoice, rules: ReconciliationRules) -> bool:
    """Outside tolerance and not excused as a valid partial payment.

    Overpayments are always mismatches. With the amount_tolerance rule
    switched off, partial payments are not excused either.
    """
    if within_tolerance(payment, invoice, rules):
        return False
    if rules.enabled_rules.amount_tolerance and is_valid_partial_payment(payment, invoice, rules):
        return False
    return True


def match_invoice(
    payment: Payment,
    invoices: Sequence[Invoice],
    rules: ReconciliationRules,
) -> InvoiceMatch:
    """Select an invoice for `payment` and record matching issues.

    Args:
        payment: Payment being reconciled
        invoices: All candidate invoices (read-only)
        rules: Rules for this run

    Returns:
        InvoiceMatch with the chosen invoice, its score and any of
        payer_name_mismatch, amount_mismatch or missing_invoice issues
    """
    match = select_invoice(payment, invoices, rules)

    if match.invoice is None:
        match.issues.append(MissingInvoiceIssue(
            message=f'No matching invoice found for payment reference "{payment.reference_note}"',
        ))
        logger.debug(f"No invoice matched payment {payment.payment_id}")
        return match

    invoice = match.invoice
    with with_correlation(invoice_id=invoice.invoice_id):
        logger.debug(
            f"Payment {payment.payment_id} matched {invoice.invoice_id} ({match.match_type})",
            extra_fields=match.score.to_dict(),
        )

        sensitivity = rules.thresholds.name_match_sensitivity / 100
        if rules.enabled_rules.fuzzy_customer_match and match.score.name_similarity < sensitivity:
            match.issues.append(PayerNameMismatchIssue(
                customer_name=invoice.customer_name,
                payer_name=payment.payer_name,
            ))

        if is_amount_mismatch(payment, invoice, rules):
            match.issues.append(AmountMismatchIssue(
                invoice_amount=invoice.amount_due,
                payment_amount=payment.amount,
            ))

        if match.issues:
            logger.debug(f"Match flagged: {', '.join(i.type for i in match.issues)}")

    return match
