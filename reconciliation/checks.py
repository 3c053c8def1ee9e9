"""Batch-level checks: duplicate payments and ledger corroboration.

Both checks are built once per run from the full input batch, so every
payment sees the same view of its peers:
- DuplicateIndex groups payments by reference note
- LedgerIndex keeps the first ledger entry posted per payment
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from core.models.canonical import LedgerEntry, Payment
from reconciliation.models import DuplicatePaymentIssue, MissingLedgerEntryIssue
from reconciliation.scoring import DUPLICATE_AMOUNT_EPSILON


MISSING_LEDGER_MESSAGE = "No corresponding ledger entry found"


# =============================================================================
# Duplicate Detection
# =============================================================================

class DuplicateIndex:
    """Payments grouped by reference note for duplicate lookups.

    The relation is symmetric: if A duplicates B, B also duplicates A.
    No payment is treated as the original.
    """

    def __init__(self, payments: Sequence[Payment]):
        self._by_reference: Dict[str, List[Payment]] = defaultdict(list)
        for payment in payments:
            self._by_reference[payment.reference_note].append(payment)

    def duplicates_of(self, payment: Payment) -> List[Payment]:
        """Other payments with the same reference and an amount within 0.01."""
        return [
            other
            for other in self._by_reference.get(payment.reference_note, [])
            if other.payment_id != payment.payment_id
            and abs(other.amount - payment.amount) < DUPLICATE_AMOUNT_EPSILON
        ]


def check_duplicates(payment: Payment, index: DuplicateIndex) -> List[DuplicatePaymentIssue]:
    """One duplicate_payment issue per matching peer, in input order."""
    return [DuplicatePaymentIssue(duplicate_payment=dup) for dup in index.duplicates_of(payment)]


# =============================================================================
# Ledger Verification
# =============================================================================

class LedgerIndex:
    """First ledger entry per payment_id."""

    def __init__(self, ledger_entries: Sequence[LedgerEntry]):
        self._by_payment: Dict[str, LedgerEntry] = {}
        for entry in ledger_entries:
            self._by_payment.setdefault(entry.payment_id, entry)

    def entry_for(self, payment: Payment) -> Optional[LedgerEntry]:
        return self._by_payment.get(payment.payment_id)


def check_ledger(
    payment: Payment,
    index: LedgerIndex,
) -> Tuple[Optional[LedgerEntry], List[MissingLedgerEntryIssue]]:
    """Find the payment's ledger entry.

    The ledger amount is not compared with the payment amount.

    Returns:
        (entry, []) when found, otherwise (None, [missing_ledger_entry])
    """
    entry = index.entry_for(payment)
    if entry is not None:
        return entry, []
    return None, [MissingLedgerEntryIssue(message=MISSING_LEDGER_MESSAGE)]
