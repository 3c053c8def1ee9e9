"""Status resolution from a payment's accumulated issues."""

from typing import Optional, Sequence

from core.models.canonical import Invoice
from reconciliation.models import IssueType, ReconciliationIssue, ReconciliationStatus


# Issues that still leave a matched payment partially reconciled
PARTIAL_ISSUE_TYPES = frozenset({
    IssueType.AMOUNT_MISMATCH,
    IssueType.MISSING_LEDGER_ENTRY,
})


def resolve_status(
    matched_invoice: Optional[Invoice],
    issues: Sequence[ReconciliationIssue],
) -> ReconciliationStatus:
    """Derive the terminal status for one payment.

    - no issues -> Reconciled
    - matched, with an amount or ledger issue -> Partially Reconciled
    - anything else -> Unreconciled

    A matched payment whose only issues are duplicate_payment or
    payer_name_mismatch therefore resolves to Unreconciled.
    """
    if not issues:
        return ReconciliationStatus.RECONCILED

    if matched_invoice is not None and any(
        issue.issue_type in PARTIAL_ISSUE_TYPES for issue in issues
    ):
        return ReconciliationStatus.PARTIALLY_RECONCILED

    return ReconciliationStatus.UNRECONCILED
