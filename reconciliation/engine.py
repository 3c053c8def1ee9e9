"""Reconciliation engine for payments, invoices and ledger entries.

Exposes high-level function:
- reconcile(payments, invoices, ledger_entries, rules) -> List[ReconciliationResult]

For each payment the engine selects an invoice, looks for duplicate
payments and a ledger entry, then resolves a status from the issues found.
The function is pure: inputs are never modified and the same arguments
always produce the same results.
"""

import time
import uuid
from typing import List, Optional, Sequence

from core.models.canonical import Invoice, LedgerEntry, Payment
from core.observability.logging import get_logger, log_run_complete, log_run_start, with_correlation
from core.observability.metrics import (
    record_payment_outcome,
    record_processing_time,
    record_run_completed,
    record_run_started,
)
from reconciliation.checks import DuplicateIndex, LedgerIndex, check_duplicates, check_ledger
from reconciliation.matcher import match_invoice
from reconciliation.models import ReconciliationIssue, ReconciliationResult, ReconciliationStatus
from reconciliation.rules import ReconciliationRules
from reconciliation.scoring import reported_confidence
from reconciliation.status import resolve_status


logger = get_logger(__name__)


def reconcile_payment(
    payment: Payment,
    invoices: Sequence[Invoice],
    duplicates: Optional[DuplicateIndex],
    ledger: LedgerIndex,
    rules: ReconciliationRules,
) -> ReconciliationResult:
    """Reconcile one payment against prebuilt batch indexes.

    Args:
        payment: Payment to reconcile
        invoices: Candidate invoices
        duplicates: Index of the full payment batch (None skips the check)
        ledger: Index of ledger entries
        rules: Rules for this run

    Returns:
        ReconciliationResult with issues in detection order
    """
    issues: List[ReconciliationIssue] = []

    match = match_invoice(payment, invoices, rules)
    issues.extend(match.issues)

    if duplicates is not None:
        issues.extend(check_duplicates(payment, duplicates))

    ledger_entry, ledger_issues = check_ledger(payment, ledger)
    issues.extend(ledger_issues)

    status = resolve_status(match.invoice, issues)

    return ReconciliationResult(
        payment=payment,
        matched_invoice=match.invoice,
        ledger_entry=ledger_entry,
        status=status,
        issues=issues,
        confidence_score=reported_confidence(match.confidence) if match.invoice else 0.0,
    )


def reconcile(
    payments: Sequence[Payment],
    invoices: Sequence[Invoice],
    ledger_entries: Sequence[LedgerEntry],
    rules: ReconciliationRules,
    run_id: Optional[str] = None,
) -> List[ReconciliationResult]:
    """Reconcile every payment in a batch.

    Duplicate detection needs the whole batch, so both indexes are built
    before any payment is finalized.

    Args:
        payments: Payments to reconcile
        invoices: Invoices payments may settle
        ledger_entries: Ledger postings that corroborate payments
        rules: Rules for this run
        run_id: Correlation id for logs (generated when omitted)

    Returns:
        One ReconciliationResult per payment, in input order
    """
    run_id = run_id or f"run-{uuid.uuid4().hex[:12]}"
    started = time.perf_counter()

    with with_correlation(run_id=run_id, stage="reconcile"):
        record_run_started(run_id)
        log_run_start(
            run_id,
            payments=len(payments),
            invoices=len(invoices),
            ledger_entries=len(ledger_entries),
        )

        if not invoices and payments:
            logger.warning("No invoices supplied; every payment will be unmatched")

        duplicates = DuplicateIndex(payments) if rules.enabled_rules.duplicate_detection else None
        ledger = LedgerIndex(ledger_entries)

        results = []
        for payment in payments:
            payment_started = time.perf_counter()
            with with_correlation(payment_id=payment.payment_id):
                result = reconcile_payment(payment, invoices, duplicates, ledger, rules)
            record_processing_time("payment", (time.perf_counter() - payment_started) * 1000)
            results.append(result)
            record_payment_outcome(result.status.value, result.issue_types)

        duration_ms = (time.perf_counter() - started) * 1000
        record_run_completed(run_id, len(results), duration_ms)
        log_run_complete(
            run_id,
            duration_ms=duration_ms,
            reconciled=sum(1 for r in results if r.status == ReconciliationStatus.RECONCILED),
            with_issues=sum(1 for r in results if r.issues),
        )

    return results
