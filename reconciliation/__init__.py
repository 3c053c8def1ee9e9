"""Reconciliation - match payments to invoices and ledger entries.

This package scores how well each payment matches each invoice, picks the
best candidate, flags discrepancies and resolves a status per payment:
- Exact reference matching (fast path)
- Weighted confidence scoring (reference, amount, name, date)
- Partial-payment validation and duplicate detection
- Ledger corroboration

Usage:
    from reconciliation import DEFAULT_RULES, describe_issue, reconcile, summarize

    results = reconcile(payments, invoices, ledger_entries, DEFAULT_RULES)
    summary = summarize(results)

    for result in results:
        print(result.payment.payment_id, result.status.value)
        for issue in result.issues:
            print("  ", describe_issue(issue))
"""

from reconciliation.models import (
    IssueType,
    ReconciliationStatus,
    ReconciliationIssue,
    DuplicatePaymentIssue,
    MissingInvoiceIssue,
    AmountMismatchIssue,
    MissingLedgerEntryIssue,
    ReferenceMismatchIssue,
    PayerNameMismatchIssue,
    ReconciliationResult,
    ReconciliationSummary,
    ResultFilter,
)
from reconciliation.rules import (
    DEFAULT_RULES,
    EnabledRules,
    Thresholds,
    Weights,
    ReconciliationRules,
    RulesConfigError,
    load_rules,
    rules_from_dict,
)
from reconciliation.name_similarity import name_similarity, CORPORATE_SUFFIXES
from reconciliation.scoring import MatchScore, score_match, score_breakdown
from reconciliation.matcher import InvoiceMatch, match_invoice
from reconciliation.status import resolve_status
from reconciliation.engine import reconcile, reconcile_payment
from reconciliation.summary import summarize, filter_results, describe_issue, build_run_report
from reconciliation.dataset import DatasetError, load_dataset, dataset_from_dict, sample_dataset

__all__ = [
    # Models
    "IssueType",
    "ReconciliationStatus",
    "ReconciliationIssue",
    "DuplicatePaymentIssue",
    "MissingInvoiceIssue",
    "AmountMismatchIssue",
    "MissingLedgerEntryIssue",
    "ReferenceMismatchIssue",
    "PayerNameMismatchIssue",
    "ReconciliationResult",
    "ReconciliationSummary",
    "ResultFilter",
    # Rules
    "DEFAULT_RULES",
    "EnabledRules",
    "Thresholds",
    "Weights",
    "ReconciliationRules",
    "RulesConfigError",
    "load_rules",
    "rules_from_dict",
    # Matching
    "name_similarity",
    "CORPORATE_SUFFIXES",
    "MatchScore",
    "score_match",
    "score_breakdown",
    "InvoiceMatch",
    "match_invoice",
    "resolve_status",
    # Engine
    "reconcile",
    "reconcile_payment",
    # Results
    "summarize",
    "filter_results",
    "describe_issue",
    "build_run_report",
    # Input
    "DatasetError",
    "load_dataset",
    "dataset_from_dict",
    "sample_dataset",
]
