"""Summaries, filtering and rendering over reconciliation results.

Exposes:
- summarize(results) -> ReconciliationSummary
- filter_results(results, result_filter) -> List[ReconciliationResult]
- describe_issue(issue) -> str
- build_run_report(results, rules, run_id) -> ReconciliationRunReport
"""

from collections import Counter
from typing import Iterable, List, Sequence

from core.models.refs import ReconciliationRunReport
from reconciliation.models import (
    ReconciliationIssue,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
    ResultFilter,
)
from reconciliation.rules import ReconciliationRules


def summarize(results: Sequence[ReconciliationResult]) -> ReconciliationSummary:
    """Count payments per status and issue occurrences per type.

    A payment with two issues of the same type adds two to that bucket.
    """
    statuses = Counter(r.status for r in results)
    issues = Counter(issue.type for r in results for issue in r.issues)

    return ReconciliationSummary(
        total_payments=len(results),
        reconciled_count=statuses[ReconciliationStatus.RECONCILED],
        partially_reconciled_count=statuses[ReconciliationStatus.PARTIALLY_RECONCILED],
        unreconciled_count=statuses[ReconciliationStatus.UNRECONCILED],
        issues_by_type=dict(issues),
    )


def _matches(result: ReconciliationResult, f: ResultFilter) -> bool:
    payment = result.payment

    if f.customer_name and f.customer_name.lower() not in payment.payer_name.lower():
        return False

    # ISO dates compare correctly as strings
    if f.start_date and payment.payment_date < f.start_date:
        return False
    if f.end_date and payment.payment_date > f.end_date:
        return False

    if f.issue_type is not None and not result.has_issue(f.issue_type):
        return False

    if f.status is not None and result.status != f.status:
        return False

    if f.min_confidence:
        # Unmatched results carry no score
        if result.matched_invoice is None or result.confidence_score < f.min_confidence:
            return False

    return True


def filter_results(
    results: Iterable[ReconciliationResult],
    result_filter: ResultFilter,
) -> List[ReconciliationResult]:
    """Keep results matching every predicate set on `result_filter`.

    Predicates:
        customer_name: case-insensitive substring of the payer name
        start_date / end_date: inclusive range on payment_date
        issue_type: result has at least one issue of this type
        status: exact status
        min_confidence: matched with confidence_score >= value
    """
    return [r for r in results if _matches(r, result_filter)]


def describe_issue(issue: ReconciliationIssue) -> str:
    """Human-readable one-line description of an issue."""
    return issue.describe()


def build_run_report(
    results: Sequence[ReconciliationResult],
    rules: ReconciliationRules,
    run_id: str,
) -> ReconciliationRunReport:
    """Package a run's results into a serializable report."""
    summary = summarize(results)
    return ReconciliationRunReport(
        run_id=run_id,
        rules=rules.model_dump(mode="json"),
        summary=summary.model_dump(mode="json"),
        percentages={
            status.value: round(summary.percentage(status), 1)
            for status in ReconciliationStatus
        },
        results=[
            {
                **r.model_dump(mode="json"),
                "issue_descriptions": [describe_issue(i) for i in r.issues],
            }
            for r in results
        ],
    )
