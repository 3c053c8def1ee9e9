"""
Reconcile a batch of payments against invoices and ledger entries.

Reads a JSON dataset ({"invoices": [...], "payments": [...],
"ledger_entries": [...]}) or the built-in sample, runs the engine, prints
a status summary plus the (optionally filtered) results, and can store the
full run report as a JSON artifact.

Examples:
    python -m scripts.reconcile --sample
    python -m scripts.reconcile --data batch.json --rules rules.json --status Unreconciled
    python -m scripts.reconcile --sample --min-confidence 90 --output reports/run.json
    python -m scripts.reconcile --data batch.json --report-dir artifacts
"""

import argparse
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
from pydantic import ValidationError

from core.observability.logging import configure_logging, get_logger, with_correlation
from core.storage.artifacts import ArtifactStore, put_json
from reconciliation import (
    DatasetError,
    IssueType,
    ReconciliationStatus,
    ResultFilter,
    RulesConfigError,
    build_run_report,
    describe_issue,
    filter_results,
    load_dataset,
    load_rules,
    reconcile,
    sample_dataset,
    summarize,
)
from reconciliation.models import ReconciliationResult, ReconciliationSummary
from reconciliation.rules import ENV_PATH


logger = get_logger("scripts.reconcile")

STATUS_MARKERS = {
    ReconciliationStatus.RECONCILED: "✅",
    ReconciliationStatus.PARTIALLY_RECONCILED: "⚠️",
    ReconciliationStatus.UNRECONCILED: "❌",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reconcile payments to invoices and ledger entries")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--data", type=Path, help="JSON dataset with invoices, payments and ledger_entries")
    source.add_argument("--sample", action="store_true", help="Use the built-in sample dataset")

    parser.add_argument("--rules", type=Path, help="JSON rules file (defaults to RECON_RULES_PATH or built-in rules)")

    filters = parser.add_argument_group("filters")
    filters.add_argument("--customer", help="Payer name contains (case-insensitive)")
    filters.add_argument("--start-date", help="Earliest payment date (YYYY-MM-DD)")
    filters.add_argument("--end-date", help="Latest payment date (YYYY-MM-DD)")
    filters.add_argument("--issue-type", choices=[t.value for t in IssueType], help="Only results with this issue")
    filters.add_argument("--status", choices=[s.value for s in ReconciliationStatus], help="Only results with this status")
    filters.add_argument("--min-confidence", type=float, help="Only matched results scoring at least this")

    report = parser.add_mutually_exclusive_group()
    report.add_argument("--output", type=Path, help="Write the run report JSON here")
    report.add_argument("--report-dir", type=Path, help="Store the run report under DIR/reports/, named by run id")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--verbose", action="store_true", help="Log per-payment scoring details")
    return parser


def print_summary(summary: ReconciliationSummary) -> None:
    """Print status counts and issue counts."""
    print("=" * 60)
    print("RECONCILIATION SUMMARY")
    print("=" * 60)
    print(f"Payments: {summary.total_payments}")
    for status in ReconciliationStatus:
        print(
            f"  {STATUS_MARKERS[status]} {status.value:<22} "
            f"{summary.count_for(status):>4} ({summary.percentage(status):.0f}%)"
        )

    if summary.issues_by_type:
        print("\nIssues:")
        for issue_type, count in sorted(summary.issues_by_type.items()):
            print(f"  - {issue_type:<22} {count:>4}")


def print_results(results: List[ReconciliationResult]) -> None:
    """Print one block per result."""
    print(f"\n{len(results)} result(s):")
    for r in results:
        payment = r.payment
        matched = r.matched_invoice.invoice_id if r.matched_invoice else "-"
        print(
            f"\n{STATUS_MARKERS[r.status]} {payment.payment_id} {payment.payer_name} "
            f"${payment.amount:.2f} -> {matched} "
            f"[{r.status.value}, confidence {r.confidence_score:.1f}]"
        )
        for issue in r.issues:
            print(f"    - {describe_issue(issue)}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if ENV_PATH.exists():
        load_dotenv(ENV_PATH)

    level = logging.DEBUG if args.verbose else getattr(
        logging, os.getenv("RECON_LOG_LEVEL", "WARNING").upper(), logging.WARNING
    )
    json_logs = args.json_logs or os.getenv("RECON_LOG_JSON", "").lower() in ("1", "true", "yes")
    configure_logging(level=level, json_format=json_logs, force=True)

    run_id = f"run-{uuid.uuid4().hex[:12]}"
    dataset_name = str(args.data) if args.data else "sample"

    with with_correlation(run_id=run_id, dataset=dataset_name):
        try:
            rules = load_rules(args.rules)
            dataset = load_dataset(args.data) if args.data else sample_dataset()
        except (RulesConfigError, DatasetError, ValidationError, FileNotFoundError) as e:
            logger.error(f"Cannot start reconciliation: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1

        results = reconcile(
            dataset.payments,
            dataset.invoices,
            dataset.ledger_entries,
            rules,
            run_id=run_id,
        )

        print_summary(summarize(results))

        result_filter = ResultFilter(
            customer_name=args.customer,
            start_date=args.start_date,
            end_date=args.end_date,
            issue_type=args.issue_type,
            status=args.status,
            min_confidence=args.min_confidence,
        )
        print_results(filter_results(results, result_filter))

        if args.output or args.report_dir:
            report = build_run_report(results, rules, run_id)
            if args.report_dir:
                store = ArtifactStore(args.report_dir)
                ref = store.put_json(report, store.report_path(run_id))
            else:
                ref = put_json(report, args.output)
            logger.info(f"Report stored at {ref.storage_uri}", extra_fields={"sha256": ref.content_hash})
            print(f"\nReport written to {ref.storage_uri}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
