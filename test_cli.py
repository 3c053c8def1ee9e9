"""
CLI Tests

Runs scripts/reconcile.py through main() with argument lists:
1. Sample and file datasets
2. Filters narrow the printed results
3. Report artifact output
4. Configuration and input errors exit with status 1
"""

import json

import pytest

from reconciliation import sample_dataset
from scripts.reconcile import build_parser, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RECON_RULES_PATH", "RECON_MIN_CONFIDENCE", "RECON_AMOUNT_TOLERANCE_PCT", "RECON_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dataset_file(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(sample_dataset().model_dump_json())
    return path


class TestParser:
    def test_data_and_sample_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--sample", "--data", "x.json"])

    def test_status_choices(self):
        args = build_parser().parse_args(["--sample", "--status", "Partially Reconciled"])
        assert args.status == "Partially Reconciled"
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--sample", "--status", "Done"])


class TestMain:
    def test_sample_run(self, capsys):
        assert main(["--sample"]) == 0

        out = capsys.readouterr().out
        assert "RECONCILIATION SUMMARY" in out
        assert "Payments: 13" in out
        assert "13 result(s)" in out
        assert "Duplicate payment detected (PAY-504)" in out

    def test_data_file(self, dataset_file, capsys):
        assert main(["--data", str(dataset_file)]) == 0
        assert "Payments: 13" in capsys.readouterr().out

    def test_camel_case_ledger_key(self, tmp_path, capsys):
        data = json.loads(sample_dataset().model_dump_json())
        data["ledgerEntries"] = data.pop("ledger_entries")
        path = tmp_path / "batch.json"
        path.write_text(json.dumps(data))

        assert main(["--data", str(path)]) == 0
        assert "Payments: 13" in capsys.readouterr().out

    def test_filters(self, capsys):
        assert main(["--sample", "--issue-type", "missing_invoice"]) == 0

        out = capsys.readouterr().out
        assert "1 result(s)" in out
        assert "PAY-506" in out

    def test_min_confidence_filter(self, capsys):
        assert main(["--sample", "--customer", "gamma", "--min-confidence", "85"]) == 0

        out = capsys.readouterr().out
        assert "PAY-503" in out
        assert "PAY-511" in out

    def test_writes_report(self, tmp_path, capsys):
        output = tmp_path / "reports" / "run.json"
        assert main(["--sample", "--output", str(output)]) == 0

        report = json.loads(output.read_text())
        assert report["run_id"].startswith("run-")
        assert report["summary"]["total_payments"] == 13
        assert len(report["results"]) == 13
        assert set(report["percentages"]) == {"Reconciled", "Partially Reconciled", "Unreconciled"}

    def test_report_dir_names_report_by_run(self, tmp_path, capsys):
        assert main(["--sample", "--report-dir", str(tmp_path)]) == 0

        [path] = list((tmp_path / "reports").glob("reconciliation_run-*.json"))
        report = json.loads(path.read_text())
        assert path.name == f"reconciliation_{report['run_id']}.json"
        assert report["summary"]["total_payments"] == 13
        assert str(path.absolute()) in capsys.readouterr().out

    def test_output_and_report_dir_are_exclusive(self, tmp_path):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--sample", "--output", "a.json", "--report-dir", str(tmp_path)])

    def test_rules_file(self, tmp_path, capsys):
        rules = tmp_path / "rules.json"
        rules.write_text(json.dumps({"enabledRules": {"duplicateDetection": False}}))

        assert main(["--sample", "--rules", str(rules), "--issue-type", "duplicate_payment"]) == 0
        assert "0 result(s)" in capsys.readouterr().out


class TestMainErrors:
    def test_missing_dataset(self, tmp_path, capsys):
        assert main(["--data", str(tmp_path / "missing.json")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_malformed_json(self, tmp_path, capsys):
        path = tmp_path / "batch.json"
        path.write_text("{oops")
        assert main(["--data", str(path)]) == 1

    def test_invalid_record(self, tmp_path, capsys):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"payments": [{"payment_id": "PAY-1"}]}))
        assert main(["--data", str(path)]) == 1

    def test_section_not_a_list(self, tmp_path, capsys):
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"invoices": {"INV-1": {}}}))
        assert main(["--data", str(path)]) == 1

    def test_invalid_rules(self, tmp_path, capsys):
        rules = tmp_path / "rules.json"
        rules.write_text(json.dumps({"thresholds": {"nameMatchSensitivity": 500}}))
        assert main(["--sample", "--rules", str(rules)]) == 1
        assert "Error:" in capsys.readouterr().err
