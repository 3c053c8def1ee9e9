"""Input batches for the engine.

- load_dataset(path): validate a JSON batch into typed records
- sample_dataset(): the demo batch used by the dashboard and the CLI

Record validation belongs here, outside the engine: a malformed record
raises pydantic.ValidationError before reconcile() ever sees it.
"""

from pathlib import Path
from typing import Any, Dict, Union

from core.models.canonical import Invoice, LedgerEntry, Payment, ReconciliationDataset
from core.storage.artifacts import read_json_file


class DatasetError(ValueError):
    """Raised when an input batch is not shaped like a dataset."""


_SECTION_KEYS = {
    "invoices": ("invoices",),
    "payments": ("payments",),
    "ledger_entries": ("ledger_entries", "ledgerEntries"),
}


def dataset_from_dict(data: Dict[str, Any]) -> ReconciliationDataset:
    """Build a dataset from a mapping of record lists.

    Raises:
        DatasetError: If the document is not an object or a section is not a list
        pydantic.ValidationError: If a record is malformed
    """
    if not isinstance(data, dict):
        raise DatasetError(f"Dataset must be a JSON object, got {type(data).__name__}")

    sections = {}
    for field_name, keys in _SECTION_KEYS.items():
        records = next((data[k] for k in keys if k in data), [])
        if not isinstance(records, list):
            raise DatasetError(f"Dataset section '{field_name}' must be a list")
        sections[field_name] = records

    return ReconciliationDataset.model_validate(sections)


def load_dataset(path: Union[str, Path]) -> ReconciliationDataset:
    """Load and validate a JSON batch from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        DatasetError: If the document is malformed JSON or shaped wrong
        pydantic.ValidationError: If a record is malformed
    """
    try:
        data = read_json_file(path)
    except ValueError as e:
        raise DatasetError(str(e)) from e
    return dataset_from_dict(data)


# =============================================================================
# Sample Data
# =============================================================================

def _invoice(invoice_id, customer_name, amount_due, due_date, status="Open") -> Invoice:
    return Invoice(
        invoice_id=invoice_id,
        customer_name=customer_name,
        amount_due=amount_due,
        due_date=due_date,
        status=status,
    )


def _payment(payment_id, payer_name, amount, payment_date, method, reference_note) -> Payment:
    return Payment(
        payment_id=payment_id,
        payer_name=payer_name,
        amount=amount,
        payment_date=payment_date,
        method=method,
        reference_note=reference_note,
    )


def _ledger(ledger_entry_id, invoice_id, payment_id, amount, entry_date) -> LedgerEntry:
    return LedgerEntry(
        ledger_entry_id=ledger_entry_id,
        invoice_id=invoice_id,
        payment_id=payment_id,
        amount=amount,
        entry_date=entry_date,
    )


def sample_dataset() -> ReconciliationDataset:
    """Demo batch with exact matches, a duplicate, partial and unknown payments,
    and parent/subsidiary name variations."""
    invoices = [
        _invoice("INV-1001", "Acme Corp", "1200.00", "2025-02-15"),
        _invoice("INV-1002", "Beta Inc", "750.00", "2025-02-20", "Paid"),
        _invoice("INV-1003", "Gamma LLC", "1050.00", "2025-02-28"),
        _invoice("INV-1004", "Delta Co", "2500.00", "2025-02-22"),
        _invoice("INV-1005", "Epsilon Partners", "960.00", "2025-03-05"),
        _invoice("INV-1006", "Acme Corp - West Division", "3450.00", "2025-03-10"),
        _invoice("INV-1007", "Acme Corp Holdings", "1875.50", "2025-03-15"),
        _invoice("INV-1008", "Beta Subsidiaries LLC", "5200.00", "2025-03-20"),
        _invoice("INV-1009", "Beta International", "950.00", "2025-03-08"),
        _invoice("INV-1010", "Gamma Group", "2300.00", "2025-03-25"),
        _invoice("INV-1011", "Delta Corporation", "4200.00", "2025-03-28"),
        _invoice("INV-1012", "Delta Logistics", "1800.00", "2025-03-30"),
    ]

    payments = [
        _payment("PAY-501", "Acme Corp", "1200.00", "2025-02-15", "ACH", "INV-1001"),
        _payment("PAY-502", "Beta Inc", "750.00", "2025-02-19", "Wire", "INV-1002"),
        _payment("PAY-503", "Gamma LLC", "500.00", "2025-02-25", "ACH", "INV-1003"),
        _payment("PAY-504", "Acme Corp", "1200.00", "2025-02-15", "ACH", "INV-1001"),
        _payment("PAY-505", "Delta Company", "2400.00", "2025-02-20", "Wire", "INV-1004"),
        _payment("PAY-506", "Unknown Entity", "960.00", "2025-03-01", "ACH", "UNKNOWN"),
        _payment("PAY-507", "Acme Corp West", "3450.00", "2025-03-08", "Wire", "INV-1006"),
        _payment("PAY-508", "Acme Holdings", "1875.50", "2025-03-14", "ACH", "INV-1007"),
        _payment("PAY-509", "Beta Subsidiaries", "5200.00", "2025-03-18", "Wire", "INV-1008"),
        _payment("PAY-510", "Beta International Inc", "950.00", "2025-03-07", "Wire", "INV-1009"),
        _payment("PAY-511", "Gamma Group Holdings", "2300.00", "2025-03-23", "ACH", "INV-1010"),
        _payment("PAY-512", "Delta Corp", "4200.00", "2025-03-26", "Wire", "INV-1011"),
        _payment("PAY-513", "Delta Logistics Services", "1800.00", "2025-03-28", "ACH", "INV-1012"),
    ]

    ledger_entries = [
        _ledger("LED-001", "INV-1001", "PAY-501", "1200.00", "2025-02-15"),
        _ledger("LED-002", "INV-1002", "PAY-502", "750.00", "2025-02-19"),
        _ledger("LED-003", "INV-1006", "PAY-507", "3450.00", "2025-03-08"),
        _ledger("LED-004", "INV-1007", "PAY-508", "1875.50", "2025-03-14"),
        _ledger("LED-005", "INV-1008", "PAY-509", "5200.00", "2025-03-18"),
        _ledger("LED-006", "INV-1009", "PAY-510", "950.00", "2025-03-07"),
    ]

    return ReconciliationDataset(
        invoices=invoices,
        payments=payments,
        ledger_entries=ledger_entries,
    )
