"""Core data models - reconciliation input records and artifact references.

Input records are frozen pydantic models; the engine only ever reads them.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    DecimalValue,
    DateString,
    parse_date,

    # Enumerations
    InvoiceStatus,
    PaymentMethod,

    # Records
    Invoice,
    Payment,
    LedgerEntry,
    ReconciliationDataset,
)

from core.models.refs import (
    DataReference,
    ReconciliationRunReport,
)

__all__ = [
    "CanonicalBase",
    "DecimalValue",
    "DateString",
    "parse_date",
    "InvoiceStatus",
    "PaymentMethod",
    "Invoice",
    "Payment",
    "LedgerEntry",
    "ReconciliationDataset",
    "DataReference",
    "ReconciliationRunReport",
]
