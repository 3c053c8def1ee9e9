"""Core canonical data models - reconciliation input records.

These models represent invoices, payments and ledger entries after the
import layer has parsed them. They are frozen: the reconciliation engine
reads them but never changes them.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# =============================================================================
# Value Parsers (handle the formats produced by spreadsheet/CSV exports)
# =============================================================================

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%d/%m/%Y")


def _parse_decimal(value):
    """Parse decimal from various formats (string with $ or commas, floats, etc.)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        s = s.replace("$", "").replace(",", "")
        if s.startswith("(") and s.endswith(")"):
            s = "-" + s[1:-1]
        return Decimal(s)
    return value


def _parse_date_string(value):
    """Keep dates as strings, but render date objects in ISO form."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip()
    return value


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a date string, returning None when no known format applies.

    Unlike the field validators this never raises: callers that compare
    dates treat an unparseable value as "no date".
    """
    if not value:
        return None
    s = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    # ISO timestamps ("2025-02-15T10:00:00Z")
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


# Annotated types for automatic parsing
DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]
DateString = Annotated[str, BeforeValidator(_parse_date_string)]


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all input records."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# =============================================================================
# Enumerations
# =============================================================================

class InvoiceStatus(str, Enum):
    OPEN = "Open"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentMethod(str, Enum):
    ACH = "ACH"
    WIRE = "Wire"
    CHECK = "Check"
    CREDIT_CARD = "Credit Card"


# =============================================================================
# Records
# =============================================================================

class Invoice(CanonicalBase):
    """An outstanding (or settled) customer invoice."""
    invoice_id: str = Field(..., min_length=1, description="Unique invoice key")
    customer_name: str = Field(..., description="Billed customer")
    amount_due: DecimalValue = Field(..., description="Amount due in account currency")
    due_date: DateString = Field(..., description="Due date (ISO string)")
    status: InvoiceStatus = Field(default=InvoiceStatus.OPEN)


class Payment(CanonicalBase):
    """A received payment awaiting reconciliation."""
    payment_id: str = Field(..., min_length=1, description="Unique payment key")
    payer_name: str = Field(..., description="Name on the remittance")
    amount: DecimalValue = Field(..., description="Amount received")
    payment_date: DateString = Field(..., description="Payment date (ISO string)")
    method: PaymentMethod = Field(default=PaymentMethod.ACH)
    reference_note: str = Field(default="", description="Free text, usually an invoice_id")


class LedgerEntry(CanonicalBase):
    """General-ledger posting that corroborates a payment."""
    ledger_entry_id: str = Field(..., min_length=1)
    invoice_id: str = Field(default="")
    payment_id: str = Field(...)
    amount: DecimalValue = Field(...)
    entry_date: DateString = Field(...)


class ReconciliationDataset(CanonicalBase):
    """A full batch of reconciliation inputs.

    Attributes:
        invoices: Invoices payments may be matched against
        payments: Payments to reconcile (one result each, same order)
        ledger_entries: Ledger postings used to corroborate payments
    """
    invoices: List[Invoice] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    ledger_entries: List[LedgerEntry] = Field(default_factory=list)
