"""Reconciliation Result Models.

This module defines the Pydantic models produced by the engine:
- ReconciliationIssue: closed union of issue variants, discriminated by `type`
- ReconciliationStatus: terminal status of a payment
- ReconciliationResult: outcome for one payment
- ReconciliationSummary: dataset-level counts
- ResultFilter: predicates for narrowing a result list
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated

from core.models.canonical import Invoice, LedgerEntry, Payment


class IssueType(str, Enum):
    """Fixed taxonomy of reconciliation discrepancies."""
    DUPLICATE_PAYMENT = "duplicate_payment"
    MISSING_INVOICE = "missing_invoice"
    AMOUNT_MISMATCH = "amount_mismatch"
    MISSING_LEDGER_ENTRY = "missing_ledger_entry"
    REFERENCE_MISMATCH = "reference_mismatch"
    PAYER_NAME_MISMATCH = "payer_name_mismatch"


class ReconciliationStatus(str, Enum):
    """Terminal state of a payment; computed once from its issues."""
    RECONCILED = "Reconciled"
    PARTIALLY_RECONCILED = "Partially Reconciled"
    UNRECONCILED = "Unreconciled"


def _money(amount: Decimal) -> str:
    return f"${amount:.2f}"


# =============================================================================
# Issue Variants
# =============================================================================

class _IssueBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def issue_type(self) -> IssueType:
        return IssueType(self.type)

    def describe(self) -> str:
        raise NotImplementedError


class DuplicatePaymentIssue(_IssueBase):
    """Another payment shares this payment's reference and amount."""
    type: Literal["duplicate_payment"] = "duplicate_payment"
    duplicate_payment: Payment

    def describe(self) -> str:
        return f"Duplicate payment detected ({self.duplicate_payment.payment_id})"


class MissingInvoiceIssue(_IssueBase):
    type: Literal["missing_invoice"] = "missing_invoice"
    message: str

    def describe(self) -> str:
        return self.message


class AmountMismatchIssue(_IssueBase):
    """Payment amount is outside tolerance and not a valid partial payment."""
    type: Literal["amount_mismatch"] = "amount_mismatch"
    invoice_amount: Decimal
    payment_amount: Decimal

    def describe(self) -> str:
        return (
            f"Payment amount ({_money(self.payment_amount)}) differs from "
            f"invoice amount ({_money(self.invoice_amount)})"
        )


class MissingLedgerEntryIssue(_IssueBase):
    type: Literal["missing_ledger_entry"] = "missing_ledger_entry"
    message: str

    def describe(self) -> str:
        return self.message


class ReferenceMismatchIssue(_IssueBase):
    type: Literal["reference_mismatch"] = "reference_mismatch"
    invoice_id: str
    reference_note: str

    def describe(self) -> str:
        return f"Reference note ({self.reference_note}) doesn't match invoice ID ({self.invoice_id})"


class PayerNameMismatchIssue(_IssueBase):
    type: Literal["payer_name_mismatch"] = "payer_name_mismatch"
    customer_name: str
    payer_name: str

    def describe(self) -> str:
        return f"Payer name ({self.payer_name}) doesn't match customer name ({self.customer_name})"


ReconciliationIssue = Annotated[
    Union[
        DuplicatePaymentIssue,
        MissingInvoiceIssue,
        AmountMismatchIssue,
        MissingLedgerEntryIssue,
        ReferenceMismatchIssue,
        PayerNameMismatchIssue,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Results
# =============================================================================

class ReconciliationResult(BaseModel):
    """Outcome of reconciling one payment.

    Attributes:
        payment: The input payment (unchanged)
        matched_invoice: Best invoice candidate, if any met the threshold
        ledger_entry: First ledger entry posted for this payment
        status: Terminal reconciliation status
        issues: Detected issues, in detection order
        confidence_score: Match score (0-100 nominal); 0 when unmatched
    """
    model_config = ConfigDict(frozen=True)

    payment: Payment
    matched_invoice: Optional[Invoice] = None
    ledger_entry: Optional[LedgerEntry] = None
    status: ReconciliationStatus = ReconciliationStatus.UNRECONCILED
    issues: List[ReconciliationIssue] = Field(default_factory=list)
    confidence_score: float = Field(default=0.0, description="Match confidence (0-100)")

    def has_issue(self, issue_type: Union[IssueType, str]) -> bool:
        wanted = IssueType(issue_type)
        return any(issue.issue_type == wanted for issue in self.issues)

    @property
    def issue_types(self) -> List[str]:
        return [issue.type for issue in self.issues]


class ReconciliationSummary(BaseModel):
    """Dataset-level counts over a list of results."""
    total_payments: int = 0
    reconciled_count: int = 0
    partially_reconciled_count: int = 0
    unreconciled_count: int = 0
    issues_by_type: Dict[str, int] = Field(default_factory=dict)

    def count_for(self, status: ReconciliationStatus) -> int:
        return {
            ReconciliationStatus.RECONCILED: self.reconciled_count,
            ReconciliationStatus.PARTIALLY_RECONCILED: self.partially_reconciled_count,
            ReconciliationStatus.UNRECONCILED: self.unreconciled_count,
        }[ReconciliationStatus(status)]

    def percentage(self, status: ReconciliationStatus) -> float:
        """Share of payments with `status`, 0-100 (0.0 for an empty batch)."""
        if self.total_payments == 0:
            return 0.0
        return self.count_for(status) / self.total_payments * 100


class ResultFilter(BaseModel):
    """Optional predicates, combined with AND. Unset fields match everything."""
    customer_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    issue_type: Optional[IssueType] = None
    status: Optional[ReconciliationStatus] = None
    min_confidence: Optional[float] = None
