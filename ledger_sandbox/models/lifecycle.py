"""Lifecycle models — payment details and transition outcomes."""

from typing import List, Optional

from pydantic import BaseModel

from ledger_sandbox.models.failure import OperationFailure


class PaymentInfo(BaseModel):
    """Payment details required when a transition enters PAID."""

    amount: Optional[float] = None
    account_id: Optional[str] = None        # Bank account the payment is made from/to


class PaymentLink(BaseModel):
    payment_id: str
    amount: float


class InvoiceLink(BaseModel):
    invoice_id: str
    from_quote: str


class TransitionResult(BaseModel):
    """Outcome of driving one entity towards a target state."""

    success: bool
    entity_type: str
    entity_id: str
    previous_state: Optional[str] = None
    new_state: Optional[str] = None
    transition_path: List[str] = []
    payment_created: Optional[PaymentLink] = None
    invoice_created: Optional[InvoiceLink] = None
    error: Optional[OperationFailure] = None
    was_duplicate: bool = False
