"""Business documents owned by the backend: invoices, quotes, credit notes, payments."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class EntityType(str, Enum):
    INVOICE = "Invoice"
    QUOTE = "Quote"
    CREDIT_NOTE = "CreditNote"
    PAYMENT = "Payment"
    BANK_TRANSACTION = "BankTransaction"
    CONTACT = "Contact"


class LineItem(BaseModel):
    description: str
    quantity: float
    unit_amount: float
    account_code: str
    tax_type: Optional[str] = None
    line_amount: float = 0.0


class ContactRef(BaseModel):
    contact_id: str


class Invoice(BaseModel):
    """A sales invoice (ACCREC) or bill (ACCPAY)."""

    invoice_id: str
    invoice_number: str = ""
    type: str = "ACCREC"                    # "ACCREC" | "ACCPAY"
    contact: ContactRef
    date: str
    due_date: str
    status: str = "DRAFT"                   # DRAFT | SUBMITTED | AUTHORISED | PAID | VOIDED
    line_amount_types: str = "Exclusive"
    line_items: List[LineItem] = []
    currency_code: str = "AUD"
    reference: Optional[str] = None
    sub_total: float = 0.0
    total_tax: float = 0.0
    total: float = 0.0
    from_quote: Optional[str] = None        # Set when converted from a quote

    @property
    def entity_id(self) -> str:
        return self.invoice_id


class Quote(BaseModel):
    """A quote that can be accepted and converted into an invoice."""

    quote_id: str
    quote_number: str = ""
    contact: ContactRef
    date: str
    expiry_date: str
    status: str = "DRAFT"                   # DRAFT | SENT | ACCEPTED | DECLINED | INVOICED
    line_amount_types: str = "Exclusive"
    line_items: List[LineItem] = []
    currency_code: str = "AUD"
    sub_total: float = 0.0
    total_tax: float = 0.0
    total: float = 0.0
    title: Optional[str] = None
    summary: Optional[str] = None
    terms: Optional[str] = None

    @property
    def entity_id(self) -> str:
        return self.quote_id


class CreditNote(BaseModel):
    """A customer (ACCRECCREDIT) or supplier (ACCPAYCREDIT) credit note."""

    credit_note_id: str
    credit_note_number: str = ""
    type: str = "ACCRECCREDIT"
    contact: ContactRef
    date: str
    status: str = "DRAFT"                   # DRAFT | SUBMITTED | AUTHORISED | PAID | VOIDED
    line_amount_types: str = "Exclusive"
    line_items: List[LineItem] = []
    currency_code: str = "AUD"
    reference: Optional[str] = None
    sub_total: float = 0.0
    total_tax: float = 0.0
    total: float = 0.0
    remaining_credit: float = 0.0

    @property
    def entity_id(self) -> str:
        return self.credit_note_id


class InvoiceRef(BaseModel):
    invoice_id: str


class CreditNoteRef(BaseModel):
    credit_note_id: str


class AccountRef(BaseModel):
    account_id: str


class Payment(BaseModel):
    """A payment applied to an invoice or refunding a credit note."""

    payment_id: str
    invoice: Optional[InvoiceRef] = None
    credit_note: Optional[CreditNoteRef] = None
    account: AccountRef
    date: str
    amount: float
    currency_code: str = "AUD"
    reference: Optional[str] = None
    status: str = "AUTHORISED"              # "AUTHORISED" | "DELETED"

    @property
    def entity_id(self) -> str:
        return self.payment_id


class BankTransaction(BaseModel):
    """A spend or receive money transaction against a bank account."""

    bank_transaction_id: str
    type: str                               # RECEIVE | SPEND | *-OVERPAYMENT | *-PREPAYMENT
    contact: Optional[ContactRef] = None
    bank_account: AccountRef
    date: str
    status: str = "AUTHORISED"
    line_amount_types: str = "Exclusive"
    line_items: List[LineItem] = []
    currency_code: str = "AUD"
    reference: Optional[str] = None
    sub_total: float = 0.0
    total_tax: float = 0.0
    total: float = 0.0
    is_reconciled: bool = False

    @property
    def entity_id(self) -> str:
        return self.bank_transaction_id
