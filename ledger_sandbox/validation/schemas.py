"""
Structural schemas — the fixed per-entity-type payload shapes.

Parsed before any contextual check. A payload that fails here never reaches
the tenant's configuration.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


LineAmountTypes = Literal["Exclusive", "Inclusive", "NoTax"]


class LineItemPayload(BaseModel):
    description: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit_amount: float
    account_code: str
    tax_type: Optional[str] = None


class ContactRefPayload(BaseModel):
    contact_id: str


class InvoicePayload(BaseModel):
    type: Literal["ACCREC", "ACCPAY"] = "ACCREC"
    contact: ContactRefPayload
    date: Optional[str] = None
    due_date: Optional[str] = None
    status: Optional[Literal["DRAFT", "SUBMITTED", "AUTHORISED", "PAID", "VOIDED"]] = None
    line_amount_types: LineAmountTypes = "Exclusive"
    line_items: List[LineItemPayload] = Field(min_length=1)
    currency_code: Optional[str] = None
    reference: Optional[str] = None


class QuotePayload(BaseModel):
    contact: ContactRefPayload
    date: Optional[str] = None
    expiry_date: Optional[str] = None
    status: Optional[Literal["DRAFT", "SENT", "ACCEPTED", "DECLINED", "INVOICED"]] = None
    line_amount_types: LineAmountTypes = "Exclusive"
    line_items: List[LineItemPayload] = Field(min_length=1)
    currency_code: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    terms: Optional[str] = None


class CreditNotePayload(BaseModel):
    type: Literal["ACCRECCREDIT", "ACCPAYCREDIT"] = "ACCRECCREDIT"
    contact: ContactRefPayload
    date: Optional[str] = None
    status: Optional[Literal["DRAFT", "SUBMITTED", "AUTHORISED", "PAID", "VOIDED"]] = None
    line_amount_types: LineAmountTypes = "Exclusive"
    line_items: List[LineItemPayload] = Field(min_length=1)
    currency_code: Optional[str] = None
    reference: Optional[str] = None


class InvoiceRefPayload(BaseModel):
    invoice_id: str


class CreditNoteRefPayload(BaseModel):
    credit_note_id: str


class AccountRefPayload(BaseModel):
    account_id: str


class PaymentPayload(BaseModel):
    invoice: Optional[InvoiceRefPayload] = None
    credit_note: Optional[CreditNoteRefPayload] = None
    account: AccountRefPayload
    date: Optional[str] = None
    amount: float = Field(gt=0)
    currency_code: Optional[str] = None
    reference: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "PaymentPayload":
        if self.invoice is None and self.credit_note is None:
            raise ValueError("Must specify either invoice or credit_note")
        if self.invoice is not None and self.credit_note is not None:
            raise ValueError("Cannot specify both invoice and credit_note")
        return self


class BankTransactionPayload(BaseModel):
    type: Literal[
        "RECEIVE",
        "SPEND",
        "RECEIVE-OVERPAYMENT",
        "RECEIVE-PREPAYMENT",
        "SPEND-OVERPAYMENT",
        "SPEND-PREPAYMENT",
    ]
    contact: Optional[ContactRefPayload] = None
    bank_account: AccountRefPayload
    date: Optional[str] = None
    line_amount_types: LineAmountTypes = "Exclusive"
    line_items: List[LineItemPayload] = Field(min_length=1)
    currency_code: Optional[str] = None
    reference: Optional[str] = None


class ContactPayload(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_customer: bool = True
    is_supplier: bool = False

    @model_validator(mode="after")
    def _check_name_and_email(self) -> "ContactPayload":
        if not self.name.strip():
            raise ValueError("Contact name is required")
        if self.email is not None and "@" not in self.email:
            raise ValueError("Invalid email format")
        return self
