"""Domain object construction from validated payloads: line amounts, tax and totals."""

from datetime import date, timedelta
from typing import List, Optional, Tuple
from uuid import uuid4

from ledger_sandbox.models.documents import (
    AccountRef,
    BankTransaction,
    ContactRef,
    CreditNote,
    CreditNoteRef,
    Invoice,
    InvoiceRef,
    LineItem,
    Payment,
    Quote,
)
from ledger_sandbox.models.tenant import Contact, TenantContext
from ledger_sandbox.validation.schemas import (
    BankTransactionPayload,
    ContactPayload,
    CreditNotePayload,
    InvoicePayload,
    LineItemPayload,
    PaymentPayload,
    QuotePayload,
)

Totals = Tuple[float, float, float]         # sub_total, total_tax, total


def new_id() -> str:
    return str(uuid4())


def document_number(prefix: str, entity_id: str) -> str:
    return f"{prefix}-{entity_id.replace('-', '')[:8].upper()}"


def _line_tax(amount: float, rate: float, line_amount_types: str) -> float:
    if line_amount_types == "NoTax":
        return 0.0
    if line_amount_types == "Inclusive":
        return amount - amount / (1 + rate / 100)
    return amount * rate / 100


def build_lines(
    context: TenantContext,
    lines: List[LineItemPayload],
    line_amount_types: str,
) -> Tuple[List[LineItem], Totals]:
    """
    Compute line amounts and document totals.

    A line without a tax type falls back to its account's default tax type.
    Inclusive amounts already contain tax; Exclusive amounts have it added.
    """
    items: List[LineItem] = []
    sub_total = 0.0
    total_tax = 0.0
    for line in lines:
        amount = round(line.quantity * line.unit_amount, 2)
        tax_type = line.tax_type
        if not tax_type:
            account = context.account_by_code(line.account_code)
            tax_type = account.tax_type if account else None
        rate = context.tax_rate(tax_type) if tax_type else None
        tax = round(_line_tax(amount, rate.rate if rate else 0.0, line_amount_types), 2)

        items.append(
            LineItem(
                description=line.description,
                quantity=line.quantity,
                unit_amount=line.unit_amount,
                account_code=line.account_code,
                tax_type=tax_type,
                line_amount=amount,
            )
        )
        total_tax += tax
        sub_total += amount - tax if line_amount_types == "Inclusive" else amount

    sub_total = round(sub_total, 2)
    total_tax = round(total_tax, 2)
    return items, (sub_total, total_tax, round(sub_total + total_tax, 2))


def build_invoice(context: TenantContext, payload: InvoicePayload, today: date, due_days: int) -> Invoice:
    items, (sub_total, total_tax, total) = build_lines(context, payload.line_items, payload.line_amount_types)
    invoice_id = new_id()
    return Invoice(
        invoice_id=invoice_id,
        invoice_number=document_number("INV", invoice_id),
        type=payload.type,
        contact=ContactRef(contact_id=payload.contact.contact_id),
        date=payload.date or today.isoformat(),
        due_date=payload.due_date or (today + timedelta(days=due_days)).isoformat(),
        status=payload.status or "DRAFT",
        line_amount_types=payload.line_amount_types,
        line_items=items,
        currency_code=payload.currency_code or context.currency,
        reference=payload.reference,
        sub_total=sub_total,
        total_tax=total_tax,
        total=total,
    )


def build_quote(context: TenantContext, payload: QuotePayload, today: date, expiry_days: int) -> Quote:
    items, (sub_total, total_tax, total) = build_lines(context, payload.line_items, payload.line_amount_types)
    quote_id = new_id()
    return Quote(
        quote_id=quote_id,
        quote_number=document_number("QU", quote_id),
        contact=ContactRef(contact_id=payload.contact.contact_id),
        date=payload.date or today.isoformat(),
        expiry_date=payload.expiry_date or (today + timedelta(days=expiry_days)).isoformat(),
        status=payload.status or "DRAFT",
        line_amount_types=payload.line_amount_types,
        line_items=items,
        currency_code=payload.currency_code or context.currency,
        sub_total=sub_total,
        total_tax=total_tax,
        total=total,
        title=payload.title,
        summary=payload.summary,
        terms=payload.terms,
    )


def build_credit_note(context: TenantContext, payload: CreditNotePayload, today: date) -> CreditNote:
    items, (sub_total, total_tax, total) = build_lines(context, payload.line_items, payload.line_amount_types)
    credit_note_id = new_id()
    return CreditNote(
        credit_note_id=credit_note_id,
        credit_note_number=document_number("CN", credit_note_id),
        type=payload.type,
        contact=ContactRef(contact_id=payload.contact.contact_id),
        date=payload.date or today.isoformat(),
        status=payload.status or "DRAFT",
        line_amount_types=payload.line_amount_types,
        line_items=items,
        currency_code=payload.currency_code or context.currency,
        reference=payload.reference,
        sub_total=sub_total,
        total_tax=total_tax,
        total=total,
        remaining_credit=total,
    )


def build_payment(context: TenantContext, payload: PaymentPayload, today: date) -> Payment:
    return Payment(
        payment_id=new_id(),
        invoice=InvoiceRef(invoice_id=payload.invoice.invoice_id) if payload.invoice else None,
        credit_note=(
            CreditNoteRef(credit_note_id=payload.credit_note.credit_note_id)
            if payload.credit_note
            else None
        ),
        account=AccountRef(account_id=payload.account.account_id),
        date=payload.date or today.isoformat(),
        amount=payload.amount,
        currency_code=payload.currency_code or context.currency,
        reference=payload.reference,
    )


def build_bank_transaction(
    context: TenantContext, payload: BankTransactionPayload, today: date
) -> BankTransaction:
    items, (sub_total, total_tax, total) = build_lines(context, payload.line_items, payload.line_amount_types)
    contact: Optional[ContactRef] = (
        ContactRef(contact_id=payload.contact.contact_id) if payload.contact else None
    )
    return BankTransaction(
        bank_transaction_id=new_id(),
        type=payload.type,
        contact=contact,
        bank_account=AccountRef(account_id=payload.bank_account.account_id),
        date=payload.date or today.isoformat(),
        line_amount_types=payload.line_amount_types,
        line_items=items,
        currency_code=payload.currency_code or context.currency,
        reference=payload.reference,
        sub_total=sub_total,
        total_tax=total_tax,
        total=total,
    )


def build_contact(payload: ContactPayload) -> Contact:
    return Contact(
        contact_id=new_id(),
        name=payload.name.strip(),
        email=payload.email,
        is_customer=payload.is_customer,
        is_supplier=payload.is_supplier,
    )
