"""Shared fixtures: a seeded AU tenant, a controllable clock and a sandbox."""

import random
from datetime import datetime, timedelta

import pytest

from ledger_sandbox.models.documents import ContactRef, CreditNote, Invoice, LineItem, Quote
from ledger_sandbox.models.tenant import Account, AccountType, Contact, TaxRate, Tenant
from ledger_sandbox.service.sandbox import Sandbox
from ledger_sandbox.tenant.store import TenantStore

TENANT_ID = "acme-au"
FIXED_NOW = datetime(2026, 3, 2, 9, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _line(account_code="200", tax_type="OUTPUT", quantity=2, unit_amount=50.0) -> LineItem:
    return LineItem(
        description="Consulting",
        quantity=quantity,
        unit_amount=unit_amount,
        account_code=account_code,
        tax_type=tax_type,
        line_amount=quantity * unit_amount,
    )


def _make_invoice(invoice_id: str, status: str) -> Invoice:
    return Invoice(
        invoice_id=invoice_id,
        invoice_number=f"INV-{invoice_id.upper()}",
        contact=ContactRef(contact_id="contact-active"),
        date="2026-02-01",
        due_date="2026-03-03",
        status=status,
        line_items=[_line()],
        sub_total=100.0,
        total_tax=10.0,
        total=110.0,
    )


def build_store() -> TenantStore:
    store = TenantStore()
    store.add_tenant(
        Tenant(tenant_id=TENANT_ID, tenant_name="Acme Pty Ltd", region="AU", currency="AUD"),
        accounts=[
            Account(account_id="acc-200", code="200", name="Sales", type=AccountType.REVENUE, tax_type="OUTPUT"),
            Account(account_id="acc-300", code="300", name="Advertising", type=AccountType.EXPENSE, tax_type="INPUT"),
            Account(account_id="acc-090", code="090", name="Business Bank Account", type=AccountType.BANK),
            Account(account_id="acc-610", code="610", name="Accounts Receivable", type=AccountType.CURRENT),
            Account(
                account_id="acc-999", code="999", name="Old Sales Account",
                type=AccountType.REVENUE, status="ARCHIVED", tax_type="OUTPUT",
            ),
        ],
        tax_rates=[
            TaxRate(tax_type="OUTPUT", name="GST on Income", rate=10.0),
            TaxRate(tax_type="INPUT", name="GST on Expenses", rate=10.0),
            TaxRate(tax_type="EXEMPTOUTPUT", name="GST Free Income", rate=0.0),
            TaxRate(tax_type="OLDGST", name="Retired GST", rate=10.0, status="DELETED"),
        ],
        contacts=[
            Contact(contact_id="contact-active", name="Bright Ideas Co", email="accounts@bright.example"),
            Contact(contact_id="contact-archived", name="Gone Fishing Ltd", status="ARCHIVED"),
        ],
    )
    for invoice_id, status in (
        ("inv-draft", "DRAFT"),
        ("inv-auth", "AUTHORISED"),
        ("inv-paid", "PAID"),
        ("inv-voided", "VOIDED"),
    ):
        store.add_document(TENANT_ID, _make_invoice(invoice_id, status))

    store.add_document(
        TENANT_ID,
        Quote(
            quote_id="quote-draft",
            quote_number="QU-0001",
            contact=ContactRef(contact_id="contact-active"),
            date="2026-02-01",
            expiry_date="2026-03-03",
            line_amount_types="Exclusive",
            line_items=[_line()],
            sub_total=100.0,
            total_tax=10.0,
            total=110.0,
        ),
    )
    for credit_note_id, status in (("cn-draft", "DRAFT"), ("cn-auth", "AUTHORISED")):
        store.add_document(
            TENANT_ID,
            CreditNote(
                credit_note_id=credit_note_id,
                contact=ContactRef(contact_id="contact-active"),
                date="2026-02-01",
                status=status,
                line_items=[_line()],
                sub_total=100.0,
                total_tax=10.0,
                total=110.0,
                remaining_credit=110.0,
            ),
        )
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return build_store()


@pytest.fixture
def context(store):
    return store.get_tenant_context(TENANT_ID)


@pytest.fixture
def sandbox(store, clock):
    return Sandbox(backend=store, clock=clock, rng=random.Random(42))
