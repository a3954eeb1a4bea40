"""Tests for the Write Gateway and the domain object builders."""

import pytest

from ledger_sandbox.chaos.simulator import ChaosSimulator
from ledger_sandbox.idempotency.store import IdempotencyStore
from ledger_sandbox.models.chaos import ChaosCondition
from ledger_sandbox.models.tenant import Account, AccountType, Contact, TaxRate, Tenant
from ledger_sandbox.writes.builders import document_number
from ledger_sandbox.writes.gateway import DUPLICATE_WARNING, WriteGateway

TENANT = "acme-au"


def _make_line(**overrides):
    line = {
        "description": "Consulting",
        "quantity": 2,
        "unit_amount": 55.0,
        "account_code": "200",
        "tax_type": "OUTPUT",
    }
    line.update(overrides)
    return line


def _make_invoice_payload(lines=None, **overrides):
    payload = {
        "type": "ACCREC",
        "contact": {"contact_id": "contact-active"},
        "line_items": lines if lines is not None else [_make_line(unit_amount=50.0)],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def idempotency(clock):
    return IdempotencyStore(clock=clock)


@pytest.fixture
def gateway(store, idempotency, clock):
    return WriteGateway(backend=store, idempotency=idempotency, clock=clock)


class TestInvoiceTotals:
    def test_exclusive_adds_tax(self, gateway):
        result = gateway.create(TENANT, "Invoice", _make_invoice_payload())
        assert result.success is True
        assert result.data["sub_total"] == 100.0
        assert result.data["total_tax"] == 10.0
        assert result.data["total"] == 110.0
        assert result.data["line_items"][0]["line_amount"] == 100.0

    def test_inclusive_extracts_tax(self, gateway):
        payload = _make_invoice_payload(
            lines=[_make_line(unit_amount=55.0)], line_amount_types="Inclusive"
        )
        result = gateway.create(TENANT, "Invoice", payload)
        assert result.data["sub_total"] == 100.0
        assert result.data["total_tax"] == 10.0
        assert result.data["total"] == 110.0

    def test_no_tax(self, gateway):
        result = gateway.create(TENANT, "Invoice", _make_invoice_payload(line_amount_types="NoTax"))
        assert result.data["total_tax"] == 0.0
        assert result.data["total"] == 100.0

    def test_missing_tax_type_uses_account_default(self, gateway):
        line = _make_line(unit_amount=50.0)
        del line["tax_type"]
        result = gateway.create(TENANT, "Invoice", _make_invoice_payload(lines=[line]))
        assert result.data["line_items"][0]["tax_type"] == "OUTPUT"
        assert result.data["total_tax"] == 10.0

    def test_defaults_from_tenant_and_clock(self, gateway, store):
        result = gateway.create(TENANT, "Invoice", _make_invoice_payload())
        data = result.data
        assert data["status"] == "DRAFT"
        assert data["currency_code"] == "AUD"
        assert data["date"] == "2026-03-02"
        assert data["due_date"] == "2026-04-01"
        assert data["invoice_number"] == document_number("INV", data["invoice_id"])
        assert store.get_entity(TENANT, "Invoice", data["invoice_id"]) is not None


class TestValidationFailures:
    def test_archived_account_is_contextual_error(self, gateway, store):
        payload = _make_invoice_payload(lines=[_make_line(account_code="999")])
        result = gateway.create(TENANT, "Invoice", payload)

        assert result.success is False
        assert result.error.kind == "contextual_error"
        assert result.validation.valid is False
        assert result.error.recovery.suggested_action_id == "find_valid_account_codes"
        assert len(store.list_entities(TENANT, "Invoice")) == 4

    def test_empty_lines_is_structural_error(self, gateway):
        result = gateway.create(TENANT, "Invoice", _make_invoice_payload(lines=[]))
        assert result.error.kind == "structural_error"
        assert result.validation.diff[0].field_path == "line_items"

    def test_warnings_are_carried_on_success(self, gateway):
        payload = _make_invoice_payload(lines=[_make_line(account_code="300", tax_type="INPUT")])
        result = gateway.create(TENANT, "Invoice", payload)
        assert result.success is True
        assert any("not REVENUE" in w for w in result.warnings)

    def test_unsupported_entity_type(self, gateway):
        result = gateway.create(TENANT, "Journal", {})
        assert result.error.kind == "invalid_request"
        assert "Invoice" in result.error.details["supported_entity_types"]

    def test_unknown_tenant(self, gateway):
        result = gateway.create("nope", "Invoice", _make_invoice_payload())
        assert result.error.kind == "not_found"


class TestIdempotentWrites:
    def test_duplicate_returns_first_result(self, gateway, store):
        first = gateway.create(TENANT, "Invoice", _make_invoice_payload(), idempotency_key="inv-key")
        second = gateway.create(TENANT, "Invoice", _make_invoice_payload(), idempotency_key="inv-key")

        assert first.was_duplicate is False
        assert second.was_duplicate is True
        assert second.data == first.data
        assert DUPLICATE_WARNING in second.warnings
        assert DUPLICATE_WARNING not in first.warnings
        assert len(store.list_entities(TENANT, "Invoice")) == 5

    def test_failed_write_is_not_stored(self, gateway, idempotency):
        bad = gateway.create(TENANT, "Invoice", _make_invoice_payload(lines=[]), idempotency_key="k")
        assert bad.success is False
        assert idempotency.get_record("k", "create_invoice", TENANT) is None

        good = gateway.create(TENANT, "Invoice", _make_invoice_payload(), idempotency_key="k")
        assert good.success is True
        assert good.was_duplicate is False

    def test_operation_recorded_per_entity_type(self, gateway, idempotency):
        gateway.create(TENANT, "Contact", {"name": "Key Co"}, idempotency_key="c-key")
        record = idempotency.get_record("c-key", "create_contact", TENANT)
        assert record.operation == "create_contact"
        assert record.tenant_id == TENANT

    def test_same_key_in_other_tenant_writes_again(self, gateway, store, idempotency):
        store.add_tenant(
            Tenant(tenant_id="acme-nz", tenant_name="Acme NZ Ltd", region="NZ", currency="NZD"),
            accounts=[Account(account_id="nz-200", code="200", name="Sales", type=AccountType.REVENUE)],
            tax_rates=[TaxRate(tax_type="OUTPUT", name="GST on Income", rate=15.0)],
            contacts=[Contact(contact_id="contact-active", name="Kiwi Co")],
        )

        au = gateway.create(TENANT, "Invoice", _make_invoice_payload(), idempotency_key="shared")
        nz = gateway.create("acme-nz", "Invoice", _make_invoice_payload(), idempotency_key="shared")

        assert nz.success is True
        assert nz.was_duplicate is False
        assert nz.tenant_id == "acme-nz"
        assert nz.data["invoice_id"] != au.data["invoice_id"]
        assert nz.data["currency_code"] == "NZD"
        assert nz.data["total_tax"] == 15.0
        assert len(store.list_entities("acme-nz", "Invoice")) == 1
        assert idempotency.get_record("shared", "create_invoice", TENANT).result.tenant_id == TENANT

    def test_key_bound_to_other_result_kind_is_rejected(self, gateway, store, idempotency):
        idempotency.get_or_create(
            "odd-key", lambda: {"result_id": "invoice-1"}, operation="create_invoice", tenant_id=TENANT
        )

        result = gateway.create(TENANT, "Invoice", _make_invoice_payload(), idempotency_key="odd-key")
        assert result.success is False
        assert result.error.kind == "invalid_request"
        assert result.error.details == {"idempotency_key": "odd-key", "operation": "create_invoice"}
        assert len(store.list_entities(TENANT, "Invoice")) == 4


class TestChaosOnWrites:
    def test_active_fault_blocks_write(self, store, clock):
        chaos = ChaosSimulator(clock=clock)
        chaos.activate(TENANT, ChaosCondition.TIMEOUT, 60)
        gateway = WriteGateway(backend=store, chaos=chaos, clock=clock)

        result = gateway.create(TENANT, "Invoice", _make_invoice_payload())
        assert result.error.kind == "simulated_fault"
        assert result.error.details["status_code"] == 408
        assert len(store.list_entities(TENANT, "Invoice")) == 4


class TestOtherEntities:
    def test_payment_against_authorised_invoice(self, gateway, store):
        payload = {
            "invoice": {"invoice_id": "inv-auth"},
            "account": {"account_id": "acc-090"},
            "amount": 50.0,
        }
        result = gateway.create(TENANT, "Payment", payload)
        assert result.success is True
        assert result.data["invoice"] == {"invoice_id": "inv-auth"}
        assert result.data["date"] == "2026-03-02"
        assert len(store.list_payments(TENANT)) == 1

    def test_payment_against_draft_invoice_fails(self, gateway):
        payload = {
            "invoice": {"invoice_id": "inv-draft"},
            "account": {"account_id": "acc-090"},
            "amount": 50.0,
        }
        result = gateway.create(TENANT, "Payment", payload)
        assert result.error.kind == "contextual_error"
        assert "DRAFT status" in result.validation.errors[0]

    def test_contact(self, gateway, store):
        result = gateway.create(TENANT, "Contact", {"name": "  New Co ", "email": "hi@new.example"})
        assert result.success is True
        assert result.data["name"] == "New Co"
        context = store.get_tenant_context(TENANT)
        assert context.contact(result.data["contact_id"]) is not None

    def test_contact_with_bad_email(self, gateway):
        result = gateway.create(TENANT, "Contact", {"name": "New Co", "email": "not-an-email"})
        assert result.error.kind == "structural_error"

    def test_quote(self, gateway, store):
        payload = {
            "contact": {"contact_id": "contact-active"},
            "line_items": [_make_line(unit_amount=50.0)],
            "title": "Website refresh",
        }
        result = gateway.create(TENANT, "Quote", payload)
        assert result.success is True
        assert result.data["quote_number"].startswith("QU-")
        assert result.data["expiry_date"] == "2026-04-01"
        assert store.get_entity(TENANT, "Quote", result.data["quote_id"]).title == "Website refresh"

    def test_credit_note_remaining_credit(self, gateway):
        payload = {
            "contact": {"contact_id": "contact-active"},
            "line_items": [_make_line(unit_amount=50.0)],
        }
        result = gateway.create(TENANT, "CreditNote", payload)
        assert result.data["remaining_credit"] == result.data["total"] == 110.0
        assert result.data["credit_note_number"].startswith("CN-")

    def test_bank_transaction(self, gateway, store):
        payload = {
            "type": "SPEND",
            "bank_account": {"account_id": "acc-090"},
            "line_items": [_make_line(account_code="300", tax_type="INPUT", unit_amount=50.0)],
        }
        result = gateway.create(TENANT, "BankTransaction", payload)
        assert result.success is True
        assert result.data["total"] == 110.0
        assert result.data["contact"] is None
        assert len(store.list_bank_transactions(TENANT)) == 1

    def test_bank_transaction_needs_bank_account(self, gateway):
        payload = {
            "type": "RECEIVE",
            "bank_account": {"account_id": "acc-200"},
            "line_items": [_make_line(unit_amount=50.0)],
        }
        result = gateway.create(TENANT, "BankTransaction", payload)
        assert result.error.kind == "contextual_error"
        assert result.validation.diff[0].field_path == "bank_account.account_id"
