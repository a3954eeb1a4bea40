"""Tests for core data models and settings."""

import pytest
from pydantic import ValidationError

from ledger_sandbox.models import (
    Account,
    AccountType,
    Contact,
    OperationFailure,
    SandboxConfig,
    SandboxSettings,
    TenantContext,
    TransitionResult,
)
from ledger_sandbox.validation.schemas import ContactPayload, PaymentPayload


class TestTenantContext:
    def test_is_frozen(self, context):
        with pytest.raises(ValidationError):
            context.region = "NZ"

    def test_lookups(self, context):
        assert context.account_by_code("090").type == AccountType.BANK
        assert context.account_by_id("acc-200").code == "200"
        assert context.tax_rate("OLDGST").status == "DELETED"
        assert context.contact("contact-archived").status == "ARCHIVED"
        assert context.document("Invoice", "inv-auth").status == "AUTHORISED"
        assert context.document("CreditNote", "inv-auth") is None

    def test_rejects_duplicate_account_codes(self):
        with pytest.raises(ValidationError):
            TenantContext(
                tenant_id="t1",
                region="AU",
                currency="AUD",
                accounts=[
                    Account(account_id="a", code="200", type=AccountType.REVENUE),
                    Account(account_id="b", code="200", type=AccountType.EXPENSE),
                ],
            )

    def test_rejects_duplicate_contact_ids(self):
        with pytest.raises(ValidationError):
            TenantContext(
                tenant_id="t1",
                region="AU",
                currency="AUD",
                contacts=[Contact(contact_id="c", name="A"), Contact(contact_id="c", name="B")],
            )

    def test_snapshot_is_isolated_from_store(self, store, context):
        store.update_entity_status("acme-au", "Invoice", "inv-draft", "AUTHORISED")
        assert context.document("Invoice", "inv-draft").status == "DRAFT"


class TestPayloadSchemas:
    def test_payment_needs_a_target(self):
        with pytest.raises(ValidationError, match="Must specify either invoice or credit_note"):
            PaymentPayload(account={"account_id": "acc-090"}, amount=10.0)

    def test_payment_rejects_two_targets(self):
        with pytest.raises(ValidationError, match="Cannot specify both"):
            PaymentPayload(
                invoice={"invoice_id": "i"},
                credit_note={"credit_note_id": "c"},
                account={"account_id": "acc-090"},
                amount=10.0,
            )

    def test_payment_amount_positive(self):
        with pytest.raises(ValidationError):
            PaymentPayload(invoice={"invoice_id": "i"}, account={"account_id": "a"}, amount=0)

    def test_contact_blank_name(self):
        with pytest.raises(ValidationError, match="Contact name is required"):
            ContactPayload(name="   ")


class TestResults:
    def test_transition_result_defaults(self):
        result = TransitionResult(success=True, entity_type="Invoice", entity_id="inv-1")
        assert result.transition_path == []
        assert result.was_duplicate is False
        assert result.error is None

    def test_failure_serializes(self):
        failure = OperationFailure(kind="not_found", message="Tenant 'x' not found", recoverable=True)
        assert failure.model_dump(mode="json")["recovery"] is None


class TestSettings:
    def test_defaults(self):
        config = SandboxConfig()
        assert config.max_simulation_seconds == 300
        assert config.default_simulation_seconds == 60
        assert config.payment_due_days == 30
        assert config.max_replay_count == 10

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_SANDBOX_PAYMENT_DUE_DAYS", "14")
        monkeypatch.setenv("LEDGER_SANDBOX_LOG_LEVEL", "DEBUG")
        settings = SandboxSettings()
        assert settings.log_level == "DEBUG"
        assert settings.to_config().payment_due_days == 14

    def test_settings_map_onto_config(self):
        assert set(SandboxSettings.model_fields) - {"log_level"} == set(SandboxConfig.model_fields)
        assert "default_currency" not in SandboxConfig.model_fields
