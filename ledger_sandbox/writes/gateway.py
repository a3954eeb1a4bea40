"""
Write Gateway — the create path shared by every write operation.

ChaosSimulator check → IdempotencyStore lookup → Validator (structural then
contextual) → domain object construction → persistence → IdempotencyStore
store. Only successful writes are stored under a key.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ledger_sandbox.chaos.simulator import ChaosSimulator
from ledger_sandbox.errors import InvalidRequestError, SandboxError
from ledger_sandbox.idempotency.store import IdempotencyStore
from ledger_sandbox.models.config import SandboxConfig
from ledger_sandbox.models.documents import EntityType
from ledger_sandbox.models.writes import WriteResult
from ledger_sandbox.tenant.store import SandboxBackend
from ledger_sandbox.validation.validator import Validator, raise_for_result
from ledger_sandbox.writes import builders

logger = logging.getLogger(__name__)

DUPLICATE_WARNING = "Duplicate request detected - returning cached result"

OPERATIONS: Dict[str, str] = {
    EntityType.INVOICE.value: "create_invoice",
    EntityType.QUOTE.value: "create_quote",
    EntityType.CREDIT_NOTE.value: "create_credit_note",
    EntityType.PAYMENT.value: "create_payment",
    EntityType.BANK_TRANSACTION.value: "create_bank_transaction",
    EntityType.CONTACT.value: "create_contact",
}


class WriteGateway:
    """Validates, builds and persists new entities through a SandboxBackend."""

    def __init__(
        self,
        backend: SandboxBackend,
        validator: Optional[Validator] = None,
        chaos: Optional[ChaosSimulator] = None,
        idempotency: Optional[IdempotencyStore] = None,
        config: Optional[SandboxConfig] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.backend = backend
        self.validator = validator or Validator()
        self.chaos = chaos
        self.idempotency = idempotency
        self.config = config or SandboxConfig()
        self._clock = clock
        self._writers: Dict[str, Callable] = {
            EntityType.INVOICE.value: self._write_invoice,
            EntityType.QUOTE.value: self._write_quote,
            EntityType.CREDIT_NOTE.value: self._write_credit_note,
            EntityType.PAYMENT.value: self._write_payment,
            EntityType.BANK_TRANSACTION.value: self._write_bank_transaction,
            EntityType.CONTACT.value: self._write_contact,
        }

    def create(
        self,
        tenant_id: str,
        entity_type: str,
        payload: Any,
        idempotency_key: Optional[str] = None,
    ) -> WriteResult:
        """Create one entity. Never raises; failures land in WriteResult.error."""
        try:
            if entity_type not in self._writers:
                raise InvalidRequestError(
                    f"Unsupported entity type: {entity_type}",
                    details={"supported_entity_types": list(self._writers)},
                )
            if self.chaos is not None:
                self.chaos.ensure_healthy(tenant_id)

            def produce() -> WriteResult:
                return self._create(tenant_id, entity_type, payload)

            if idempotency_key and self.idempotency is not None:
                result, was_cached = self.idempotency.get_or_create(
                    idempotency_key,
                    produce,
                    operation=OPERATIONS[entity_type],
                    tenant_id=tenant_id,
                )
                if not isinstance(result, WriteResult):
                    raise InvalidRequestError(
                        f"Idempotency key '{idempotency_key}' is already bound to a "
                        f"different kind of result for {OPERATIONS[entity_type]}",
                        details={
                            "idempotency_key": idempotency_key,
                            "operation": OPERATIONS[entity_type],
                        },
                    )
                if was_cached:
                    return result.model_copy(
                        update={
                            "was_duplicate": True,
                            "warnings": result.warnings + [DUPLICATE_WARNING],
                        }
                    )
                return result
            return produce()
        except SandboxError as exc:
            logger.warning(
                "Create %s failed for tenant %s: %s", entity_type, tenant_id, exc.message
            )
            return WriteResult(
                success=False,
                tenant_id=tenant_id,
                entity_type=entity_type,
                validation=getattr(exc, "validation", None),
                error=exc.to_failure(),
            )

    def _create(self, tenant_id: str, entity_type: str, payload: Any) -> WriteResult:
        context = self.backend.get_tenant_context(tenant_id)
        validation, parsed = self.validator.evaluate(context, entity_type, payload)
        raise_for_result(validation)

        entity = self._writers[entity_type](tenant_id, context, parsed)
        return WriteResult(
            success=True,
            tenant_id=tenant_id,
            entity_type=entity_type,
            data=entity.model_dump(mode="json"),
            validation=validation,
            warnings=list(validation.warnings),
        )

    def _today(self):
        return self._clock().date()

    def _write_invoice(self, tenant_id, context, parsed):
        invoice = builders.build_invoice(context, parsed, self._today(), self.config.payment_due_days)
        return self.backend.create_invoice(tenant_id, invoice)

    def _write_quote(self, tenant_id, context, parsed):
        quote = builders.build_quote(context, parsed, self._today(), self.config.payment_due_days)
        return self.backend.create_quote(tenant_id, quote)

    def _write_credit_note(self, tenant_id, context, parsed):
        credit_note = builders.build_credit_note(context, parsed, self._today())
        return self.backend.create_credit_note(tenant_id, credit_note)

    def _write_payment(self, tenant_id, context, parsed):
        payment = builders.build_payment(context, parsed, self._today())
        return self.backend.create_payment(tenant_id, payment)

    def _write_bank_transaction(self, tenant_id, context, parsed):
        transaction = builders.build_bank_transaction(context, parsed, self._today())
        return self.backend.create_bank_transaction(tenant_id, transaction)

    def _write_contact(self, tenant_id, context, parsed):
        return self.backend.create_contact(tenant_id, builders.build_contact(parsed))
