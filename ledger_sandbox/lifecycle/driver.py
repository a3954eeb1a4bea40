"""
Lifecycle Driver — moves invoices, quotes and credit notes between states.

Computes the shortest legal path over the entity's transition graph and
applies it one edge at a time through the backend. Side-effecting edges
create a payment (entering PAID) or an invoice from a quote (entering
INVOICED) before the status update.

Behavioral Contract:
- Consults the ChaosSimulator before anything else
- Holds no entity state between calls; the backend owns every entity
- Applies path edges strictly in order and never rolls back committed edges
- Never raises to the caller: every failure becomes TransitionResult.error
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ledger_sandbox.chaos.simulator import ChaosSimulator
from ledger_sandbox.errors import (
    IllegalTransitionError,
    InvalidRequestError,
    NotFoundError,
    PartialLifecycleFailure,
    SandboxError,
)
from ledger_sandbox.idempotency.store import IdempotencyStore
from ledger_sandbox.lifecycle.graphs import (
    INVOICED_STATE,
    PAYMENT_STATE,
    TRANSITION_GRAPHS,
    find_transition_path,
)
from ledger_sandbox.models.config import SandboxConfig
from ledger_sandbox.models.documents import (
    AccountRef,
    CreditNoteRef,
    EntityType,
    Invoice,
    InvoiceRef,
    Payment,
    Quote,
)
from ledger_sandbox.models.lifecycle import (
    InvoiceLink,
    PaymentInfo,
    PaymentLink,
    TransitionResult,
)
from ledger_sandbox.models.validation import NextCall, RecoveryAction
from ledger_sandbox.tenant.store import LifecycleEntity, SandboxBackend
from ledger_sandbox.writes.builders import document_number, new_id

logger = logging.getLogger(__name__)


class LifecycleDriver:
    """
    Drives lifecycle transitions against a SandboxBackend.
    Chaos and idempotency are optional collaborators.
    """

    def __init__(
        self,
        backend: SandboxBackend,
        chaos: Optional[ChaosSimulator] = None,
        idempotency: Optional[IdempotencyStore] = None,
        config: Optional[SandboxConfig] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.backend = backend
        self.chaos = chaos
        self.idempotency = idempotency
        self.config = config or SandboxConfig()
        self._clock = clock

    def transition(
        self,
        tenant_id: str,
        entity_type: str,
        entity_id: str,
        target_state: str,
        payment_info: Optional[PaymentInfo] = None,
        idempotency_key: Optional[str] = None,
    ) -> TransitionResult:
        """
        Drive one entity to target_state.

        With an idempotency_key, the first successful result is stored and
        replayed unchanged (was_duplicate=True) for later calls with the key.
        """
        try:
            if self.chaos is not None:
                self.chaos.ensure_healthy(tenant_id)

            def produce() -> TransitionResult:
                return self._transition(tenant_id, entity_type, entity_id, target_state, payment_info)

            if idempotency_key and self.idempotency is not None:
                operation = f"transition_{entity_type}"
                result, was_cached = self.idempotency.get_or_create(
                    idempotency_key, produce, operation=operation, tenant_id=tenant_id
                )
                if not isinstance(result, TransitionResult):
                    raise InvalidRequestError(
                        f"Idempotency key '{idempotency_key}' is already bound to a "
                        f"different kind of result for {operation}",
                        details={"idempotency_key": idempotency_key, "operation": operation},
                    )
                if was_cached:
                    return result.model_copy(update={"was_duplicate": True})
                return result
            return produce()
        except PartialLifecycleFailure as exc:
            logger.warning(
                "Partial transition of %s %s for tenant %s: %s",
                entity_type, entity_id, tenant_id, exc.message,
            )
            return exc.partial_result.model_copy(update={"error": exc.to_failure()})
        except SandboxError as exc:
            logger.warning(
                "Transition of %s %s to %s failed for tenant %s: %s",
                entity_type, entity_id, target_state, tenant_id, exc.message,
            )
            return TransitionResult(
                success=False,
                entity_type=entity_type,
                entity_id=entity_id,
                error=exc.to_failure(),
            )

    # --- Internal (raising) implementation ---

    def _transition(
        self,
        tenant_id: str,
        entity_type: str,
        entity_id: str,
        target_state: str,
        payment_info: Optional[PaymentInfo],
    ) -> TransitionResult:
        graph = TRANSITION_GRAPHS.get(entity_type)
        if graph is None:
            raise InvalidRequestError(
                f"Unsupported entity type: {entity_type}",
                details={"supported_entity_types": list(TRANSITION_GRAPHS)},
            )
        if target_state not in graph:
            raise InvalidRequestError(
                f"Invalid target state '{target_state}' for {entity_type}",
                details={"valid_states": list(graph)},
            )

        entity = self.backend.get_entity(tenant_id, entity_type, entity_id)
        if entity is None:
            raise NotFoundError(
                f"{entity_type} '{entity_id}' not found",
                details={"tenant_id": tenant_id, "entity_type": entity_type, "entity_id": entity_id},
                recovery=RecoveryAction(
                    suggested_action_id="find_entity",
                    description=f"List available {entity_type}s",
                    next_call=NextCall(
                        name="introspect_enums",
                        arguments={"tenant_id": tenant_id, "entity_type": entity_type},
                    ),
                ),
            )

        current_state = entity.status
        path = find_transition_path(graph, current_state, target_state)
        if path is None:
            raise IllegalTransitionError(
                entity_type, current_state, target_state, graph.get(current_state, [])
            )
        if len(path) > 1 and target_state == PAYMENT_STATE:
            self._require_payment_info(tenant_id, payment_info)

        result = TransitionResult(
            success=True,
            entity_type=entity_type,
            entity_id=entity_id,
            previous_state=current_state,
            new_state=target_state,
            transition_path=path,
        )
        if len(path) == 1:
            return result

        self._apply_path(tenant_id, entity, path, payment_info, result)
        logger.info(
            "Transitioned %s %s for tenant %s: %s",
            entity_type, entity_id, tenant_id, " -> ".join(path),
        )
        return result

    def _require_payment_info(self, tenant_id: str, payment_info: Optional[PaymentInfo]) -> None:
        if payment_info is None or payment_info.amount is None or payment_info.amount <= 0:
            raise InvalidRequestError(
                "payment amount is required and must be positive when transitioning to PAID",
                recovery=RecoveryAction(
                    suggested_action_id="provide_payment_details",
                    description="Provide a positive payment amount and a bank account ID",
                ),
            )
        if not payment_info.account_id:
            raise InvalidRequestError(
                "payment account_id is required when transitioning to PAID",
                recovery=RecoveryAction(
                    suggested_action_id="find_bank_accounts",
                    description="Find valid bank accounts",
                    next_call=NextCall(
                        name="introspect_enums",
                        arguments={
                            "tenant_id": tenant_id,
                            "entity_type": "Account",
                            "filter": {"type": "BANK", "status": "ACTIVE"},
                        },
                    ),
                ),
            )

    def _apply_path(
        self,
        tenant_id: str,
        entity: LifecycleEntity,
        path: List[str],
        payment_info: Optional[PaymentInfo],
        result: TransitionResult,
    ) -> None:
        entity_type = result.entity_type
        completed = [path[0]]
        for next_state in path[1:]:
            try:
                if next_state == PAYMENT_STATE and entity_type in (
                    EntityType.INVOICE.value,
                    EntityType.CREDIT_NOTE.value,
                ):
                    payment = self._create_payment(tenant_id, entity, payment_info)
                    result.payment_created = PaymentLink(payment_id=payment.payment_id, amount=payment.amount)
                if next_state == INVOICED_STATE and isinstance(entity, Quote):
                    invoice = self._create_invoice_from_quote(tenant_id, entity)
                    result.invoice_created = InvoiceLink(
                        invoice_id=invoice.invoice_id, from_quote=entity.quote_id
                    )
                self.backend.update_entity_status(tenant_id, entity_type, entity.entity_id, next_state)
            except Exception as exc:
                partial = result.model_copy(
                    update={
                        "success": False,
                        "new_state": completed[-1],
                        "transition_path": list(completed),
                    }
                )
                raise PartialLifecycleFailure(completed, next_state, exc, partial) from exc
            completed.append(next_state)

    def _create_payment(
        self,
        tenant_id: str,
        entity: LifecycleEntity,
        payment_info: PaymentInfo,
    ) -> Payment:
        entity_id = entity.entity_id
        is_invoice = isinstance(entity, Invoice)
        payment = Payment(
            payment_id=new_id(),
            invoice=InvoiceRef(invoice_id=entity_id) if is_invoice else None,
            credit_note=None if is_invoice else CreditNoteRef(credit_note_id=entity_id),
            account=AccountRef(account_id=payment_info.account_id),
            date=self._clock().date().isoformat(),
            amount=payment_info.amount,
            currency_code=entity.currency_code,
            status="AUTHORISED",
        )
        return self.backend.create_payment(tenant_id, payment)

    def _create_invoice_from_quote(self, tenant_id: str, quote: Quote) -> Invoice:
        today = self._clock().date()
        invoice_id = new_id()
        invoice = Invoice(
            invoice_id=invoice_id,
            invoice_number=document_number("INV", invoice_id),
            type="ACCREC",
            contact=quote.contact.model_copy(),
            date=today.isoformat(),
            due_date=(today + timedelta(days=self.config.payment_due_days)).isoformat(),
            status="DRAFT",
            line_amount_types=quote.line_amount_types,
            line_items=[line.model_copy() for line in quote.line_items],
            currency_code=quote.currency_code,
            sub_total=quote.sub_total,
            total_tax=quote.total_tax,
            total=quote.total,
            from_quote=quote.quote_id,
        )
        return self.backend.create_invoice(tenant_id, invoice)
