"""
Sandbox — wires the components and exposes the public operations.

Every operation returns a structured result. SandboxErrors raised by the
components, and ValueErrors for rejected arguments, are converted here into
the result's error field.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from ledger_sandbox.chaos.simulator import ChaosSimulator
from ledger_sandbox.errors import InvalidRequestError, SandboxError
from ledger_sandbox.idempotency.replay import replay_idempotency
from ledger_sandbox.idempotency.store import IdempotencyStore
from ledger_sandbox.lifecycle.driver import LifecycleDriver
from ledger_sandbox.models.chaos import (
    ChaosCondition,
    FaultDecision,
    SimulationState,
    SimulationStatus,
)
from ledger_sandbox.models.config import SandboxConfig
from ledger_sandbox.models.dry_run import DryRunReport
from ledger_sandbox.models.idempotency import ReplayReport
from ledger_sandbox.models.introspection import IntrospectionFilter, IntrospectionResult
from ledger_sandbox.models.lifecycle import PaymentInfo, TransitionResult
from ledger_sandbox.models.validation import DiffEntry, Severity, ValidationResult
from ledger_sandbox.models.writes import WriteResult
from ledger_sandbox.tenant.store import SandboxBackend, TenantStore
from ledger_sandbox.validation.dry_run import dry_run_sync
from ledger_sandbox.validation.introspect import introspect_enums
from ledger_sandbox.validation.validator import Validator
from ledger_sandbox.writes.gateway import WriteGateway

logger = logging.getLogger(__name__)


class Sandbox:
    """Facade over the Validator, LifecycleDriver, IdempotencyStore and ChaosSimulator."""

    def __init__(
        self,
        backend: Optional[SandboxBackend] = None,
        config: Optional[SandboxConfig] = None,
        validator: Optional[Validator] = None,
        chaos: Optional[ChaosSimulator] = None,
        idempotency: Optional[IdempotencyStore] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.backend = backend if backend is not None else TenantStore()
        self.config = config or SandboxConfig()
        self.validator = validator or Validator()
        self.chaos = chaos or ChaosSimulator(config=self.config, clock=clock, rng=rng)
        self.idempotency = idempotency or IdempotencyStore(clock=clock)
        self.lifecycle = LifecycleDriver(
            backend=self.backend,
            chaos=self.chaos,
            idempotency=self.idempotency,
            config=self.config,
            clock=clock,
        )
        self.writes = WriteGateway(
            backend=self.backend,
            validator=self.validator,
            chaos=self.chaos,
            idempotency=self.idempotency,
            config=self.config,
            clock=clock,
        )

    # === VALIDATION ===

    def validate(self, tenant_id: str, entity_type: str, payload: Any) -> ValidationResult:
        """Validate a payload against the tenant's current configuration."""
        try:
            context = self.backend.get_tenant_context(tenant_id)
        except SandboxError as exc:
            return ValidationResult(
                entity_type=entity_type,
                valid=False,
                score=0.0,
                errors=[exc.message],
                diff=[
                    DiffEntry(
                        field_path="tenant_id",
                        issue=exc.message,
                        received=tenant_id,
                        severity=Severity.ERROR,
                    )
                ],
            )
        return self.validator.validate(context, entity_type, payload)

    def introspect_enums(
        self,
        tenant_id: str,
        entity_type: str,
        filter: Optional[dict] = None,
    ) -> IntrospectionResult:
        """List the accounts, tax types, contacts or documents a payload may reference."""
        try:
            flt = IntrospectionFilter.model_validate(filter or {})
            context = self.backend.get_tenant_context(tenant_id)
            return introspect_enums(context, entity_type, flt)
        except ValidationError as exc:
            failure = InvalidRequestError(
                f"Invalid introspection filter: {exc.error_count()} issue(s)",
                details={"filter": filter},
            ).to_failure()
        except SandboxError as exc:
            failure = exc.to_failure()
        return IntrospectionResult(
            success=False,
            tenant_id=tenant_id,
            entity_type=entity_type,
            error=failure,
        )

    def dry_run_sync(self, tenant_id: str, operation: str, payloads: List[Any]) -> DryRunReport:
        """Validate a batch of create payloads. Nothing is written."""
        try:
            context = self.backend.get_tenant_context(tenant_id)
            return dry_run_sync(self.validator, context, operation, payloads)
        except ValueError as exc:
            failure = InvalidRequestError(str(exc)).to_failure()
        except SandboxError as exc:
            failure = exc.to_failure()
        logger.warning("Dry run %s rejected for tenant %s: %s", operation, tenant_id, failure.message)
        return DryRunReport(success=False, tenant_id=tenant_id, operation=operation, error=failure)

    # === LIFECYCLE ===

    def transition_lifecycle(
        self,
        tenant_id: str,
        entity_type: str,
        entity_id: str,
        target_state: str,
        payment_info: Optional[PaymentInfo] = None,
        idempotency_key: Optional[str] = None,
    ) -> TransitionResult:
        return self.lifecycle.transition(
            tenant_id,
            entity_type,
            entity_id,
            target_state,
            payment_info=payment_info,
            idempotency_key=idempotency_key,
        )

    # === WRITES ===

    def create_entity(
        self,
        tenant_id: str,
        entity_type: str,
        payload: Any,
        idempotency_key: Optional[str] = None,
    ) -> WriteResult:
        return self.writes.create(tenant_id, entity_type, payload, idempotency_key=idempotency_key)

    # === IDEMPOTENCY ===

    def with_idempotency(
        self,
        key: Optional[str],
        operation_kind: str,
        producer: Callable[[], Any],
        tenant_id: Optional[str] = None,
    ) -> Tuple[Any, bool]:
        """
        Run producer at most once per key. Returns (result, was_duplicate).

        Without a key the producer always runs and nothing is stored.
        Exceptions from producer propagate unchanged and store nothing.
        """
        if not key:
            return producer(), False
        return self.idempotency.get_or_create(
            key, producer, operation=operation_kind, tenant_id=tenant_id
        )

    def replay_idempotency(
        self,
        tenant_id: str,
        operation: str,
        idempotency_key: Optional[str] = None,
        replay_count: int = 3,
    ) -> ReplayReport:
        try:
            return replay_idempotency(
                self.idempotency,
                tenant_id,
                operation,
                idempotency_key=idempotency_key,
                replay_count=replay_count,
                max_replay_count=self.config.max_replay_count,
            )
        except ValueError as exc:
            failure = InvalidRequestError(str(exc)).to_failure()
        except SandboxError as exc:
            failure = exc.to_failure()
        logger.warning("Replay of %s rejected for tenant %s: %s", operation, tenant_id, failure.message)
        return ReplayReport(
            tenant_id=tenant_id,
            operation=operation,
            idempotency_key=idempotency_key,
            replay_count=replay_count,
            error=failure,
        )

    def idempotency_stats(self, tenant_id: Optional[str] = None) -> dict:
        return self.idempotency.stats(tenant_id)

    # === CHAOS ===

    def simulate_fault(
        self,
        tenant_id: str,
        condition: ChaosCondition,
        duration_seconds: Optional[int] = None,
        failure_rate: float = 1.0,
    ) -> SimulationStatus:
        if duration_seconds is None:
            duration_seconds = self.config.default_simulation_seconds
        try:
            return self.chaos.activate(tenant_id, condition, duration_seconds, failure_rate)
        except ValueError as exc:
            logger.warning("Simulation of %s rejected for tenant %s: %s", condition, tenant_id, exc)
            return SimulationStatus(
                tenant_id=tenant_id,
                success=False,
                duration_seconds=duration_seconds,
                failure_rate=failure_rate,
                status="rejected",
                error=InvalidRequestError(str(exc)).to_failure(),
            )

    def check_fault(self, tenant_id: str) -> FaultDecision:
        return self.chaos.check(tenant_id)

    def get_simulation(self, tenant_id: str) -> Optional[SimulationState]:
        return self.chaos.get_active(tenant_id)
