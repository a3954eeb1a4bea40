"""
Ledger Sandbox API — FastAPI endpoints.

Exposes the sandbox operations as JSON endpoints for:
- Payload validation, introspection and batch dry runs
- Lifecycle transitions
- Entity creation through the write gateway
- Network condition simulation
- Idempotency replay and statistics

Structured failures come back with HTTP 200 and success=false.
Malformed request bodies are rejected by FastAPI with 422.
"""

from typing import Any, List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from ledger_sandbox.logging_config import configure_logging
from ledger_sandbox.models.chaos import ChaosCondition
from ledger_sandbox.models.config import SandboxSettings
from ledger_sandbox.models.lifecycle import PaymentInfo
from ledger_sandbox.models.tenant import AccountType
from ledger_sandbox.service.sandbox import Sandbox


# --- Request Models ---

class ValidateRequest(BaseModel):
    entity_type: str
    payload: Any = None


class DryRunRequest(BaseModel):
    operation: str
    payloads: List[Any]


class LifecycleRequest(BaseModel):
    entity_type: str
    entity_id: str
    target_state: str
    payment_amount: Optional[float] = None
    payment_account_id: Optional[str] = None
    idempotency_key: Optional[str] = None


class CreateEntityRequest(BaseModel):
    payload: Any = None
    idempotency_key: Optional[str] = None


class SimulateRequest(BaseModel):
    condition: ChaosCondition
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    failure_rate: float = Field(default=1.0, ge=0.0, le=1.0)


class ReplayRequest(BaseModel):
    operation: str
    idempotency_key: Optional[str] = None
    replay_count: int = Field(default=3, ge=1)


# --- Application Factory ---

def create_app(
    sandbox: Optional[Sandbox] = None,
    settings: Optional[SandboxSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or SandboxSettings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Ledger Sandbox API",
        description="Validation and simulation sandbox for accounting integrations",
        version="0.1.0",
    )

    sb = sandbox or Sandbox(config=settings.to_config())
    app.state.sandbox = sb

    # === VALIDATION ===

    @app.post("/tenants/{tenant_id}/validate")
    def validate_payload(tenant_id: str, req: ValidateRequest):
        """Two-phase validation of a payload against the tenant."""
        result = sb.validate(tenant_id, req.entity_type, req.payload)
        return {"success": result.valid, "data": result.model_dump(mode="json")}

    @app.get("/tenants/{tenant_id}/enums/{entity_type}")
    def introspect_enums(
        tenant_id: str,
        entity_type: str,
        type: Optional[AccountType] = None,
        status: Optional[str] = None,
        is_customer: Optional[bool] = None,
        is_supplier: Optional[bool] = None,
    ):
        """Valid accounts, tax types, contacts or documents for the tenant."""
        flt = {
            k: v
            for k, v in (
                ("type", type),
                ("status", status),
                ("is_customer", is_customer),
                ("is_supplier", is_supplier),
            )
            if v is not None
        }
        result = sb.introspect_enums(tenant_id, entity_type, filter=flt)
        return {"success": result.success, "data": result.model_dump(mode="json")}

    @app.post("/tenants/{tenant_id}/dry-run")
    def dry_run(tenant_id: str, req: DryRunRequest):
        """Validate a batch of create payloads without writing anything."""
        report = sb.dry_run_sync(tenant_id, req.operation, req.payloads)
        return {"success": report.success, "data": report.model_dump(mode="json")}

    # === LIFECYCLE ===

    @app.post("/tenants/{tenant_id}/lifecycle")
    def drive_lifecycle(tenant_id: str, req: LifecycleRequest):
        """Drive an entity to a target state."""
        payment_info = None
        if req.payment_amount is not None or req.payment_account_id is not None:
            payment_info = PaymentInfo(amount=req.payment_amount, account_id=req.payment_account_id)
        result = sb.transition_lifecycle(
            tenant_id,
            req.entity_type,
            req.entity_id,
            req.target_state,
            payment_info=payment_info,
            idempotency_key=req.idempotency_key,
        )
        return {"success": result.success, "data": result.model_dump(mode="json")}

    # === WRITES ===

    @app.post("/tenants/{tenant_id}/entities/{entity_type}")
    def create_entity(tenant_id: str, entity_type: str, req: CreateEntityRequest):
        """Create an entity through the write gateway."""
        result = sb.create_entity(
            tenant_id, entity_type, req.payload, idempotency_key=req.idempotency_key
        )
        return {"success": result.success, "data": result.model_dump(mode="json")}

    # === CHAOS ===

    @app.post("/tenants/{tenant_id}/chaos")
    def simulate_fault(tenant_id: str, req: SimulateRequest):
        """Activate, replace or clear (duration_seconds=0) a simulated condition."""
        status = sb.simulate_fault(
            tenant_id, req.condition, req.duration_seconds, req.failure_rate
        )
        return {"success": status.success, "data": status.model_dump(mode="json")}

    @app.get("/tenants/{tenant_id}/chaos")
    def get_simulation(tenant_id: str):
        """The tenant's active simulation, if any."""
        state = sb.get_simulation(tenant_id)
        return {
            "success": True,
            "data": state.model_dump(mode="json") if state else None,
        }

    # === IDEMPOTENCY ===

    @app.post("/tenants/{tenant_id}/idempotency/replay")
    def replay(tenant_id: str, req: ReplayRequest):
        """Replay a create operation under one idempotency key."""
        report = sb.replay_idempotency(
            tenant_id,
            req.operation,
            idempotency_key=req.idempotency_key,
            replay_count=req.replay_count,
        )
        return {"success": report.idempotency_maintained, "data": report.model_dump(mode="json")}

    @app.get("/idempotency/stats")
    def idempotency_stats(tenant_id: Optional[str] = None):
        """Stored idempotency entries, optionally for one tenant."""
        return {"success": True, "data": sb.idempotency_stats(tenant_id)}

    return app


# Default application instance
app = create_app()
