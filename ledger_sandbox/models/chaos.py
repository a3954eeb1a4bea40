"""Chaos models — injected fault conditions and per-call fault decisions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ledger_sandbox.models.failure import OperationFailure


class ChaosCondition(str, Enum):
    RATE_LIMIT = "RATE_LIMIT"               # 429 on every call
    TIMEOUT = "TIMEOUT"                     # 408 on every call
    SERVER_ERROR = "SERVER_ERROR"           # 500/502/503 on every call
    TOKEN_EXPIRED = "TOKEN_EXPIRED"         # 401 on every call
    INTERMITTENT = "INTERMITTENT"           # 503 at failure_rate


class SimulationState(BaseModel):
    """The single active fault condition of a tenant."""

    tenant_id: str
    condition: ChaosCondition
    expires_at: datetime
    failure_rate: float = Field(ge=0.0, le=1.0, default=1.0)
    request_count: int = 0


class PreviousSimulation(BaseModel):
    condition: ChaosCondition
    request_count: int


class SimulationStatus(BaseModel):
    """Response to activating or clearing a simulation."""

    tenant_id: str
    success: bool = True
    condition: Optional[ChaosCondition] = None
    duration_seconds: int = 0
    failure_rate: float = 1.0
    expires_at: Optional[datetime] = None
    status: str                             # "active" | "cleared" | "rejected"
    previous_simulation: Optional[PreviousSimulation] = None
    error: Optional[OperationFailure] = None


class FaultDecision(BaseModel):
    """Whether the current call should fail, and how."""

    tenant_id: str
    should_fail: bool
    error_kind: Optional[ChaosCondition] = None
    status_code: Optional[int] = None
    message: Optional[str] = None
    retry_after: Optional[int] = None
    request_count: int = 0
