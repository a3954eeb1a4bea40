"""Idempotency models — stored write results and replay reports."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from ledger_sandbox.models.failure import OperationFailure


class IdempotencyRecord(BaseModel):
    """
    The stored outcome of the first successful write with a key.

    Never receives a new result; only replay_count moves.
    """

    key: str
    operation: str
    tenant_id: Optional[str] = None
    result: Any
    created_at: datetime
    replay_count: int = 0


class ReplayAttempt(BaseModel):
    attempt: int
    idempotency_key: str
    result_id: str
    was_cached: bool
    response_time_ms: float


class ReplaySummary(BaseModel):
    total_attempts: int
    cached_responses: int
    new_creations: int


class ReplayReport(BaseModel):
    """Result of replaying the same request several times under one key."""

    tenant_id: str
    operation: str
    idempotency_key: Optional[str] = None
    replay_count: int = 0
    attempts: List[ReplayAttempt] = []
    idempotency_maintained: bool = False
    unique_result_ids: List[str] = []
    summary: Optional[ReplaySummary] = None
    error: Optional[OperationFailure] = None    # Set when the replay was rejected
