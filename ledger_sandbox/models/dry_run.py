"""Dry-run models — what a batch of writes would do, without writing anything."""

from typing import List, Optional

from pydantic import BaseModel

from ledger_sandbox.models.failure import OperationFailure
from ledger_sandbox.models.validation import RecoveryAction


class DryRunPayloadResult(BaseModel):
    index: int
    valid: bool
    score: float
    errors: List[str] = []
    warnings: List[str] = []
    estimated_total: Optional[float] = None  # Sum of quantity * unit_amount, before tax


class DryRunReport(BaseModel):
    """
    Per-payload validation of a batch plus aggregates.

    success is True only when every payload would be accepted.
    """

    success: bool
    tenant_id: str
    operation: str
    total_payloads: int = 0
    would_succeed: int = 0
    would_fail: int = 0
    success_rate: float = 0.0
    estimated_total_amount: Optional[float] = None
    results: List[DryRunPayloadResult] = []
    issues_summary: List[str] = []          # "<field_path>: <n> occurrence(s)", most frequent first
    recovery: Optional[RecoveryAction] = None
    error: Optional[OperationFailure] = None
