"""Operation Failure — structured form of every error crossing a component boundary."""

from typing import Optional

from pydantic import BaseModel

from ledger_sandbox.models.validation import RecoveryAction


class OperationFailure(BaseModel):
    """Enough detail for a caller to pick the next corrective action programmatically."""

    kind: str                               # e.g., "not_found", "illegal_transition"
    message: str
    recoverable: bool = False
    details: dict = {}
    recovery: Optional[RecoveryAction] = None
