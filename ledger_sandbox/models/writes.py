"""Write Result — outcome of a create operation through the write gateway."""

from typing import List, Optional

from pydantic import BaseModel

from ledger_sandbox.models.failure import OperationFailure
from ledger_sandbox.models.validation import ValidationResult


class WriteResult(BaseModel):
    """Outcome of creating one entity, including idempotent replays."""

    success: bool
    tenant_id: str
    entity_type: str
    data: Optional[dict] = None             # The created entity, as first produced
    was_duplicate: bool = False
    validation: Optional[ValidationResult] = None
    warnings: List[str] = []
    error: Optional[OperationFailure] = None
