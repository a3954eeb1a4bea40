"""Introspection models — the valid values a tenant accepts for a reference field."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ledger_sandbox.models.failure import OperationFailure
from ledger_sandbox.models.tenant import AccountType


class IntrospectionFilter(BaseModel):
    """Optional narrowing of the listed values. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    type: Optional[AccountType] = None      # Accounts only
    status: Optional[str] = None            # e.g., "ACTIVE", "AUTHORISED"
    is_customer: Optional[bool] = None      # Contacts only
    is_supplier: Optional[bool] = None      # Contacts only


class IntrospectionResult(BaseModel):
    success: bool = True
    tenant_id: str
    entity_type: str
    count: int = 0
    values: List[dict] = []
    tenant_region: Optional[str] = None
    error: Optional[OperationFailure] = None
