"""Validation Result — the scored diff produced by the Validator."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class NextCall(BaseModel):
    """A pre-filled follow-up call the client can make to inspect the tenant."""

    name: str                               # e.g., "introspect_enums"
    arguments: dict = {}


class RecoveryAction(BaseModel):
    """Machine-actionable hint describing how to recover from a failure."""

    suggested_action_id: str                # e.g., "find_valid_account_codes"
    description: str
    next_call: Optional[NextCall] = None


class DiffEntry(BaseModel):
    """One validation problem, keyed by the offending field path."""

    field_path: str                         # e.g., "line_items[0].account_code"
    issue: str
    expected: Optional[str] = None
    received: Optional[str] = None
    severity: Severity = Severity.ERROR
    category: Optional[str] = None          # "structure" | "account" | "tax" | "contact" | "document"


class ValidationResult(BaseModel):
    """
    Outcome of validating one payload against a tenant.

    valid is True exactly when errors is empty. score degrades with the
    fraction of failed checks: max(0, 1 - len(errors) / total_checks).
    """

    entity_type: str
    valid: bool
    score: float = Field(ge=0.0, le=1.0)
    errors: List[str] = []
    warnings: List[str] = []
    diff: List[DiffEntry] = []
    total_checks: int = 0
    recovery: Optional[RecoveryAction] = None
