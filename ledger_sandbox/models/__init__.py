"""Ledger Sandbox data models."""

from ledger_sandbox.models.chaos import (
    ChaosCondition,
    FaultDecision,
    PreviousSimulation,
    SimulationState,
    SimulationStatus,
)
from ledger_sandbox.models.config import SandboxConfig, SandboxSettings
from ledger_sandbox.models.documents import (
    AccountRef,
    BankTransaction,
    ContactRef,
    CreditNote,
    CreditNoteRef,
    EntityType,
    Invoice,
    InvoiceRef,
    LineItem,
    Payment,
    Quote,
)
from ledger_sandbox.models.dry_run import DryRunPayloadResult, DryRunReport
from ledger_sandbox.models.failure import OperationFailure
from ledger_sandbox.models.idempotency import (
    IdempotencyRecord,
    ReplayAttempt,
    ReplayReport,
    ReplaySummary,
)
from ledger_sandbox.models.introspection import IntrospectionFilter, IntrospectionResult
from ledger_sandbox.models.lifecycle import (
    InvoiceLink,
    PaymentInfo,
    PaymentLink,
    TransitionResult,
)
from ledger_sandbox.models.tenant import (
    Account,
    AccountType,
    Contact,
    DocumentStatus,
    TaxRate,
    Tenant,
    TenantContext,
)
from ledger_sandbox.models.validation import (
    DiffEntry,
    NextCall,
    RecoveryAction,
    Severity,
    ValidationResult,
)
from ledger_sandbox.models.writes import WriteResult

__all__ = [
    "Account",
    "AccountRef",
    "AccountType",
    "BankTransaction",
    "ChaosCondition",
    "Contact",
    "ContactRef",
    "CreditNote",
    "CreditNoteRef",
    "DiffEntry",
    "DocumentStatus",
    "DryRunPayloadResult",
    "DryRunReport",
    "EntityType",
    "FaultDecision",
    "IdempotencyRecord",
    "IntrospectionFilter",
    "IntrospectionResult",
    "Invoice",
    "InvoiceLink",
    "InvoiceRef",
    "LineItem",
    "NextCall",
    "OperationFailure",
    "Payment",
    "PaymentInfo",
    "PaymentLink",
    "PreviousSimulation",
    "Quote",
    "RecoveryAction",
    "ReplayAttempt",
    "ReplayReport",
    "ReplaySummary",
    "SandboxConfig",
    "SandboxSettings",
    "Severity",
    "SimulationState",
    "SimulationStatus",
    "TaxRate",
    "Tenant",
    "TenantContext",
    "TransitionResult",
    "ValidationResult",
    "WriteResult",
]
