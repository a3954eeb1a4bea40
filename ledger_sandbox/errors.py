"""
Error taxonomy for the sandbox core.

Errors are raised inside components and converted to an OperationFailure at
the boundary of every public operation, so no exception reaches caller code.
"""

from typing import List, Optional

from ledger_sandbox.models.chaos import FaultDecision
from ledger_sandbox.models.failure import OperationFailure
from ledger_sandbox.models.lifecycle import TransitionResult
from ledger_sandbox.models.validation import NextCall, RecoveryAction, ValidationResult


class SandboxError(Exception):
    """Base class for all structured sandbox failures."""

    kind = "sandbox_error"
    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        recovery: Optional[RecoveryAction] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recovery = recovery

    def to_failure(self) -> OperationFailure:
        return OperationFailure(
            kind=self.kind,
            message=self.message,
            recoverable=self.recoverable,
            details=self.details,
            recovery=self.recovery,
        )


class InvalidRequestError(SandboxError):
    """Raised when the caller's arguments are rejected before any work starts."""

    kind = "invalid_request"
    recoverable = True


class StructuralError(SandboxError):
    """Payload shape is wrong. Fix and resubmit; never retried."""

    kind = "structural_error"

    def __init__(self, validation: ValidationResult):
        super().__init__(
            f"{validation.entity_type} structure is invalid: "
            f"{len(validation.errors)} structural error(s) found.",
            details={"validation": validation.model_dump(mode="json")},
            recovery=validation.recovery,
        )
        self.validation = validation


class ContextualError(SandboxError):
    """Payload references an account, tax rate, contact or document that is not usable."""

    kind = "contextual_error"

    def __init__(self, validation: ValidationResult):
        first = validation.errors[0] if validation.errors else "unknown reason"
        super().__init__(
            f"{validation.entity_type} validation failed with "
            f"{len(validation.errors)} error(s). Most common issue: {first}",
            details={"validation": validation.model_dump(mode="json")},
            recovery=validation.recovery,
        )
        self.validation = validation


class NotFoundError(SandboxError):
    """Tenant or entity does not exist."""

    kind = "not_found"
    recoverable = True


class IllegalTransitionError(SandboxError):
    """No path exists in the transition graph from the current to the target state."""

    kind = "illegal_transition"

    def __init__(self, entity_type: str, current_state: str, target_state: str, allowed: List[str]):
        allowed_text = ", ".join(allowed) if allowed else "none (terminal state)"
        super().__init__(
            f"Invalid transition: {entity_type} cannot go from '{current_state}' "
            f"to '{target_state}'. Allowed transitions from '{current_state}': "
            f"{allowed_text}.",
            details={
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": list(allowed),
            },
        )
        self.current_state = current_state
        self.allowed = list(allowed)


class SimulatedFaultError(SandboxError):
    """Injected by the ChaosSimulator. Recoverable by clearing the simulation."""

    kind = "simulated_fault"
    recoverable = True

    def __init__(self, decision: FaultDecision):
        condition = decision.error_kind.value if decision.error_kind else "UNKNOWN"
        super().__init__(
            f"Request failed due to simulated {condition} condition. {decision.message}",
            details={
                "status_code": decision.status_code,
                "error_kind": condition,
                "retry_after": decision.retry_after,
            },
            recovery=RecoveryAction(
                suggested_action_id="clear_simulation",
                description="Clear the network simulation to proceed",
                next_call=NextCall(
                    name="simulate_fault",
                    arguments={
                        "tenant_id": decision.tenant_id,
                        "condition": condition,
                        "duration_seconds": 0,
                    },
                ),
            ),
        )
        self.decision = decision


class PartialLifecycleFailure(SandboxError):
    """
    A step of a multi-step transition failed after earlier steps committed.

    The entity is in committed_state, neither the original nor the target.
    """

    kind = "partial_lifecycle_failure"

    def __init__(
        self,
        completed_path: List[str],
        attempted_state: str,
        cause: Exception,
        partial_result: Optional[TransitionResult] = None,
    ):
        committed_state = completed_path[-1]
        super().__init__(
            f"Failed to apply transition to '{attempted_state}': {cause}. "
            f"Entity remains in '{committed_state}'.",
            details={
                "completed_path": list(completed_path),
                "committed_state": committed_state,
                "attempted_state": attempted_state,
                "cause": str(cause),
            },
        )
        self.completed_path = list(completed_path)
        self.committed_state = committed_state
        self.partial_result = partial_result
