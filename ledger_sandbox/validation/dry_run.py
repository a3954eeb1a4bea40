"""
Dry Run — validate a batch of create payloads without writing anything.

Each payload runs through the Validator against one TenantContext snapshot.
The report carries per-payload results plus the aggregates a caller needs
before committing the batch for real.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from ledger_sandbox.models.documents import EntityType
from ledger_sandbox.models.dry_run import DryRunPayloadResult, DryRunReport
from ledger_sandbox.models.tenant import TenantContext
from ledger_sandbox.models.validation import NextCall, RecoveryAction, Severity
from ledger_sandbox.validation.validator import INSPECTION_TOOL, Validator

logger = logging.getLogger(__name__)

MAX_DRY_RUN_PAYLOADS = 50

DRY_RUN_OPERATIONS: Dict[str, str] = {
    "create_invoices": EntityType.INVOICE.value,
    "create_quotes": EntityType.QUOTE.value,
    "create_credit_notes": EntityType.CREDIT_NOTE.value,
    "create_contacts": EntityType.CONTACT.value,
}

# Operations whose payloads carry priced line items.
_PRICED_OPERATIONS = ("create_invoices", "create_quotes", "create_credit_notes")


def _estimated_total(parsed: Any) -> Optional[float]:
    line_items = getattr(parsed, "line_items", None)
    if not line_items:
        return None
    return round(sum(line.quantity * line.unit_amount for line in line_items), 2)


def dry_run_sync(
    validator: Validator,
    context: TenantContext,
    operation: str,
    payloads: List[Any],
    max_payloads: int = MAX_DRY_RUN_PAYLOADS,
) -> DryRunReport:
    """
    Validate every payload in order and aggregate the outcome.

    Raises ValueError for an unknown operation or a batch that is empty or
    larger than max_payloads.
    """
    entity_type = DRY_RUN_OPERATIONS.get(operation)
    if entity_type is None:
        raise ValueError(
            f"Unsupported operation '{operation}'. Expected one of: {', '.join(DRY_RUN_OPERATIONS)}"
        )
    if not payloads or len(payloads) > max_payloads:
        raise ValueError(f"payloads must contain between 1 and {max_payloads} items, got {len(payloads)}")

    results: List[DryRunPayloadResult] = []
    issues: Counter = Counter()
    amount = 0.0
    for index, payload in enumerate(payloads):
        validation, parsed = validator.evaluate(context, entity_type, payload)
        estimated = _estimated_total(parsed) if operation in _PRICED_OPERATIONS else None
        if estimated is not None:
            amount += estimated
        results.append(
            DryRunPayloadResult(
                index=index,
                valid=validation.valid,
                score=validation.score,
                errors=list(validation.errors),
                warnings=list(validation.warnings),
                estimated_total=estimated,
            )
        )
        for entry in validation.diff:
            if entry.severity == Severity.ERROR:
                issues[entry.field_path] += 1

    would_succeed = sum(1 for r in results if r.valid)
    would_fail = len(results) - would_succeed
    recovery = None
    if would_fail:
        recovery = RecoveryAction(
            suggested_action_id="fix_payloads",
            description="Fix the failing payloads and run the dry run again",
            next_call=NextCall(
                name=INSPECTION_TOOL,
                arguments={
                    "tenant_id": context.tenant_id,
                    "entity_type": "Contact" if operation == "create_contacts" else "Account",
                    "filter": {"status": "ACTIVE"},
                },
            ),
        )

    # Counter.most_common keeps first-seen order among equal counts.
    report = DryRunReport(
        success=would_fail == 0,
        tenant_id=context.tenant_id,
        operation=operation,
        total_payloads=len(results),
        would_succeed=would_succeed,
        would_fail=would_fail,
        success_rate=round(would_succeed / len(results), 2),
        estimated_total_amount=round(amount, 2) if operation in _PRICED_OPERATIONS else None,
        results=results,
        issues_summary=[f"{path}: {n} occurrence(s)" for path, n in issues.most_common()],
        recovery=recovery,
    )
    logger.info(
        "Dry run %s for tenant %s: %d/%d would succeed",
        operation, context.tenant_id, would_succeed, len(results),
    )
    return report
