"""
Validator — two-phase payload validation against a tenant's configuration.

Phase 1 (structural) parses the payload with the entity type's schema. Any
failure short-circuits with score 0 and a fix_structure hint.
Phase 2 (contextual) cross-references accounts, tax rates, contacts and
documents in the TenantContext and scores the fraction of failed checks.

Behavioral Contract:
- Accepts a TenantContext, an entity type and an arbitrary payload
- Returns a ValidationResult; never raises for bad payloads
- valid is True exactly when no error-severity entry was produced
- Produces at most one RecoveryAction, chosen account → tax → contact → document
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from ledger_sandbox.errors import ContextualError, StructuralError
from ledger_sandbox.models.documents import EntityType
from ledger_sandbox.models.tenant import AccountType, TenantContext
from ledger_sandbox.models.validation import (
    DiffEntry,
    NextCall,
    RecoveryAction,
    Severity,
    ValidationResult,
)
from ledger_sandbox.validation.schemas import (
    BankTransactionPayload,
    ContactPayload,
    CreditNotePayload,
    InvoicePayload,
    LineItemPayload,
    PaymentPayload,
    QuotePayload,
)

logger = logging.getLogger(__name__)

STRUCTURE = "structure"
ACCOUNT = "account"
TAX = "tax"
CONTACT = "contact"
DOCUMENT = "document"

INSPECTION_TOOL = "introspect_enums"


class _Findings:
    """Accumulates diff entries for one contextual pass."""

    def __init__(self):
        self.diff: List[DiffEntry] = []
        self.account_class: Optional[str] = None
        self.document_type: Optional[str] = None
        self._messages: List[Tuple[DiffEntry, str]] = []

    def error(
        self,
        category: str,
        field_path: str,
        issue: str,
        message: str,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ) -> None:
        self._add(Severity.ERROR, category, field_path, issue, message, expected, received)

    def warning(
        self,
        category: str,
        field_path: str,
        issue: str,
        message: str,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ) -> None:
        self._add(Severity.WARNING, category, field_path, issue, message, expected, received)

    def _add(self, severity, category, field_path, issue, message, expected, received):
        entry = DiffEntry(
            field_path=field_path,
            issue=issue,
            expected=expected,
            received=received,
            severity=severity,
            category=category,
        )
        self.diff.append(entry)
        self._messages.append((entry, message))

    def messages(self, severity: Severity) -> List[str]:
        return [msg for entry, msg in self._messages if entry.severity == severity]

    def has_errors(self, category: str) -> bool:
        return any(
            d.severity == Severity.ERROR and d.category == category for d in self.diff
        )


# ---------------------------------------------------------------------------
# Per-variant rules
# ---------------------------------------------------------------------------


class EntityRules:
    """
    Contextual checks for one entity type.

    Subclasses pick the structural schema, the number of cross-entity
    reference families they check, and override the check_* hooks they need.
    """

    entity_type: str = ""
    schema: Type[BaseModel] = BaseModel
    reference_families: int = 0

    def line_items(self, payload: BaseModel) -> List[LineItemPayload]:
        return list(getattr(payload, "line_items", []) or [])

    def implied_account_class(self, payload: BaseModel) -> Optional[AccountType]:
        return None

    def total_checks(self, payload: BaseModel) -> int:
        return 2 * len(self.line_items(payload)) + self.reference_families

    def check_account_refs(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        implied = self.implied_account_class(payload)
        for i, line in enumerate(self.line_items(payload)):
            path = f"line_items[{i}].account_code"
            account = context.account_by_code(line.account_code)
            if account is None:
                findings.error(
                    ACCOUNT, path, "Account code not found",
                    f"line_items[{i}].account_code '{line.account_code}' does not exist "
                    f"in tenant's Chart of Accounts",
                    expected="Valid account code from Chart of Accounts",
                    received=line.account_code,
                )
                self._note_account_class(findings, implied)
            elif account.status == "ARCHIVED":
                findings.error(
                    ACCOUNT, path, "Account is archived",
                    f"line_items[{i}].account_code '{line.account_code}' is ARCHIVED",
                    expected="ACTIVE account",
                    received="ARCHIVED",
                )
                self._note_account_class(findings, implied)
            elif implied is not None and account.type != implied:
                findings.warning(
                    ACCOUNT, path, f"Account type mismatch for {self.entity_type}",
                    f"line_items[{i}].account_code '{line.account_code}' is "
                    f"{account.type.value}, not {implied.value}. "
                    f"This may cause incorrect reporting.",
                    expected=implied.value,
                    received=account.type.value,
                )

    def check_tax_refs(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        for i, line in enumerate(self.line_items(payload)):
            if not line.tax_type:
                continue
            rate = context.tax_rate(line.tax_type)
            if rate is None or rate.status != "ACTIVE":
                findings.error(
                    TAX, f"line_items[{i}].tax_type", "Invalid tax type for region",
                    f"line_items[{i}].tax_type '{line.tax_type}' is not valid for "
                    f"{context.region} region",
                    expected=f"Active tax type for {context.region}",
                    received=line.tax_type,
                )

    def check_contact_refs(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        ref = getattr(payload, "contact", None)
        if ref is None:
            return
        contact = context.contact(ref.contact_id)
        if contact is None:
            findings.error(
                CONTACT, "contact.contact_id", "Contact not found in tenant",
                f"Contact '{ref.contact_id}' not found",
                expected="Valid contact ID",
                received=ref.contact_id,
            )
        elif contact.status == "ARCHIVED":
            findings.warning(
                CONTACT, "contact.contact_id", "Contact is archived",
                f"Contact '{contact.name}' is ARCHIVED - {self.entity_type} may fail",
                expected="ACTIVE",
                received="ARCHIVED",
            )

    def check_document_refs(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        pass

    def check(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        self.check_account_refs(payload, context, findings)
        self.check_tax_refs(payload, context, findings)
        self.check_contact_refs(payload, context, findings)
        self.check_document_refs(payload, context, findings)

    @staticmethod
    def _note_account_class(findings: _Findings, account_class: Optional[AccountType]) -> None:
        if findings.account_class is None and account_class is not None:
            findings.account_class = account_class.value

    def check_bank_account(
        self, field_path: str, account_id: str, context: TenantContext, findings: _Findings
    ) -> None:
        account = context.account_by_id(account_id)
        if account is None:
            findings.error(
                ACCOUNT, field_path, "Bank account not found",
                f"Account '{account_id}' not found",
                expected="Valid BANK account ID",
                received=account_id,
            )
        elif account.type != AccountType.BANK:
            findings.error(
                ACCOUNT, field_path, "Not a bank account",
                f"Account '{account_id}' is not a BANK account",
                expected="BANK",
                received=account.type.value,
            )
        else:
            return
        self._note_account_class(findings, AccountType.BANK)


class InvoiceRules(EntityRules):
    entity_type = EntityType.INVOICE.value
    schema = InvoicePayload
    reference_families = 1                  # contact

    def implied_account_class(self, payload: InvoicePayload) -> Optional[AccountType]:
        return AccountType.REVENUE if payload.type == "ACCREC" else None


class QuoteRules(EntityRules):
    entity_type = EntityType.QUOTE.value
    schema = QuotePayload
    reference_families = 1                  # contact

    def implied_account_class(self, payload: QuotePayload) -> Optional[AccountType]:
        return AccountType.REVENUE


class CreditNoteRules(EntityRules):
    entity_type = EntityType.CREDIT_NOTE.value
    schema = CreditNotePayload
    reference_families = 1                  # contact

    def implied_account_class(self, payload: CreditNotePayload) -> Optional[AccountType]:
        return AccountType.REVENUE if payload.type == "ACCRECCREDIT" else None


class PaymentRules(EntityRules):
    entity_type = EntityType.PAYMENT.value
    schema = PaymentPayload
    reference_families = 2                  # target document + bank account

    def check_account_refs(self, payload: PaymentPayload, context: TenantContext, findings: _Findings) -> None:
        self.check_bank_account("account.account_id", payload.account.account_id, context, findings)

    def check_document_refs(self, payload: PaymentPayload, context: TenantContext, findings: _Findings) -> None:
        if payload.invoice is not None:
            entity_type, entity_id = EntityType.INVOICE.value, payload.invoice.invoice_id
            field_path = "invoice.invoice_id"
        else:
            entity_type, entity_id = EntityType.CREDIT_NOTE.value, payload.credit_note.credit_note_id
            field_path = "credit_note.credit_note_id"

        findings.document_type = entity_type
        document = context.document(entity_type, entity_id)
        if document is None:
            findings.error(
                DOCUMENT, field_path, f"{entity_type} not found",
                f"{entity_type} '{entity_id}' not found",
                expected=f"Existing {entity_type} ID",
                received=entity_id,
            )
        elif document.status == "PAID":
            findings.warning(
                DOCUMENT, field_path, f"{entity_type} already paid",
                f"{entity_type} '{entity_id}' is already paid",
                expected="AUTHORISED",
                received="PAID",
            )
        elif document.status != "AUTHORISED":
            findings.error(
                DOCUMENT, field_path, f"Cannot pay {document.status.lower()} {entity_type}",
                f"{entity_type} '{entity_id}' is in {document.status} status - "
                f"cannot apply payment",
                expected="AUTHORISED",
                received=document.status,
            )


class BankTransactionRules(EntityRules):
    entity_type = EntityType.BANK_TRANSACTION.value
    schema = BankTransactionPayload
    reference_families = 2                  # bank account + contact

    def check_account_refs(
        self, payload: BankTransactionPayload, context: TenantContext, findings: _Findings
    ) -> None:
        self.check_bank_account(
            "bank_account.account_id", payload.bank_account.account_id, context, findings
        )
        super().check_account_refs(payload, context, findings)


class ContactRules(EntityRules):
    entity_type = EntityType.CONTACT.value
    schema = ContactPayload

    def check(self, payload: BaseModel, context: TenantContext, findings: _Findings) -> None:
        pass


RULES: Dict[str, EntityRules] = {
    rules.entity_type: rules
    for rules in (
        InvoiceRules(),
        QuoteRules(),
        CreditNoteRules(),
        PaymentRules(),
        BankTransactionRules(),
        ContactRules(),
    )
}


# ---------------------------------------------------------------------------
# Recovery hints
# ---------------------------------------------------------------------------


def _derive_recovery(tenant_id: str, findings: _Findings) -> Optional[RecoveryAction]:
    """Pick one hint for the dominant failure family."""
    if findings.has_errors(ACCOUNT):
        account_filter = {"status": "ACTIVE"}
        if findings.account_class:
            account_filter["type"] = findings.account_class
        return RecoveryAction(
            suggested_action_id="find_valid_account_codes",
            description="Search for valid account codes in the tenant Chart of Accounts",
            next_call=NextCall(
                name=INSPECTION_TOOL,
                arguments={"tenant_id": tenant_id, "entity_type": "Account", "filter": account_filter},
            ),
        )
    if findings.has_errors(TAX):
        return RecoveryAction(
            suggested_action_id="find_valid_tax_types",
            description="Get valid tax types for this tenant region",
            next_call=NextCall(
                name=INSPECTION_TOOL,
                arguments={"tenant_id": tenant_id, "entity_type": "TaxRate"},
            ),
        )
    if findings.has_errors(CONTACT):
        return RecoveryAction(
            suggested_action_id="find_or_create_contact",
            description="Search for existing contacts or verify contact ID",
            next_call=NextCall(
                name=INSPECTION_TOOL,
                arguments={
                    "tenant_id": tenant_id,
                    "entity_type": "Contact",
                    "filter": {"status": "ACTIVE"},
                },
            ),
        )
    if findings.has_errors(DOCUMENT):
        return RecoveryAction(
            suggested_action_id="check_document",
            description="Authorise the target document or pick one that accepts payments",
            next_call=NextCall(
                name=INSPECTION_TOOL,
                arguments={
                    "tenant_id": tenant_id,
                    "entity_type": findings.document_type or EntityType.INVOICE.value,
                    "filter": {"status": "AUTHORISED"},
                },
            ),
        )
    return None


FIX_STRUCTURE = RecoveryAction(
    suggested_action_id="fix_structure",
    description="Fix the structural issues in the payload",
)


# ---------------------------------------------------------------------------
# Structural phase
# ---------------------------------------------------------------------------


def _field_path(loc: Tuple[Any, ...]) -> str:
    """('line_items', 0, 'quantity') -> 'line_items[0].quantity'."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "payload"


def _structural_failure(entity_type: str, diff: List[DiffEntry]) -> ValidationResult:
    return ValidationResult(
        entity_type=entity_type,
        valid=False,
        score=0.0,
        errors=[f"{d.field_path}: {d.issue}" for d in diff],
        diff=diff,
        total_checks=len(diff),
        recovery=FIX_STRUCTURE,
    )


def _diff_from_validation_error(exc: ValidationError) -> List[DiffEntry]:
    diff = []
    for err in exc.errors():
        received = err.get("input")
        diff.append(
            DiffEntry(
                field_path=_field_path(tuple(err.get("loc", ()))),
                issue=err.get("msg", "Invalid value"),
                received=str(received) if isinstance(received, (str, int, float, bool)) else None,
                severity=Severity.ERROR,
                category=STRUCTURE,
            )
        )
    return diff


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class Validator:
    """Stateless two-phase validator. One instance can serve every tenant."""

    def __init__(self, rules: Optional[Dict[str, EntityRules]] = None):
        self._rules = dict(rules or RULES)

    @property
    def entity_types(self) -> List[str]:
        return list(self._rules.keys())

    def validate(self, context: TenantContext, entity_type: str, payload: Any) -> ValidationResult:
        result, _ = self.evaluate(context, entity_type, payload)
        return result

    def evaluate(
        self, context: TenantContext, entity_type: str, payload: Any
    ) -> Tuple[ValidationResult, Optional[BaseModel]]:
        """
        Validate and also return the parsed payload.

        The parsed payload is None when the structural phase failed.
        """
        rules = self._rules.get(entity_type)
        if rules is None:
            diff = [
                DiffEntry(
                    field_path="entity_type",
                    issue=f"Unsupported entity type: {entity_type}",
                    expected=", ".join(self._rules),
                    received=str(entity_type),
                    category=STRUCTURE,
                )
            ]
            return _structural_failure(str(entity_type), diff), None

        try:
            parsed = rules.schema.model_validate(payload)
        except ValidationError as exc:
            result = _structural_failure(entity_type, _diff_from_validation_error(exc))
            logger.info(
                "%s payload for tenant %s failed structural validation (%d issue(s))",
                entity_type, context.tenant_id, len(result.errors),
            )
            return result, None

        findings = _Findings()
        rules.check(parsed, context, findings)

        errors = findings.messages(Severity.ERROR)
        warnings = findings.messages(Severity.WARNING)
        total_checks = rules.total_checks(parsed)
        if total_checks:
            score = max(0.0, 1.0 - len(errors) / total_checks)
        else:
            score = 0.0 if errors else 1.0

        result = ValidationResult(
            entity_type=entity_type,
            valid=not errors,
            score=score,
            errors=errors,
            warnings=warnings,
            diff=findings.diff,
            total_checks=total_checks,
            recovery=_derive_recovery(context.tenant_id, findings) if errors else None,
        )
        if errors:
            logger.info(
                "%s payload for tenant %s failed %d of %d contextual check(s)",
                entity_type, context.tenant_id, len(errors), total_checks,
            )
        return result, parsed


def raise_for_result(result: ValidationResult) -> None:
    """Raise StructuralError or ContextualError for an invalid result."""
    if result.valid:
        return
    if any(d.category == STRUCTURE for d in result.diff):
        raise StructuralError(result)
    raise ContextualError(result)
