"""
Introspection — list the values a tenant accepts for a reference field.

Recovery hints name this operation: after a failed validation, a caller
lists active accounts, tax types, contacts or documents and retries.
"""

from typing import Callable, Dict, List

from ledger_sandbox.errors import InvalidRequestError
from ledger_sandbox.models.documents import EntityType
from ledger_sandbox.models.introspection import IntrospectionFilter, IntrospectionResult
from ledger_sandbox.models.tenant import TenantContext


def _accounts(context: TenantContext, flt: IntrospectionFilter) -> List[dict]:
    return [
        {
            "account_id": a.account_id,
            "code": a.code,
            "name": a.name,
            "type": a.type.value,
            "tax_type": a.tax_type,
        }
        for a in context.accounts
        if (flt.type is None or a.type == flt.type)
        and (flt.status is None or a.status == flt.status)
    ]


def _tax_rates(context: TenantContext, flt: IntrospectionFilter) -> List[dict]:
    # Only active tax types are usable on a line item.
    return [
        {"tax_type": t.tax_type, "name": t.name, "rate": t.rate}
        for t in context.tax_rates
        if t.status == "ACTIVE"
    ]


def _contacts(context: TenantContext, flt: IntrospectionFilter) -> List[dict]:
    return [
        {"contact_id": c.contact_id, "name": c.name, "email": c.email}
        for c in context.contacts
        if (flt.status is None or c.status == flt.status)
        and (flt.is_customer is None or c.is_customer == flt.is_customer)
        and (flt.is_supplier is None or c.is_supplier == flt.is_supplier)
    ]


def _documents(entity_type: str) -> Callable[[TenantContext, IntrospectionFilter], List[dict]]:
    def list_documents(context: TenantContext, flt: IntrospectionFilter) -> List[dict]:
        return [
            {"entity_id": d.entity_id, "status": d.status}
            for d in context.documents
            if d.entity_type == entity_type and (flt.status is None or d.status == flt.status)
        ]

    return list_documents


_LISTERS: Dict[str, Callable[[TenantContext, IntrospectionFilter], List[dict]]] = {
    "Account": _accounts,
    "TaxRate": _tax_rates,
    "Contact": _contacts,
    EntityType.INVOICE.value: _documents(EntityType.INVOICE.value),
    EntityType.QUOTE.value: _documents(EntityType.QUOTE.value),
    EntityType.CREDIT_NOTE.value: _documents(EntityType.CREDIT_NOTE.value),
}

INTROSPECTION_ENTITY_TYPES = list(_LISTERS)


def introspect_enums(
    context: TenantContext, entity_type: str, flt: IntrospectionFilter
) -> IntrospectionResult:
    """Raises InvalidRequestError for an entity type that cannot be listed."""
    lister = _LISTERS.get(entity_type)
    if lister is None:
        raise InvalidRequestError(
            f"Unsupported entity type for introspection: {entity_type}",
            details={"supported_entity_types": INTROSPECTION_ENTITY_TYPES},
        )
    values = lister(context, flt)
    return IntrospectionResult(
        tenant_id=context.tenant_id,
        entity_type=entity_type,
        count=len(values),
        values=values,
        tenant_region=context.region,
    )
