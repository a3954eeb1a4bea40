"""
Tenant Store — in-memory backend standing in for the accounting platform.

Supplies tenant contexts to the Validator and the persistence primitives
used by the WriteGateway and the LifecycleDriver.

Queried by: Validator (via Sandbox) + LifecycleDriver
Updated by: WriteGateway + LifecycleDriver
"""

import logging
import threading
from typing import Dict, List, Optional, Protocol, Union

from ledger_sandbox.errors import NotFoundError
from ledger_sandbox.models.documents import (
    BankTransaction,
    CreditNote,
    EntityType,
    Invoice,
    Payment,
    Quote,
)
from ledger_sandbox.models.tenant import (
    Account,
    Contact,
    DocumentStatus,
    TaxRate,
    Tenant,
    TenantContext,
)

logger = logging.getLogger(__name__)

LifecycleEntity = Union[Invoice, Quote, CreditNote]


class SandboxBackend(Protocol):
    """What the core consumes from the accounting platform."""

    def get_tenant_context(self, tenant_id: str) -> TenantContext: ...

    def get_entity(
        self, tenant_id: str, entity_type: str, entity_id: str
    ) -> Optional[LifecycleEntity]: ...

    def create_payment(self, tenant_id: str, payment: Payment) -> Payment: ...

    def create_invoice(self, tenant_id: str, invoice: Invoice) -> Invoice: ...

    def create_quote(self, tenant_id: str, quote: Quote) -> Quote: ...

    def create_credit_note(self, tenant_id: str, credit_note: CreditNote) -> CreditNote: ...

    def create_bank_transaction(
        self, tenant_id: str, transaction: BankTransaction
    ) -> BankTransaction: ...

    def create_contact(self, tenant_id: str, contact: Contact) -> Contact: ...

    def update_entity_status(
        self, tenant_id: str, entity_type: str, entity_id: str, new_status: str
    ) -> None: ...


class _TenantData:
    def __init__(self, tenant: Tenant):
        self.tenant = tenant
        self.accounts: List[Account] = []
        self.tax_rates: List[TaxRate] = []
        self.contacts: List[Contact] = []
        self.invoices: Dict[str, Invoice] = {}
        self.quotes: Dict[str, Quote] = {}
        self.credit_notes: Dict[str, CreditNote] = {}
        self.payments: Dict[str, Payment] = {}
        self.bank_transactions: Dict[str, BankTransaction] = {}

    def documents_of(self, entity_type: str) -> Dict[str, LifecycleEntity]:
        if entity_type == EntityType.INVOICE.value:
            return self.invoices
        if entity_type == EntityType.QUOTE.value:
            return self.quotes
        if entity_type == EntityType.CREDIT_NOTE.value:
            return self.credit_notes
        raise ValueError(f"Unsupported entity type: {entity_type}")


class TenantStore:
    """
    In-memory tenant backend for the sandbox.
    Seeded programmatically; a live adapter would implement SandboxBackend instead.
    """

    def __init__(self):
        self._tenants: Dict[str, _TenantData] = {}
        self._lock = threading.RLock()

    # --- Seeding ---

    def add_tenant(
        self,
        tenant: Tenant,
        accounts: Optional[List[Account]] = None,
        tax_rates: Optional[List[TaxRate]] = None,
        contacts: Optional[List[Contact]] = None,
    ) -> None:
        """Register a tenant with its chart of accounts, tax rates and contacts."""
        data = _TenantData(tenant)
        data.accounts = list(accounts or [])
        data.tax_rates = list(tax_rates or [])
        data.contacts = list(contacts or [])
        with self._lock:
            self._tenants[tenant.tenant_id] = data

    def add_document(self, tenant_id: str, document: LifecycleEntity) -> None:
        """Insert or replace an existing document."""
        with self._lock:
            data = self._require_tenant(tenant_id)
            entity_type = _entity_type_of(document)
            data.documents_of(entity_type)[document.entity_id] = document

    # --- Queries ---

    def tenant_ids(self) -> List[str]:
        return list(self._tenants.keys())

    def get_tenant_context(self, tenant_id: str) -> TenantContext:
        """Snapshot the tenant's configuration. Raises NotFoundError for unknown tenants."""
        with self._lock:
            data = self._require_tenant(tenant_id)
            documents = [
                DocumentStatus(entity_type=EntityType.INVOICE.value, entity_id=i.invoice_id, status=i.status)
                for i in data.invoices.values()
            ] + [
                DocumentStatus(
                    entity_type=EntityType.CREDIT_NOTE.value,
                    entity_id=cn.credit_note_id,
                    status=cn.status,
                )
                for cn in data.credit_notes.values()
            ] + [
                DocumentStatus(entity_type=EntityType.QUOTE.value, entity_id=q.quote_id, status=q.status)
                for q in data.quotes.values()
            ]
            return TenantContext(
                tenant_id=data.tenant.tenant_id,
                tenant_name=data.tenant.tenant_name,
                region=data.tenant.region,
                currency=data.tenant.currency,
                accounts=[a.model_copy() for a in data.accounts],
                tax_rates=[t.model_copy() for t in data.tax_rates],
                contacts=[c.model_copy() for c in data.contacts],
                documents=documents,
            )

    def get_entity(
        self, tenant_id: str, entity_type: str, entity_id: str
    ) -> Optional[LifecycleEntity]:
        """Get a lifecycle entity by ID, or None if it does not exist."""
        with self._lock:
            data = self._require_tenant(tenant_id)
            entity = data.documents_of(entity_type).get(entity_id)
            return entity.model_copy(deep=True) if entity else None

    def list_entities(
        self, tenant_id: str, entity_type: str, status: Optional[str] = None
    ) -> List[LifecycleEntity]:
        with self._lock:
            data = self._require_tenant(tenant_id)
            return [
                e.model_copy(deep=True)
                for e in data.documents_of(entity_type).values()
                if status is None or e.status == status
            ]

    def list_payments(self, tenant_id: str) -> List[Payment]:
        with self._lock:
            return list(self._require_tenant(tenant_id).payments.values())

    def list_bank_transactions(self, tenant_id: str) -> List[BankTransaction]:
        with self._lock:
            return list(self._require_tenant(tenant_id).bank_transactions.values())

    # --- Writes ---

    def create_payment(self, tenant_id: str, payment: Payment) -> Payment:
        with self._lock:
            self._require_tenant(tenant_id).payments[payment.payment_id] = payment
        logger.info("Created payment %s (%.2f) for tenant %s", payment.payment_id, payment.amount, tenant_id)
        return payment

    def create_invoice(self, tenant_id: str, invoice: Invoice) -> Invoice:
        with self._lock:
            self._require_tenant(tenant_id).invoices[invoice.invoice_id] = invoice
        logger.info("Created invoice %s for tenant %s", invoice.invoice_id, tenant_id)
        return invoice

    def create_quote(self, tenant_id: str, quote: Quote) -> Quote:
        with self._lock:
            self._require_tenant(tenant_id).quotes[quote.quote_id] = quote
        logger.info("Created quote %s for tenant %s", quote.quote_id, tenant_id)
        return quote

    def create_credit_note(self, tenant_id: str, credit_note: CreditNote) -> CreditNote:
        with self._lock:
            self._require_tenant(tenant_id).credit_notes[credit_note.credit_note_id] = credit_note
        logger.info("Created credit note %s for tenant %s", credit_note.credit_note_id, tenant_id)
        return credit_note

    def create_bank_transaction(
        self, tenant_id: str, transaction: BankTransaction
    ) -> BankTransaction:
        with self._lock:
            data = self._require_tenant(tenant_id)
            data.bank_transactions[transaction.bank_transaction_id] = transaction
        logger.info(
            "Created bank transaction %s for tenant %s",
            transaction.bank_transaction_id, tenant_id,
        )
        return transaction

    def create_contact(self, tenant_id: str, contact: Contact) -> Contact:
        with self._lock:
            self._require_tenant(tenant_id).contacts.append(contact)
        logger.info("Created contact %s for tenant %s", contact.contact_id, tenant_id)
        return contact

    def update_entity_status(
        self, tenant_id: str, entity_type: str, entity_id: str, new_status: str
    ) -> None:
        """Set a lifecycle entity's status. Raises NotFoundError if it does not exist."""
        with self._lock:
            documents = self._require_tenant(tenant_id).documents_of(entity_type)
            entity = documents.get(entity_id)
            if entity is None:
                raise NotFoundError(f"{entity_type} '{entity_id}' not found")
            entity.status = new_status

    def _require_tenant(self, tenant_id: str) -> _TenantData:
        data = self._tenants.get(tenant_id)
        if data is None:
            raise NotFoundError(f"Tenant '{tenant_id}' not found")
        return data


def _entity_type_of(document: LifecycleEntity) -> str:
    if isinstance(document, Invoice):
        return EntityType.INVOICE.value
    if isinstance(document, Quote):
        return EntityType.QUOTE.value
    if isinstance(document, CreditNote):
        return EntityType.CREDIT_NOTE.value
    raise ValueError(f"Unsupported document: {type(document).__name__}")
