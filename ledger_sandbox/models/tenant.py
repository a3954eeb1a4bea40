"""Tenant Context — the validation universe of one accounting organisation."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class AccountType(str, Enum):
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    BANK = "BANK"
    CURRENT = "CURRENT"
    FIXED = "FIXED"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"


class Account(BaseModel):
    """A Chart of Accounts entry."""

    account_id: str
    code: str
    name: str = ""
    type: AccountType
    status: str = "ACTIVE"                  # "ACTIVE" | "ARCHIVED"
    tax_type: Optional[str] = None


class TaxRate(BaseModel):
    """A tax rate available in the tenant's region."""

    tax_type: str                           # e.g., "OUTPUT", "INPUT"
    name: str = ""
    rate: float = 0.0                       # Percent, e.g. 10.0
    status: str = "ACTIVE"                  # "ACTIVE" | "DELETED"


class Contact(BaseModel):
    """A customer or supplier."""

    contact_id: str
    name: str
    email: Optional[str] = None
    status: str = "ACTIVE"                  # "ACTIVE" | "ARCHIVED"
    is_customer: bool = True
    is_supplier: bool = False

    @property
    def entity_id(self) -> str:
        return self.contact_id


class DocumentStatus(BaseModel):
    """Status summary of an existing document: payment targets and quotes."""

    entity_type: str                        # "Invoice" | "CreditNote" | "Quote"
    entity_id: str
    status: str


class Tenant(BaseModel):
    """Organisation-level settings of a tenant."""

    tenant_id: str
    tenant_name: str
    region: str = "AU"
    currency: str = "AUD"


class TenantContext(BaseModel):
    """
    Immutable snapshot of a tenant's configuration for one validation call.

    Account codes, tax types and contact IDs are unique within a tenant;
    a snapshot that breaks this is rejected at construction.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    tenant_name: str = ""
    region: str
    currency: str
    accounts: List[Account] = []
    tax_rates: List[TaxRate] = []
    contacts: List[Contact] = []
    documents: List[DocumentStatus] = []

    @model_validator(mode="after")
    def _check_unique_keys(self) -> "TenantContext":
        for label, keys in (
            ("account code", [a.code for a in self.accounts]),
            ("tax type", [t.tax_type for t in self.tax_rates]),
            ("contact id", [c.contact_id for c in self.contacts]),
        ):
            seen = set()
            for key in keys:
                if key in seen:
                    raise ValueError(f"Duplicate {label} '{key}' in tenant {self.tenant_id}")
                seen.add(key)
        return self

    def account_by_code(self, code: str) -> Optional[Account]:
        return next((a for a in self.accounts if a.code == code), None)

    def account_by_id(self, account_id: str) -> Optional[Account]:
        return next((a for a in self.accounts if a.account_id == account_id), None)

    def tax_rate(self, tax_type: str) -> Optional[TaxRate]:
        return next((t for t in self.tax_rates if t.tax_type == tax_type), None)

    def contact(self, contact_id: str) -> Optional[Contact]:
        return next((c for c in self.contacts if c.contact_id == contact_id), None)

    def document(self, entity_type: str, entity_id: str) -> Optional[DocumentStatus]:
        return next(
            (
                d for d in self.documents
                if d.entity_type == entity_type and d.entity_id == entity_id
            ),
            None,
        )
