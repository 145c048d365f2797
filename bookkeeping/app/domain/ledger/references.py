"""
Reference tags linking ledger rows to the transaction that produced them.

The persisted (reference_type, reference_id) pair is an informal foreign key
into heterogeneous tables; these classes make the linkage explicit.
"""

from dataclasses import dataclass
from typing import Optional

from bookkeeping.app.models.ledger_enums import ReferenceType


@dataclass(frozen=True)
class TransactionRef:
    """Base reference tag. Subclasses fix the reference type."""
    id: int

    @property
    def reference_type(self) -> ReferenceType:
        raise NotImplementedError

    def __str__(self):
        return f"{self.reference_type.value}#{self.id}"


@dataclass(frozen=True)
class SaleRef(TransactionRef):
    @property
    def reference_type(self) -> ReferenceType:
        return ReferenceType.SALE


@dataclass(frozen=True)
class PurchaseRef(TransactionRef):
    @property
    def reference_type(self) -> ReferenceType:
        return ReferenceType.PURCHASE


@dataclass(frozen=True)
class AccountCreationRef(TransactionRef):
    @property
    def reference_type(self) -> ReferenceType:
        return ReferenceType.ACCOUNT_CREATION


@dataclass(frozen=True)
class JournalRef(TransactionRef):
    @property
    def reference_type(self) -> ReferenceType:
        return ReferenceType.JOURNAL


@dataclass(frozen=True)
class ManualRef(TransactionRef):
    """Manual and opening-balance rows; the id is the row's own id."""

    @property
    def reference_type(self) -> ReferenceType:
        return ReferenceType.MANUAL


@dataclass(frozen=True)
class AdHocPaymentRef(TransactionRef):
    """
    Stand-alone payment to a party or receipt from a customer.

    There is no source table: the id is the payment row's own id.
    """
    kind: ReferenceType = ReferenceType.PAYMENT_TO_PARTY

    def __post_init__(self):
        if self.kind not in (ReferenceType.PAYMENT_TO_PARTY, ReferenceType.PAYMENT_FROM_CUSTOMER):
            raise ValueError(f"Not a payment reference type: {self.kind}")

    @property
    def reference_type(self) -> ReferenceType:
        return self.kind


_BY_TYPE = {
    ReferenceType.SALE: SaleRef,
    ReferenceType.PURCHASE: PurchaseRef,
    ReferenceType.ACCOUNT_CREATION: AccountCreationRef,
    ReferenceType.JOURNAL: JournalRef,
    ReferenceType.MANUAL: ManualRef,
}


def ref_from_columns(reference_type: Optional[ReferenceType], reference_id: Optional[int]) -> Optional[TransactionRef]:
    """Rebuild the tag stored on a ledger row (None for untagged rows)."""
    if reference_type is None or reference_id is None:
        return None
    reference_type = ReferenceType(reference_type)
    if reference_type in (ReferenceType.PAYMENT_TO_PARTY, ReferenceType.PAYMENT_FROM_CUSTOMER):
        return AdHocPaymentRef(reference_id, kind=reference_type)
    return _BY_TYPE[reference_type](reference_id)
