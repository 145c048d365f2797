"""
Ledger enumerations.
"""

import enum


class LedgerEntryType(str, enum.Enum):
    """Kind of economic event a ledger row records."""
    OPENING_BALANCE = "OPENING_BALANCE"  # At most one per account, always first in its chain
    INITIAL_BALANCE = "INITIAL_BALANCE"  # Seeded on account creation
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"  # Payment made together with a sale/purchase
    PAYMENT_TO_PARTY = "PAYMENT_TO_PARTY"
    PAYMENT_FROM_CUSTOMER = "PAYMENT_FROM_CUSTOMER"
    MANUAL = "MANUAL"
    JOURNAL = "JOURNAL"


class ReferenceType(str, enum.Enum):
    """Source table a ledger row's reference_id points into."""
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    PAYMENT_TO_PARTY = "PAYMENT_TO_PARTY"
    PAYMENT_FROM_CUSTOMER = "PAYMENT_FROM_CUSTOMER"
    ACCOUNT_CREATION = "ACCOUNT_CREATION"
    JOURNAL = "JOURNAL"
    MANUAL = "MANUAL"
