"""
Account type enumeration.

Defines the kinds of accounts the bookkeeping system keeps balances for.
"""

import enum


class AccountType(str, enum.Enum):
    """
    Account type enumeration.

    Types:
        CASH: Cash in hand / bank, debit-normal
        PARTY_ACCOUNT: Supplier we purchase from; balance is what we owe them
        CUSTOMER_ACCOUNT: Customer we sell to; balance is what they owe us
    """
    CASH = "CASH"
    PARTY_ACCOUNT = "PARTY_ACCOUNT"
    CUSTOMER_ACCOUNT = "CUSTOMER_ACCOUNT"
