"""
Account-type-aware sign convention.

PARTY_ACCOUNT (we owe them): credit increases the balance, debit decreases it.
CUSTOMER_ACCOUNT and CASH (they owe us / we hold it): debit increases, credit decreases.
The posting engine, the chain recompute and the display labels all go through
this module so the three can never disagree.
"""

from decimal import Decimal
from typing import Tuple

from bookkeeping.app.models.enums import AccountType
from bookkeeping.app.domain.ledger.money import D, ZERO


def is_credit_normal(account_type: AccountType) -> bool:
    return account_type == AccountType.PARTY_ACCOUNT


def signed_delta(account_type: AccountType, dr_amount, cr_amount) -> Decimal:
    """
    Balance change produced by one ledger row.

    Args:
        account_type: Type of the owning account
        dr_amount: Debit side (>= 0)
        cr_amount: Credit side (>= 0)

    Returns:
        Signed delta to add to the opening balance
    """
    if is_credit_normal(account_type):
        return D(cr_amount) - D(dr_amount)
    return D(dr_amount) - D(cr_amount)


def amounts_for_delta(account_type: AccountType, delta) -> Tuple[Decimal, Decimal]:
    """
    Inverse of `signed_delta`: the (dr, cr) pair whose delta equals `delta`.

    Used for seeded balances (initial and opening balance rows).
    """
    delta = D(delta)
    magnitude = abs(delta)
    increases = delta >= 0
    if is_credit_normal(account_type):
        return (ZERO, magnitude) if increases else (magnitude, ZERO)
    return (magnitude, ZERO) if increases else (ZERO, magnitude)


def balance_label(account_type: AccountType, balance) -> str:
    """
    Human-readable Dr/Cr label for a signed balance.

    Examples:
        PARTY_ACCOUNT, 100    -> "100.00 Cr (we owe them)"
        PARTY_ACCOUNT, -20    -> "20.00 Dr (advance)"
        CUSTOMER_ACCOUNT, 60  -> "60.00 Dr (they owe us)"
        CUSTOMER_ACCOUNT, -5  -> "5.00 Cr (we owe them)"
    """
    balance = D(balance)
    if balance == ZERO:
        return f"{ZERO} (settled)"

    amount = abs(balance)
    if is_credit_normal(account_type):
        if balance > 0:
            return f"{amount} Cr (we owe them)"
        return f"{amount} Dr (advance)"

    if balance > 0:
        return f"{amount} Dr (they owe us)"
    return f"{amount} Cr (we owe them)"
