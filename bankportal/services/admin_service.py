"""
Admin compound operations on customer accounts.

Each operation pairs its write with the customer notification (and, for
balance changes, the transaction record) by running the steps through
execute_transaction. Nothing is rolled back: if a later step fails the caller
receives PartiallyAppliedError describing what already landed.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from supabase import Client

from bankportal.db.operations import execute_transaction
from bankportal.services import account_service, notification_service, transaction_service
from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)


@dataclass
class BalanceAdjustment:
    account: Dict[str, Any]
    transaction: Optional[Dict[str, Any]] = None
    notification: Optional[Dict[str, Any]] = None

    @property
    def changed(self) -> bool:
        return self.transaction is not None


@dataclass
class PostedTransaction:
    transaction: Dict[str, Any]
    new_balance: Decimal
    notification: Dict[str, Any]


def _last4(account: Dict[str, Any]) -> str:
    return str(account.get("account_number") or "")[-4:]


def _money(amount: Decimal) -> str:
    return f"${amount:.2f}"


async def admin_create_account(
    supabase_client: Client,
    user_id: str,
    account_type: str,
    balance: float = 0,
    account_number: Optional[str] = None,
    routing_number: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an account for a customer and notify them."""
    async def insert_account():
        return await account_service.create_account(
            supabase_client, user_id, account_type, balance, account_number, routing_number
        )

    async def notify():
        return await notification_service.create_notification(
            supabase_client,
            user_id,
            "New Account Created",
            f"A new {account_type} account has been created for you with an "
            f"initial balance of {_money(Decimal(str(balance)))}.",
        )

    results = await execute_transaction(
        [insert_account, notify], wrap_partial=True, description="create account"
    )
    return results[0]


async def admin_set_freeze(
    supabase_client: Client,
    account_id: Any,
    frozen: bool
) -> Dict[str, Any]:
    """
    Freeze or unfreeze an account as an admin, then notify the owner.

    Returns:
        The account as it was before the change, with is_frozen updated
    """
    account = await account_service.require_account(supabase_client, account_id)

    async def apply_freeze():
        if frozen:
            return await account_service.freeze_by_admin(supabase_client, account_id)
        return await account_service.unfreeze_by_admin(supabase_client, account_id)

    if frozen:
        title = "Account Frozen"
        message = (
            f"Your {account.get('account_type')} account ending in {_last4(account)} "
            "has been frozen. Please contact customer support for assistance."
        )
    else:
        title = "Account Unfrozen"
        message = (
            f"Your {account.get('account_type')} account ending in {_last4(account)} "
            "has been unfrozen and is now active."
        )

    async def notify():
        return await notification_service.create_notification(
            supabase_client, account["user_id"], title, message
        )

    await execute_transaction(
        [apply_freeze, notify],
        wrap_partial=True,
        description="freeze account" if frozen else "unfreeze account",
    )

    return {**account, "is_frozen": frozen, "frozen_by_admin": frozen}


async def admin_adjust_balance(
    supabase_client: Client,
    account_id: Any,
    new_balance: float
) -> BalanceAdjustment:
    """
    Set an account balance and record the difference.

    Steps: balance update, adjustment transaction (absolute difference, typed
    deposit or withdrawal), "Balance Adjustment" notification.

    Raises:
        PreconditionError: If new_balance is negative
        NotFoundError: If the account does not exist
        PartiallyAppliedError: If a step after the balance update fails
    """
    if new_balance < 0:
        raise PreconditionError("Balance cannot be negative")

    account = await account_service.require_account(supabase_client, account_id)

    previous = Decimal(str(account.get("balance") or 0))
    target = Decimal(str(new_balance))
    difference = target - previous

    if difference == 0:
        logger.info(f"Balance unchanged for account {account_id}; nothing recorded")
        return BalanceAdjustment(account=account)

    transaction_type = "deposit" if difference > 0 else "withdrawal"
    magnitude = abs(difference)

    async def write_balance():
        updated = await account_service.update_balance(supabase_client, account_id, float(target))
        return updated or {**account, "balance": float(target)}

    async def record_transaction():
        return await transaction_service.create_transaction(
            supabase_client,
            account_id,
            float(magnitude),
            f"Admin {transaction_type} adjustment",
            transaction_type,
        )

    async def notify():
        return await notification_service.create_notification(
            supabase_client,
            account["user_id"],
            "Balance Adjustment",
            f"Your {account.get('account_type')} account ending in {_last4(account)} "
            f"had a {transaction_type} of {_money(magnitude)} by an administrator.",
        )

    updated, transaction, notification = await execute_transaction(
        [write_balance, record_transaction, notify],
        wrap_partial=True,
        description="balance adjustment",
    )

    logger.info(f"Admin {transaction_type} adjustment recorded on account {account_id}")

    return BalanceAdjustment(account=updated, transaction=transaction, notification=notification)


async def admin_post_transaction(
    supabase_client: Client,
    account_id: Any,
    amount: float,
    transaction_type: str,
    description: str,
    created_at: Optional[str] = None,
) -> PostedTransaction:
    """
    Post a transaction to a customer account and apply it to the balance.

    Deposits add, withdrawals subtract, transfers leave the balance as is.
    Steps: transaction insert, balance update, customer notification.

    Raises:
        PreconditionError: Invalid type, non-positive amount or frozen account
        NotFoundError: If the account does not exist
        PartiallyAppliedError: If a step after the insert fails
    """
    transaction_service.validate_transaction_type(transaction_type)
    if amount <= 0:
        raise PreconditionError("Amount must be a positive number")
    if not description or not description.strip():
        raise PreconditionError("Description is required")

    account = await account_service.require_account(supabase_client, account_id)

    if account.get("is_frozen"):
        raise PreconditionError("Cannot process transactions for a frozen account")

    value = Decimal(str(amount))
    balance = Decimal(str(account.get("balance") or 0))
    if transaction_type == "deposit":
        balance += value
    elif transaction_type == "withdrawal":
        balance -= value

    async def insert_transaction():
        return await transaction_service.create_transaction(
            supabase_client, account_id, amount, description, transaction_type, created_at
        )

    async def write_balance():
        return await account_service.update_balance(supabase_client, account_id, float(balance))

    async def notify():
        return await notification_service.create_notification(
            supabase_client,
            account["user_id"],
            f"New {transaction_type} Transaction",
            f"A {transaction_type} of {_money(value)} has been applied to your account: {description}",
        )

    transaction, _, notification = await execute_transaction(
        [insert_transaction, write_balance, notify],
        wrap_partial=True,
        description="post transaction",
    )

    return PostedTransaction(transaction=transaction, new_balance=balance, notification=notification)


async def admin_delete_account(supabase_client: Client, account_id: Any) -> Dict[str, Any]:
    """Delete an account and tell the owner it was closed."""
    account = await account_service.require_account(supabase_client, account_id)

    async def remove():
        return await account_service.delete_account(supabase_client, account_id)

    async def notify():
        return await notification_service.create_notification(
            supabase_client,
            account["user_id"],
            "Account Closed",
            f"Your {account.get('account_type')} account ending in {_last4(account)} has been closed.",
        )

    await execute_transaction([remove, notify], wrap_partial=True, description="delete account")

    return account
