"""
Service layer for the bank portal.

Contains the data-access and business rules that:
- Build filtered, ordered and paginated queries against Supabase
- Enforce account freeze rules and transfer preconditions
- Sequence multi-step admin writes with their customer notifications
- Bridge realtime change feeds to per-user callbacks

Routes call into these functions with a per-request Supabase client; the
service-role client is only ever passed in by admin routes.
"""

from .account_service import (
    create_account,
    delete_account,
    freeze_by_admin,
    freeze_by_user,
    get_account,
    get_user_accounts,
    toggle_freeze,
    unfreeze_by_admin,
    unfreeze_by_user,
    update_balance,
)
from .admin_service import (
    admin_adjust_balance,
    admin_create_account,
    admin_delete_account,
    admin_post_transaction,
    admin_set_freeze,
)
from .card_service import get_card_transactions, get_user_cards
from .notification_service import (
    broadcast_notification,
    create_notification,
    get_user_notifications,
    mark_all_as_read,
    mark_as_read,
)
from .profile_service import get_user_profile, is_admin, update_profile
from .realtime_service import (
    subscribe_to_user_accounts,
    subscribe_to_user_notifications,
    subscribe_to_user_transactions,
)
from .table_editor_service import (
    delete_row,
    execute_query,
    get_foreign_key_options,
    get_table_data,
    insert_row,
    list_tables,
    update_row,
    verify_catalog,
)
from .transaction_service import (
    create_transaction,
    get_transaction_stats,
    get_user_transactions,
    get_user_transactions_paginated,
    transfer_between_accounts,
)
from .user_admin_service import create_user_with_service_role, delete_user, list_users

__all__ = [
    "get_user_accounts",
    "get_account",
    "create_account",
    "update_balance",
    "toggle_freeze",
    "freeze_by_admin",
    "unfreeze_by_admin",
    "freeze_by_user",
    "unfreeze_by_user",
    "delete_account",
    "admin_create_account",
    "admin_set_freeze",
    "admin_adjust_balance",
    "admin_post_transaction",
    "admin_delete_account",
    "get_user_cards",
    "get_card_transactions",
    "get_user_notifications",
    "mark_as_read",
    "mark_all_as_read",
    "create_notification",
    "broadcast_notification",
    "get_user_profile",
    "update_profile",
    "is_admin",
    "subscribe_to_user_accounts",
    "subscribe_to_user_transactions",
    "subscribe_to_user_notifications",
    "list_tables",
    "get_table_data",
    "insert_row",
    "update_row",
    "delete_row",
    "get_foreign_key_options",
    "execute_query",
    "verify_catalog",
    "get_user_transactions",
    "get_user_transactions_paginated",
    "get_transaction_stats",
    "create_transaction",
    "transfer_between_accounts",
    "create_user_with_service_role",
    "list_users",
    "delete_user",
]
