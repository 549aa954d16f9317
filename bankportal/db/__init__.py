"""
Database access layer for the bank portal backend.

All user-facing operations go through a client bound to the caller's JWT so
Row Level Security applies. The service-role client is reserved for admin
provisioning and schema checks.

Includes:
- Supabase client factories (anon per-user, service-role, async realtime)
- Sequential multi-step write helper (no rollback)
- Exponential-backoff retry helper
- Chunked batch insert
"""

from .client import get_realtime_client, get_service_role_client, get_supabase_client
from .operations import batch_insert, execute_transaction, retry_operation

__all__ = [
    "get_supabase_client",
    "get_service_role_client",
    "get_realtime_client",
    "execute_transaction",
    "retry_operation",
    "batch_insert",
]
