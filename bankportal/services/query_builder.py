"""
Typed transaction filters and fetch options mapped onto PostgREST queries.

Every present filter narrows the query conjunctively; a field left as None
imposes no constraint at all.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class TransactionFilters:
    """Optional constraints for transaction queries (inclusive ranges)."""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    account_id: Optional[int] = None
    transaction_type: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    description: Optional[str] = None


@dataclass
class FetchOptions:
    """Ordering and pagination for list queries."""
    limit: Optional[int] = None
    offset: int = 0
    order_by: Optional[str] = None
    ascending: bool = False


def ilike_pattern(term: str) -> str:
    """Wrap a term for a case-insensitive substring match."""
    return f"%{term}%"


def apply_transaction_filters(query: Any, filters: Optional[TransactionFilters]) -> Any:
    """
    AND each present filter onto a transactions query.

    Args:
        query: A PostgREST request builder (after .select())
        filters: Filters to apply; None means no constraint

    Returns:
        The narrowed query builder
    """
    if filters is None:
        return query

    if filters.start_date is not None:
        query = query.gte("created_at", filters.start_date)
    if filters.end_date is not None:
        query = query.lte("created_at", filters.end_date)
    if filters.account_id is not None:
        query = query.eq("account_id", filters.account_id)
    if filters.transaction_type is not None:
        query = query.eq("transaction_type", filters.transaction_type)
    if filters.min_amount is not None:
        query = query.gte("amount", filters.min_amount)
    if filters.max_amount is not None:
        query = query.lte("amount", filters.max_amount)
    if filters.description:
        query = query.ilike("description", ilike_pattern(filters.description))

    return query


def apply_fetch_options(
    query: Any,
    options: Optional[FetchOptions],
    default_order: str = "created_at",
) -> Any:
    """
    Apply ordering, then range pagination if a limit is set.

    Ordering defaults to ``default_order`` descending. Rows that tie on the
    order column are broken by ``id`` in the same direction so offset pages
    stay disjoint.
    """
    options = options or FetchOptions()

    order_by = options.order_by or default_order
    query = query.order(order_by, desc=not options.ascending)
    if order_by != "id":
        query = query.order("id", desc=not options.ascending)

    if options.limit:
        offset = options.offset or 0
        query = query.range(offset, offset + options.limit - 1)

    return query
