"""
Client-side reductions over fetched rows.

compute_transaction_stats sums with Decimal so the result does not depend on
the order of the input list.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Generic, Iterable, List, TypeVar

T = TypeVar("T")


@dataclass
class TransactionStats:
    total_deposits: Decimal = Decimal("0")
    total_withdrawals: Decimal = Decimal("0")
    net_amount: Decimal = Decimal("0")
    transaction_count: int = 0


@dataclass
class PaginatedResult(Generic[T]):
    """One page of rows plus the totals needed to page through the rest."""
    data: List[T] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_transaction_stats(transactions: Iterable[Dict[str, Any]]) -> TransactionStats:
    """
    Fold a transaction list into totals.

    Deposits and withdrawals are summed by ``transaction_type``. Transfers
    (and any other type) count toward ``transaction_count`` only.
    """
    stats = TransactionStats()

    for transaction in transactions:
        amount = _to_decimal(transaction.get("amount"))
        transaction_type = transaction.get("transaction_type")
        if transaction_type == "deposit":
            stats.total_deposits += amount
        elif transaction_type == "withdrawal":
            stats.total_withdrawals += amount
        stats.transaction_count += 1

    stats.net_amount = stats.total_deposits - stats.total_withdrawals
    return stats


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed for total_count rows (0 when there are none)."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return math.ceil(total_count / page_size)


def page_offset(page: int, page_size: int) -> int:
    """Zero-based row offset of a one-based page."""
    if page < 1:
        raise ValueError("page must be at least 1")
    return (page - 1) * page_size
