"""
Generic write helpers used by the service layer.

CRITICAL: execute_transaction is NOT atomic. The hosted backend exposes no
client-side transaction, so steps that already succeeded stay applied when a
later step fails. Callers that need to reconcile pass wrap_partial=True and
handle PartiallyAppliedError.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from supabase import Client

from bankportal.config import settings
from bankportal.utils.errors import PartiallyAppliedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[Any]]


async def execute_transaction(
    operations: Sequence[Operation],
    *,
    wrap_partial: bool = False,
    description: Optional[str] = None,
) -> List[Any]:
    """
    Run async operations strictly in order, stopping at the first failure.

    Args:
        operations: Zero-argument callables returning awaitables. Each one is
                    only invoked after the previous one has completed.
        wrap_partial: If True and the failing step is not the first one,
                      raise PartiallyAppliedError (chained to the original
                      error) instead of the original error.
        description: Label used in logs and in PartiallyAppliedError.

    Returns:
        The result of every operation, in order.

    Raises:
        The failing operation's exception unchanged, or PartiallyAppliedError
        when wrap_partial is set and earlier steps were applied.
    """
    results: List[Any] = []

    for index, operation in enumerate(operations):
        try:
            result = await operation()
        except Exception as e:
            logger.error(
                f"Sequential write {description or ''} aborted at step "
                f"{index + 1}/{len(operations)}: {e}"
            )
            if wrap_partial and results:
                raise PartiallyAppliedError(results, index, e, description) from e
            raise
        results.append(result)

    logger.debug(f"Sequential write {description or ''} completed {len(results)} step(s)")

    return results


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> T:
    """
    Retry an async operation with exponential backoff.

    The operation is attempted at most ``max_retries`` times. After failed
    attempt ``n`` (zero-based) the helper sleeps ``base_delay * 2**n``
    seconds. Every exception is treated as retryable; there is no jitter.

    Args:
        operation: Zero-argument callable returning an awaitable.
        max_retries: Total number of attempts (>= 1). Defaults to
                     RETRY_MAX_ATTEMPTS (3).
        base_delay: Delay in seconds before the second attempt. Defaults to
                    RETRY_BASE_DELAY_MS converted to seconds (1.0).

    Returns:
        The first successful result.

    Raises:
        ValueError: If max_retries < 1.
        The exception raised by the final attempt.
    """
    if max_retries is None:
        max_retries = settings.RETRY_MAX_ATTEMPTS
    if base_delay is None:
        base_delay = settings.retry_base_delay_seconds()
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            if attempt == max_retries - 1:
                logger.error(f"Operation failed after {max_retries} attempt(s): {e}")
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries} failed ({e}); retrying in {delay:.3f}s"
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry_operation exhausted without result")


async def batch_insert(
    supabase_client: Client,
    table: str,
    rows: Sequence[Dict[str, Any]],
    chunk_size: Optional[int] = None,
) -> int:
    """
    Insert rows in sequential chunks.

    Stops at the first failing chunk; earlier chunks stay inserted.

    Args:
        supabase_client: Authenticated Supabase client
        table: Target table name
        rows: Row dicts to insert
        chunk_size: Maximum rows per insert request (BATCH_INSERT_CHUNK_SIZE
                    when omitted)

    Returns:
        Number of rows sent in successful chunks
    """
    if chunk_size is None:
        chunk_size = settings.BATCH_INSERT_CHUNK_SIZE
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    inserted = 0
    for start in range(0, len(rows), chunk_size):
        chunk = list(rows[start:start + chunk_size])
        supabase_client.table(table).insert(chunk).execute()
        inserted += len(chunk)
        logger.debug(f"Inserted chunk of {len(chunk)} rows into {table} ({inserted}/{len(rows)})")

    logger.info(f"Batch insert into {table} finished: {inserted} rows")

    return inserted
