"""
Bulk transaction upload for admins.

Files (CSV or JSON) are parsed into TransactionRow objects, validated as a
whole, then posted one row at a time. A row that fails during posting is
recorded in the result and the remaining rows still run.
"""

import csv
import io
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from bankportal.services import admin_service
from bankportal.utils.constants import TRANSACTION_TYPES
from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)

# Alternate header spellings accepted in uploaded CSV files
HEADER_ALIASES = {
    "accountid": "account_id",
    "desc": "description",
    "type": "transaction_type",
    "date": "created_at",
}


@dataclass
class TransactionRow:
    account_id: Optional[int]
    amount: Optional[float]
    description: str
    transaction_type: str
    created_at: Optional[str] = None


@dataclass
class RowError:
    row: int
    field: str
    message: str


@dataclass
class BulkUploadResult:
    processed: int = 0
    errors: List[RowError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if self.success:
            return f"Successfully processed {self.processed} transactions"
        return f"Processed {self.processed} transactions with {len(self.errors)} errors"


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _row_from_mapping(data: Dict[str, Any], default_account_id: Optional[int]) -> TransactionRow:
    account_id = _parse_int(data.get("account_id"))
    return TransactionRow(
        account_id=account_id if account_id else default_account_id,
        amount=_parse_float(data.get("amount")),
        description=str(data.get("description") or "").strip(),
        transaction_type=str(data.get("transaction_type") or "deposit").strip().lower(),
        created_at=data.get("created_at") or None,
    )


def parse_csv(text: str, default_account_id: Optional[int] = None) -> List[TransactionRow]:
    """Parse CSV text with a header row into transaction rows."""
    reader = csv.reader(io.StringIO(text.strip()))
    lines = [line for line in reader if any(cell.strip() for cell in line)]
    if not lines:
        return []

    headers = [h.strip().lower() for h in lines[0]]
    headers = [HEADER_ALIASES.get(h, h) for h in headers]

    rows = []
    for values in lines[1:]:
        data = {
            header: (values[index].strip() if index < len(values) else "")
            for index, header in enumerate(headers)
        }
        rows.append(_row_from_mapping(data, default_account_id))

    return rows


def parse_json(text: str, default_account_id: Optional[int] = None) -> List[TransactionRow]:
    """
    Parse a JSON object or array of objects into transaction rows.

    Raises:
        PreconditionError: If the text is not valid JSON
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PreconditionError("Invalid JSON format") from e

    items = data if isinstance(data, list) else [data]
    rows = []
    for item in items:
        if not isinstance(item, dict):
            raise PreconditionError("Invalid JSON format")
        normalized = {HEADER_ALIASES.get(k.lower(), k.lower()): v for k, v in item.items()}
        rows.append(_row_from_mapping(normalized, default_account_id))

    return rows


def parse_upload(
    filename: str,
    text: str,
    default_account_id: Optional[int] = None
) -> List[TransactionRow]:
    """Dispatch on file extension (csv, txt or json)."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in ("csv", "txt"):
        return parse_csv(text, default_account_id)
    if extension == "json":
        return parse_json(text, default_account_id)
    raise PreconditionError("Please upload a CSV, JSON, or TXT file")


def _is_valid_timestamp(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def validate_rows(
    rows: List[TransactionRow],
    known_account_ids: Iterable[Any]
) -> List[RowError]:
    """Check every row; row numbers in errors are one-based."""
    known = set(known_account_ids)
    errors: List[RowError] = []

    for index, row in enumerate(rows):
        number = index + 1

        if not row.account_id:
            errors.append(RowError(
                number, "account_id",
                "Account ID is required. Either specify it in the file or select a customer account."
            ))
        elif row.account_id not in known:
            errors.append(RowError(number, "account_id", f"Account ID {row.account_id} does not exist"))

        if row.amount is None or row.amount <= 0:
            errors.append(RowError(number, "amount", "Amount is required and must be a positive number"))

        if not row.description:
            errors.append(RowError(number, "description", "Description is required"))

        if row.transaction_type not in TRANSACTION_TYPES:
            errors.append(RowError(
                number, "transaction_type",
                f"Transaction type must be one of: {', '.join(TRANSACTION_TYPES)}"
            ))

        if row.created_at and not _is_valid_timestamp(row.created_at):
            errors.append(RowError(number, "created_at", "Invalid date format"))

    return errors


async def process_rows(supabase_client: Client, rows: List[TransactionRow]) -> BulkUploadResult:
    """
    Post validated rows one at a time.

    Each row runs the admin post-transaction flow (frozen check, insert,
    balance update, notification). Failures are collected per row.
    """
    result = BulkUploadResult()

    logger.info(f"Starting bulk upload of {len(rows)} transactions")

    for index, row in enumerate(rows):
        if index % 10 == 0:
            logger.debug(f"Processing transaction {index + 1} of {len(rows)}")
        try:
            await admin_service.admin_post_transaction(
                supabase_client,
                row.account_id,
                row.amount or 0,
                row.transaction_type,
                row.description,
                row.created_at,
            )
            result.processed += 1
        except Exception as e:
            logger.warning(f"Bulk upload row {index + 1} failed: {e}")
            result.errors.append(RowError(index + 1, "general", str(e)))

    logger.info(f"Bulk upload finished: {result.message}")

    return result
