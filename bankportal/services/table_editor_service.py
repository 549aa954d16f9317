"""
Generic table editor for the internal admin data browser.

The column catalog below is maintained by hand. It is a second source of
truth next to the real schema, so verify_catalog() compares it against a live
probe at startup and fails loudly on drift instead of letting the editor
render wrong forms.

Row writes are thin pass-throughs matched on the "id" primary key; backend
errors are re-raised unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, cast

from postgrest.types import CountMethod
from supabase import Client

from bankportal.utils.errors import CatalogDriftError, NotFoundError, PreconditionError, unknown_table

logger = logging.getLogger(__name__)

TEXT_TYPES = ("text", "varchar")


@dataclass(frozen=True)
class TableColumn:
    name: str
    type: str
    nullable: bool = True
    default_value: Any = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_table: Optional[str] = None
    foreign_column: Optional[str] = None


@dataclass
class TableInfo:
    name: str
    columns: List[TableColumn]
    row_count: int = 0

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]


@dataclass
class TableData:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False


def _pk(name: str, type_: str, default: Any = None) -> TableColumn:
    return TableColumn(name, type_, nullable=False, default_value=default, is_primary_key=True)


def _fk(name: str, type_: str, table: str, column: str = "id") -> TableColumn:
    return TableColumn(
        name, type_, nullable=False, is_foreign_key=True,
        foreign_table=table, foreign_column=column,
    )


def _col(name: str, type_: str, nullable: bool = True, default: Any = None) -> TableColumn:
    return TableColumn(name, type_, nullable=nullable, default_value=default)


def _timestamps() -> List[TableColumn]:
    return [
        _col("created_at", "timestamptz", default="now()"),
        _col("updated_at", "timestamptz", default="now()"),
    ]


KNOWN_TABLES: Dict[str, List[TableColumn]] = {
    "accounts": [
        _pk("id", "bigint"),
        _fk("user_id", "uuid", "auth.users"),
        _col("account_number", "text", nullable=False),
        _col("routing_number", "text", nullable=False),
        _col("account_type", "text", nullable=False),
        _col("balance", "numeric", default=0),
        _col("is_frozen", "boolean", default=False),
        _col("frozen_by_admin", "boolean", default=False),
        _col("created_at", "timestamptz", default="now()"),
    ],
    "transactions": [
        _pk("id", "bigint"),
        _fk("account_id", "bigint", "accounts"),
        _col("amount", "numeric", nullable=False),
        _col("description", "text", nullable=False),
        _col("transaction_type", "text", nullable=False),
        _col("created_at", "timestamptz", default="now()"),
    ],
    "cards": [
        _pk("id", "bigint"),
        _fk("user_id", "uuid", "auth.users"),
        _fk("account_id", "bigint", "accounts"),
        _col("card_number", "varchar", nullable=False),
        _col("card_type", "varchar", nullable=False),
        _col("expiry_date", "varchar", nullable=False),
        _col("cvv", "varchar", nullable=False),
        _col("card_holder_name", "varchar", nullable=False),
        _col("is_active", "boolean", default=True),
        *_timestamps(),
    ],
    "card_transactions": [
        _pk("id", "bigint"),
        _fk("card_id", "bigint", "cards"),
        _col("amount", "numeric", nullable=False),
        _col("merchant", "text"),
        _col("description", "text"),
        _col("date", "timestamptz", default="now()"),
    ],
    "profiles": [
        TableColumn(
            "id", "uuid", nullable=False, is_primary_key=True, is_foreign_key=True,
            foreign_table="auth.users", foreign_column="id",
        ),
        _col("email", "text", nullable=False),
        _col("first_name", "text"),
        _col("last_name", "text"),
        _col("full_name", "text"),
        _col("phone", "text"),
        _col("address", "text"),
        _col("city", "text"),
        _col("state", "text"),
        _col("zip", "text"),
        _col("date_of_birth", "date"),
        _col("ssn", "text"),
        _col("mothers_maiden_name", "text"),
        _col("referral_source", "text"),
        _col("avatar_url", "text"),
        _col("is_admin", "boolean", default=False),
        _col("role", "text", default="user"),
        *_timestamps(),
    ],
    "notifications": [
        _pk("id", "bigint"),
        _fk("user_id", "uuid", "auth.users"),
        _col("title", "text", nullable=False),
        _col("message", "text", nullable=False),
        _col("type", "text", default="info"),
        _col("is_read", "boolean", default=False),
        *_timestamps(),
    ],
    "banners": [
        _pk("id", "uuid", default="gen_random_uuid()"),
        _col("title", "text", nullable=False),
        _col("description", "text"),
        _col("content", "text"),
        _col("image_url", "text"),
        _col("link_url", "text"),
        _col("is_active", "boolean", default=True),
        *_timestamps(),
    ],
    "user_financial_goals": [
        _pk("id", "uuid", default="gen_random_uuid()"),
        _fk("user_id", "uuid", "auth.users"),
        _col("title", "text", nullable=False),
        _col("target_amount", "numeric", nullable=False),
        _col("current_amount", "numeric", default=0),
        _col("deadline", "date"),
        _col("description", "text"),
        _col("category", "text", default="General"),
        _col("icon_name", "text", default="Target"),
        _col("color", "text", default="green"),
        _col("display_order", "integer", default=0),
        _col("is_active", "boolean", default=True),
        *_timestamps(),
    ],
    "user_upcoming_bills": [
        _pk("id", "uuid", default="gen_random_uuid()"),
        _fk("user_id", "uuid", "auth.users"),
        _col("name", "text", nullable=False),
        _col("amount", "numeric", nullable=False),
        _col("due_date", "date", nullable=False),
        _col("category", "text", nullable=False),
        _col("is_paid", "boolean", default=False),
        _col("display_order", "integer", default=0),
        _col("is_active", "boolean", default=True),
        *_timestamps(),
    ],
    "user_statistics_cards": [
        _pk("id", "uuid", default="gen_random_uuid()"),
        _fk("user_id", "uuid", "auth.users"),
        _col("title", "text", nullable=False),
        _col("value", "text", nullable=False),
        _col("change_value", "numeric", default=0),
        _col("change_type", "text", default="neutral"),
        _col("icon_name", "text", nullable=False),
        _col("color", "text", default="blue"),
        _col("display_order", "integer", default=0),
        _col("is_active", "boolean", default=True),
        *_timestamps(),
    ],
}


def get_table_columns(table_name: str) -> List[TableColumn]:
    """
    Catalog columns for a table.

    Raises:
        PreconditionError: If the table is not in the catalog
    """
    try:
        return KNOWN_TABLES[table_name]
    except KeyError:
        raise PreconditionError(unknown_table(table_name))


def get_text_columns(table_name: str) -> List[str]:
    return [c.name for c in get_table_columns(table_name) if c.type in TEXT_TYPES]


def _count_rows(supabase_client: Client, table_name: str) -> int:
    result = (
        supabase_client.table(table_name)
        .select("*", count=CountMethod.exact, head=True)
        .execute()
    )
    return result.count or 0


def _column_from_row(row: Dict[str, Any]) -> TableColumn:
    return TableColumn(
        name=row["name"],
        type=row.get("type", "text"),
        nullable=bool(row.get("nullable", True)),
        default_value=row.get("default_value"),
        is_primary_key=bool(row.get("is_primary_key", False)),
        is_foreign_key=bool(row.get("is_foreign_key", False)),
        foreign_table=row.get("foreign_table"),
        foreign_column=row.get("foreign_column"),
    )


def _introspect_tables(supabase_client: Client) -> Optional[Dict[str, List[TableColumn]]]:
    """Ask the get_table_info RPC for the schema; None if unavailable."""
    try:
        result = supabase_client.rpc("get_table_info", {}).execute()
    except Exception as e:
        logger.debug(f"get_table_info unavailable, using static catalog: {e}")
        return None

    if not result.data:
        return None

    try:
        return {
            table["name"]: [_column_from_row(column) for column in table.get("columns") or []]
            for table in cast(List[Dict[str, Any]], result.data)
        }
    except (KeyError, TypeError) as e:
        logger.warning(f"Unexpected get_table_info payload, using static catalog: {e}")
        return None


async def list_tables(supabase_client: Client) -> List[TableInfo]:
    """
    Return every table with a best-effort row count.

    The schema comes from the get_table_info RPC when the backend provides
    it, otherwise from KNOWN_TABLES. Introspected tables outside KNOWN_TABLES
    are left out. A failing count for one table is logged and reported
    as 0; it never fails the listing.
    """
    introspected = _introspect_tables(supabase_client) or {}
    uncatalogued = sorted(set(introspected) - set(KNOWN_TABLES))
    if uncatalogued:
        logger.info(f"Skipping tables outside the catalog: {', '.join(uncatalogued)}")

    catalog = {
        name: columns for name, columns in introspected.items() if name in KNOWN_TABLES
    } or KNOWN_TABLES
    tables: List[TableInfo] = []

    for name, columns in catalog.items():
        try:
            row_count = _count_rows(supabase_client, name)
        except Exception as e:
            logger.error(f"Error getting count for table {name}: {e}")
            row_count = 0
        tables.append(TableInfo(name=name, columns=list(columns), row_count=row_count))

    logger.debug(f"Listed {len(tables)} tables")

    return tables


def build_search_filter(columns: List[str], search_term: str) -> str:
    """
    PostgREST or-filter matching search_term in any of the columns.

    The pattern is double-quoted so commas and parentheses in the term do
    not break the filter syntax.
    """
    escaped = search_term.replace("\\", "\\\\").replace('"', '\\"')
    return ",".join(f'{column}.ilike."%{escaped}%"' for column in columns)


async def get_table_data(
    supabase_client: Client,
    table_name: str,
    page: int = 1,
    page_size: int = 50,
    search_term: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: str = "asc",
) -> TableData:
    """
    Fetch one page of any catalogued table.

    Search ORs a case-insensitive substring match across every text column.
    Sorting and pagination apply after the search.

    Returns:
        TableData with has_more = total_count > page * page_size

    Raises:
        PreconditionError: Unknown table, unknown sort column or bad paging
    """
    columns = get_table_columns(table_name)
    if page < 1 or page_size < 1:
        raise PreconditionError("page and page_size must be positive")
    if sort_order not in ("asc", "desc"):
        raise PreconditionError(f"Invalid sort_order: {sort_order}")
    if sort_by and sort_by not in {c.name for c in columns}:
        raise PreconditionError(f"Unknown column '{sort_by}' for table '{table_name}'")

    query = supabase_client.table(table_name).select("*", count=CountMethod.exact)

    if search_term:
        text_columns = get_text_columns(table_name)
        if text_columns:
            query = query.or_(build_search_filter(text_columns, search_term))

    if sort_by:
        query = query.order(sort_by, desc=sort_order == "desc")

    start = (page - 1) * page_size
    query = query.range(start, start + page_size - 1)

    try:
        result = query.execute()
    except Exception as e:
        logger.error(f"Error fetching data from table {table_name}: {e}")
        raise

    total_count = result.count or 0

    return TableData(
        rows=cast(List[Dict[str, Any]], result.data or []),
        total_count=total_count,
        has_more=total_count > page * page_size,
    )


async def insert_row(
    supabase_client: Client,
    table_name: str,
    data: Dict[str, Any]
) -> Dict[str, Any]:
    get_table_columns(table_name)

    try:
        result = supabase_client.table(table_name).insert(data).execute()
    except Exception as e:
        logger.error(f"Error inserting row into table {table_name}: {e}")
        raise

    if not result.data:
        raise Exception(f"Insert into {table_name} returned no data")

    return cast(Dict[str, Any], result.data[0])


async def update_row(
    supabase_client: Client,
    table_name: str,
    row_id: Any,
    data: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Update the row whose id equals row_id.

    Raises:
        NotFoundError: If no row matched
    """
    get_table_columns(table_name)

    try:
        result = (
            supabase_client.table(table_name)
            .update(data)
            .eq("id", row_id)
            .execute()
        )
    except Exception as e:
        logger.error(f"Error updating row in table {table_name}: {e}")
        raise

    if not result.data:
        raise NotFoundError(f"Row {row_id} not found in {table_name}")

    return cast(Dict[str, Any], result.data[0])


async def delete_row(supabase_client: Client, table_name: str, row_id: Any) -> None:
    get_table_columns(table_name)

    try:
        supabase_client.table(table_name).delete().eq("id", row_id).execute()
    except Exception as e:
        logger.error(f"Error deleting row from table {table_name}: {e}")
        raise


async def get_foreign_key_options(
    supabase_client: Client,
    table_name: str,
    column_name: str
) -> List[Dict[str, Any]]:
    """
    Candidate values for a foreign-key dropdown.

    Returns profiles for user_id, accounts for account_id, [] otherwise or
    on error.
    """
    try:
        if column_name == "user_id":
            result = (
                supabase_client.table("profiles")
                .select("id, email, first_name, last_name")
                .limit(100)
                .execute()
            )
            return cast(List[Dict[str, Any]], result.data or [])

        if column_name == "account_id":
            result = (
                supabase_client.table("accounts")
                .select("id, account_number, account_type")
                .limit(100)
                .execute()
            )
            return cast(List[Dict[str, Any]], result.data or [])
    except Exception as e:
        logger.error(f"Error fetching foreign key options for {table_name}.{column_name}: {e}")

    return []


async def execute_query(supabase_client: Client, query: str, admin_user_id: str) -> Any:
    """
    Run raw SQL through the execute_sql RPC.

    PRIVILEGED: only reachable from the admin SQL route. Access control is
    whatever the backend enforces on the procedure. Every call is logged at
    warning level as an audit record (caller id and query length only).
    """
    if not query or not query.strip():
        raise PreconditionError("Query must not be empty")

    logger.warning(f"AUDIT execute_sql invoked by admin {admin_user_id} (length={len(query)})")

    try:
        result = supabase_client.rpc("execute_sql", {"query": query}).execute()
    except Exception as e:
        logger.error(f"Error executing query for admin {admin_user_id}: {e}")
        raise

    return result.data


async def verify_catalog(supabase_client: Client) -> Dict[str, str]:
    """
    Compare catalog column names with one live row per table.

    Tables with no rows cannot be probed and are skipped.

    Returns:
        Empty dict when everything matches

    Raises:
        CatalogDriftError: Listing every table whose columns differ or whose
                           probe failed
    """
    mismatches: Dict[str, str] = {}

    for name, columns in KNOWN_TABLES.items():
        try:
            result = supabase_client.table(name).select("*").limit(1).execute()
        except Exception as e:
            mismatches[name] = f"probe failed ({e})"
            continue

        if not result.data:
            logger.debug(f"Catalog check skipped empty table {name}")
            continue

        live = set(cast(Dict[str, Any], result.data[0]).keys())
        expected = {column.name for column in columns}

        problems = []
        missing = sorted(expected - live)
        unexpected = sorted(live - expected)
        if missing:
            problems.append(f"missing columns {missing}")
        if unexpected:
            problems.append(f"unexpected columns {unexpected}")
        if problems:
            mismatches[name] = ", ".join(problems)

    if mismatches:
        raise CatalogDriftError(mismatches)

    logger.info(f"Table catalog matches live schema ({len(KNOWN_TABLES)} tables)")

    return mismatches