"""
Admin table editor endpoints.

A generic data browser over the catalogued tables: list, page with search
and sort, insert/update/delete rows by id, foreign-key dropdown options and a
raw SQL escape hatch. All routes require require_admin.
"""

import logging
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from bankportal.auth.dependencies import AuthenticatedUser, require_admin
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.admin import DeleteResponse
from bankportal.schemas.table_editor import (
    ForeignKeyOptionsResponse,
    RowResponse,
    RowWriteRequest,
    SqlRequest,
    SqlResponse,
    TableColumnResponse,
    TableDataResponse,
    TableInfoResponse,
    TableListResponse,
)
from bankportal.services import table_editor_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/tables", tags=["table-editor"])

AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]


@router.get("", response_model=TableListResponse, summary="List tables")
async def list_tables(admin: AdminUser) -> TableListResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        tables = await table_editor_service.list_tables(supabase_client)
    except Exception as e:
        raise http_error(e, "Failed to list tables")

    return TableListResponse(tables=[
        TableInfoResponse(
            name=table.name,
            columns=[TableColumnResponse(**vars(column)) for column in table.columns],
            row_count=table.row_count,
        )
        for table in tables
    ])


@router.post("/sql", response_model=SqlResponse, summary="Run raw SQL")
async def run_sql(request: SqlRequest, admin: AdminUser) -> SqlResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        result = await table_editor_service.execute_query(supabase_client, request.query, admin.user_id)
    except Exception as e:
        raise http_error(e, "Failed to execute query")

    return SqlResponse(result=result)


@router.get("/{table_name}/rows", response_model=TableDataResponse, summary="Browse table rows")
async def get_rows(
    admin: AdminUser,
    table_name: str = Path(..., description="Catalogued table name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    search: Optional[str] = Query(None, description="Substring matched against text columns"),
    sort_by: Optional[str] = Query(None, description="Column to sort by"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
) -> TableDataResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        data = await table_editor_service.get_table_data(
            supabase_client, table_name, page, page_size, search, sort_by, sort_order
        )
    except Exception as e:
        raise http_error(e, f"Failed to fetch rows from {table_name}")

    return TableDataResponse(
        rows=data.rows,
        total_count=data.total_count,
        has_more=data.has_more,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post(
    "/{table_name}/rows",
    response_model=RowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Insert row",
)
async def insert_row(
    request: RowWriteRequest,
    admin: AdminUser,
    table_name: str = Path(...)
) -> RowResponse:
    logger.info(f"Admin {admin.user_id} inserting into {table_name}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        row = await table_editor_service.insert_row(supabase_client, table_name, request.data)
    except Exception as e:
        raise http_error(e, f"Failed to insert into {table_name}")

    return RowResponse(row=row)


@router.patch("/{table_name}/rows/{row_id}", response_model=RowResponse, summary="Update row")
async def update_row(
    request: RowWriteRequest,
    admin: AdminUser,
    table_name: str = Path(...),
    row_id: str = Path(..., description="Value of the row's id column")
) -> RowResponse:
    logger.info(f"Admin {admin.user_id} updating {table_name} row {row_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        row = await table_editor_service.update_row(supabase_client, table_name, row_id, request.data)
    except Exception as e:
        raise http_error(e, f"Failed to update {table_name}")

    return RowResponse(row=row)


@router.delete("/{table_name}/rows/{row_id}", response_model=DeleteResponse, summary="Delete row")
async def delete_row(
    admin: AdminUser,
    table_name: str = Path(...),
    row_id: str = Path(...)
) -> DeleteResponse:
    logger.info(f"Admin {admin.user_id} deleting {table_name} row {row_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        await table_editor_service.delete_row(supabase_client, table_name, row_id)
    except Exception as e:
        raise http_error(e, f"Failed to delete from {table_name}")

    return DeleteResponse(message=f"Row {row_id} deleted from {table_name}")


@router.get(
    "/{table_name}/foreign-keys/{column_name}",
    response_model=ForeignKeyOptionsResponse,
    summary="Foreign key options",
)
async def foreign_key_options(
    admin: AdminUser,
    table_name: str = Path(...),
    column_name: str = Path(...)
) -> ForeignKeyOptionsResponse:
    supabase_client = get_supabase_client(admin.access_token)

    options = await table_editor_service.get_foreign_key_options(supabase_client, table_name, column_name)

    return ForeignKeyOptionsResponse(options=options)
