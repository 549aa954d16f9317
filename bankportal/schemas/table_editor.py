"""
Pydantic schemas for the admin table editor.

Rows are free-form: the editor works on any catalogued table, so row
payloads are plain column -> value dicts.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class TableColumnResponse(BaseModel):
    name: str
    type: str
    nullable: bool
    default_value: Optional[Any] = None
    is_primary_key: bool
    is_foreign_key: bool
    foreign_table: Optional[str] = None
    foreign_column: Optional[str] = None


class TableInfoResponse(BaseModel):
    name: str = Field(..., description="Table name", examples=["accounts"])
    columns: list[TableColumnResponse] = Field(..., description="Column catalog")
    row_count: int = Field(..., description="Row count (0 if it could not be read)")


class TableListResponse(BaseModel):
    tables: list[TableInfoResponse]


class TableDataResponse(BaseModel):
    rows: list[Dict[str, Any]] = Field(..., description="Rows on the requested page")
    total_count: int = Field(..., description="Rows matching the search")
    has_more: bool = Field(..., description="total_count > page * page_size")
    page: int
    page_size: int
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "asc"


class RowWriteRequest(BaseModel):
    data: Dict[str, Any] = Field(..., description="Column values to write")


class RowResponse(BaseModel):
    row: Dict[str, Any]


class ForeignKeyOptionsResponse(BaseModel):
    options: list[Dict[str, Any]] = Field(..., description="Candidate rows for the dropdown")


class SqlRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Raw SQL passed to the execute_sql procedure")


class SqlResponse(BaseModel):
    result: Any = Field(None, description="Whatever the procedure returned")
