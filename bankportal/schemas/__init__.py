"""
Pydantic schemas for API request and response validation.

All FastAPI endpoints use Pydantic models with explicit types. Only the
generic table editor carries free-form row dicts.
"""
