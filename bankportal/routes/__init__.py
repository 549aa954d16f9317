"""
FastAPI routers for all API endpoints.

Each module defines a router for one area (accounts, transactions, admin,
table editor, ...). Handlers authenticate, call one service function and map
the result into a response model. Domain errors are translated by
bankportal.routes.errors.
"""
