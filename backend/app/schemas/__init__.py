"""Accounting Notes Backend — request/response schemas (Pydantic)."""
