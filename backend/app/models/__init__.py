"""Accounting Notes Backend — ORM models (SQLAlchemy declarative)."""
