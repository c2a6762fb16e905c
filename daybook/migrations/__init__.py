"""Alembic scripts for the Daybook database."""
