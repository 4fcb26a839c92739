"""Aggregate model imports for Alembic auto-detection."""

from reportstudio.models.report import Report  # noqa: F401
