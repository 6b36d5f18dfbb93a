"""Relational data model and idempotent bootstrap for a retail point-of-sale store."""

__version__ = "1.0.0"
