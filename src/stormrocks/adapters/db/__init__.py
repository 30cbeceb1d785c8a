"""Relational database plumbing shared by the SQLAlchemy adapters."""
