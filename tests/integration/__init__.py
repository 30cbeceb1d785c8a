"""Integration tests.

Purpose
- Run adapters and the composition root against a real SQLite file, the
  packaged Alembic migrations and the packaged seed payloads.

Guidelines
- Each test gets its own database file and cache directory.
- Prefer the real adapters; fakes belong in the unit suite.
"""
