"""Unit tests.

Purpose
- Exercise the entity model, join resolution, seeding and CLI helpers in
  isolation, mostly over `MemoryDocumentStore`.

Guidelines
- No network or database files; seed directories live under ``tmp_path``.
- Fake ports (stores, caches, importers) by subclassing the in-memory adapters.
"""
