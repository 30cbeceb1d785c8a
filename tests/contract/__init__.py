"""Contract tests.

Purpose
- State the behavior every adapter of a port shares (document stores, seed
  caches, id generators) and run it against each implementation.

Guidelines
- Implementations come from a parametrized fixture in each package's conftest.
- Assert only what callers of the port can observe.
"""
