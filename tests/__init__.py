"""StormRocks test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Behavior every adapter of a port must share (parametrized).
- integration/  : Real SQLite databases, Alembic migrations and the filesystem.
- e2e/          : The ``stormrocks`` CLI driven through Click's CliRunner.
- fixtures/     : Pytest plugins with shared fixtures (no tests here).
- helpers/      : Shared utilities (no tests here).

General guidance
- Keep unit fast and deterministic; prefer the in-memory adapters over mocks.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
- Markers: unit, contract, integration, e2e, property, slow
"""
