"""Bootstrap (composition root) for StormRocks.

Assembles the application at runtime: wires the document store, seed cache,
dump importer and id generator to the entity registry, join resolver, seeder
and transaction queue, reads configuration, and launches background seeding.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `stormrocks.adapters`, `stormrocks.service_layer`,
  `stormrocks.interfaces`, `stormrocks.domain`, and `stormrocks.config`.
- Inner layers must not import `stormrocks.bootstrap`.

Public surface:
- Re-export composition factories from this module; keep wiring helpers internal.
- No business rules live here; this is assembly and lifecycle only.
"""

from .bootstrap import AppContainer, bootstrap, build_container

__all__ = ["AppContainer", "bootstrap", "build_container"]
