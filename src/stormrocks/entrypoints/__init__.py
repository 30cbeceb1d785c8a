"""Entrypoints (inbound adapters) for StormRocks.

Expose the application to the outside world. Today that is the command-line
interface: parse and validate inputs, call the composition root, and present
results.

Dependency rule: may import `stormrocks.bootstrap` and `stormrocks.service_layer`;
avoid importing `stormrocks.adapters` directly.
"""
