"""Service layer: registry, collections, join resolution, seeding, transactions."""
