"""Domain layer for StormRocks.

Entities, their field codec, relation declarations, validation and computed
views. Nothing in here performs I/O.
"""
