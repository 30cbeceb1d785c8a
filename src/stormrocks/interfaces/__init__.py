"""Ports (abstract contracts) implemented by StormRocks adapters."""
