"""Concrete adapters implementing the StormRocks interfaces."""
