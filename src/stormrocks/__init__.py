"""StormRocks

A CRUD backend core: typed entities stored in a document store, a join
resolver that hydrates declared relations between entities, and a seeding
pipeline that bootstraps every collection once per process start.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
