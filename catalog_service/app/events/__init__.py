"""
Events module for the Catalog Service.

Producers:
    - CatalogEventProducer: publishes category tree changes
      (category.created, category.updated, category.deleted,
      category.tree_rebuilt)
"""

from .event_producers import CatalogEventProducer

__all__ = ["CatalogEventProducer"]
