"""Table operation classes, one per table."""

from .meta_sql import MetaOperations

__all__ = ["MetaOperations"]
