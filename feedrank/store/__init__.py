"""Post store port and SQLite adapter.

The ranking engine reads qualifying posts through the PostStore protocol
and writes precomputed ranking scores back through it.
"""

from feedrank.store.base import PostStore
from feedrank.store.errors import (
    PostNotFoundError,
    PostStoreError,
    StoreUnavailableError,
)
from feedrank.store.models import Post, PostOrder, PostQuery, PostStatus, PostType
from feedrank.store.store import SqlitePostStore


__all__ = [
    # Errors
    "PostNotFoundError",
    "PostStoreError",
    "StoreUnavailableError",
    # Models
    "Post",
    "PostOrder",
    "PostQuery",
    "PostStatus",
    "PostType",
    # Store
    "PostStore",
    "SqlitePostStore",
]
