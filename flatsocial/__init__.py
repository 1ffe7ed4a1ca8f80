"""flatsocial - social network prototype persisted in flat delimited files.

This package provides the persistence and query layer of a small social
network: user accounts, posts, follows, likes and comments stored one record
per line in plain files, with timelines and counts rebuilt on every read.

Example:
    >>> from pathlib import Path
    >>> from flatsocial import SocialStore
    >>>
    >>> store = SocialStore(Path("data"))
    >>> store.initialize()
    >>> alice = store.create_user("alice", "secret")
    >>> store.add_post(alice, "first post")
    1
    >>> store.fetch_timeline_for_user(alice)[0].content
    'first post'
"""

from flatsocial.config import settings
from flatsocial.interfaces import IDataStore
from flatsocial.io import ConflictError, NotFoundError, StorageError, StoreError
from flatsocial.ledger import CounterLedger, IdSpace
from flatsocial.models import Comment, Follow, Like, Post, PostView, User
from flatsocial.store import SocialStore

__version__ = "0.1.0"

__all__ = [
    # Main components
    "SocialStore",
    "IDataStore",
    "CounterLedger",
    "IdSpace",
    # Configuration
    "settings",
    # Errors
    "StoreError",
    "ConflictError",
    "NotFoundError",
    "StorageError",
    # Records and views
    "User",
    "Post",
    "Follow",
    "Like",
    "Comment",
    "PostView",
]
