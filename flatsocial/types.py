"""Type definitions for flatsocial.

TypedDict definitions for dictionaries returned by the store.

Example:
    >>> from flatsocial.types import StoreStatistics
    >>> stats: StoreStatistics = store.get_statistics()
    >>> stats["posts"]
    12
"""

from typing import TypedDict


class StoreStatistics(TypedDict):
    """Record counts per flat file plus the ledger's next ids.

    Attributes:
        users: Well-formed lines in users.csv
        posts: Well-formed lines in posts.csv
        follows: Follow edges, duplicates included
        likes: Like records, duplicates included
        comments: Comment records
        next_user_id: Id the next registration will receive
        next_post_id: Id the next post will receive
    """

    users: int
    posts: int
    follows: int
    likes: int
    comments: int
    next_user_id: int
    next_post_id: int


__all__ = ["StoreStatistics"]
