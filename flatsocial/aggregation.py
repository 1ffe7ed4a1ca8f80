"""Derived per-post counts and username resolution.

All lookups are full scans recomputed on every call.
"""

from flatsocial.models import Comment, Like
from flatsocial.repository import Repository, UserRepository

UNKNOWN_USERNAME = "?"


class Aggregator:
    """Read-only queries spanning the users, likes and comments files."""

    def __init__(
        self,
        users: UserRepository,
        likes: Repository[Like],
        comments: Repository[Comment],
    ):
        self.users = users
        self.likes = likes
        self.comments = comments

    def count_likes(self, post_id: int) -> int:
        return self.likes.count_by(post_id=post_id)

    def count_comments(self, post_id: int) -> int:
        return self.comments.count_by(post_id=post_id)

    def lookup_username(self, user_id: int) -> str:
        """Username for ``user_id``, or ``"?"`` for a dangling reference."""
        user = self.users.get_by_id(user_id)
        return user.username if user is not None else UNKNOWN_USERNAME
