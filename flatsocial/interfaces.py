"""Protocol interfaces for the store.

``IDataStore`` lists the operations a front end may call. It is
``@runtime_checkable``, so conformance is structural.

Example:
    >>> from flatsocial.interfaces import IDataStore
    >>> from flatsocial.store import SocialStore
    >>> isinstance(SocialStore(Path("data")), IDataStore)
    True
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from flatsocial.models import PostView


@runtime_checkable
class IDataStore(Protocol):
    """Operation contract of the social store.

    Mutating operations are serialised by the implementation; reads are not
    synchronised with writers.
    """

    def initialize(self) -> None:
        """Create missing files and directories and load the ledger.

        Raises:
            StorageError: If storage cannot be prepared (fatal)
        """
        ...

    def create_user(self, username: str, password: str) -> int:
        """Register a user and return the new id.

        Raises:
            ConflictError: If the username is taken
        """
        ...

    def get_user_id(self, username: str) -> int:
        """Id of ``username``.

        Raises:
            NotFoundError: If no such user exists
        """
        ...

    def validate_login(self, username: str, password: str) -> bool:
        """Check a username/password pair."""
        ...

    def add_post(self, author_id: int, content: str, image_filename: str | None = None) -> int:
        """Append a post stamped with the current time and return its id."""
        ...

    def follow(self, follower_id: int, followee_id: int) -> bool:
        """Append a follow edge; False (no-op) when following oneself."""
        ...

    def like(self, post_id: int, user_id: int) -> None:
        """Append a like."""
        ...

    def comment(self, post_id: int, user_id: int, text: str) -> int:
        """Append a comment and return its timestamp-derived id."""
        ...

    def set_avatar(self, user_id: int, filename: str) -> None:
        """Replace a user's avatar filename atomically.

        Raises:
            NotFoundError: If the user id is unknown
        """
        ...

    def get_avatar_filename(self, user_id: int) -> str | None:
        """Stored avatar filename, if any."""
        ...

    def all_usernames(self) -> list[str]:
        """Every username, sorted."""
        ...

    def search_usernames(self, term: str) -> list[str]:
        """Usernames containing ``term`` (case-insensitive), sorted."""
        ...

    def count_likes(self, post_id: int) -> int:
        ...

    def count_comments(self, post_id: int) -> int:
        ...

    def lookup_username(self, user_id: int) -> str:
        ...

    def fetch_timeline_for_user(self, user_id: int) -> list[PostView]:
        """Followee-set posts, newest first."""
        ...

    def fetch_all_posts(self) -> list[PostView]:
        """Every post in file order."""
        ...

    def fetch_posts_by_user(self, user_id: int) -> list[PostView]:
        """One author's posts in file order."""
        ...

    def export_users(self, output_path: Path | None = None) -> Path:
        """Write an ``id,username,avatar`` CSV and return its path."""
        ...
