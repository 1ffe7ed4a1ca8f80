"""Generic repository pattern over the flat files.

Each ``Repository[R]`` wraps one ``FlatFile`` and one record model. Every
query is a full linear scan of the file; nothing is cached, so results always
reflect what is on disk.

Example:
    >>> from flatsocial.repository import RepositoryFactory
    >>> from flatsocial.models import Like
    >>>
    >>> factory = RepositoryFactory(Path("data"))
    >>> likes = factory.for_entity(Like)
    >>> likes.add(Like(post_id=1, user_id=2))
    >>> likes.count_by(post_id=1)
    1
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any, Generic, TypeVar

from loguru import logger

from flatsocial import codec
from flatsocial.io import FlatFile
from flatsocial.metrics import record_malformed
from flatsocial.models import Follow, Record, User

# =============================================================================
# Type Variables
# =============================================================================

R = TypeVar("R", bound=Record)


# =============================================================================
# Generic Repository
# =============================================================================


class Repository(Generic[R]):
    """Append-only store of one record type in one flat file.

    Type Parameter:
        R: Record model (User, Post, Follow, Like, Comment)

    Args:
        file: Flat file holding the records
        model: Record class used to decode each line

    Example:
        >>> posts = Repository[Post](FlatFile(Path("data/posts.csv")), Post)
        >>> posts.add(Post(id=1, author_id=1, content="hi", created_at="2024-01-01 00:00:00"))
        >>> [p.content for p in posts.find_by(author_id=1)]
        ['hi']
    """

    def __init__(self, file: FlatFile, model: type[R]):
        self.file = file
        self.model = model

    def _parse(self, line: str) -> R | None:
        if not line.strip():
            return None
        try:
            return self.model.from_fields(codec.decode(line))
        except ValueError as exc:
            logger.debug(f"Skipping malformed line in {self.file.name}: {line!r} ({exc})")
            record_malformed(self.file.name)
            return None

    def scan(self) -> Iterator[R]:
        """Yield every well-formed record in file order.

        Blank and malformed lines are skipped.

        Raises:
            StorageError: If the file cannot be read
        """
        for line in self.file.lines():
            record = self._parse(line)
            if record is not None:
                yield record

    def get_all(self) -> list[R]:
        """All records in file order."""
        return list(self.scan())

    def add(self, record: R) -> R:
        """Append a record as one encoded line.

        Raises:
            StorageError: If the file cannot be written
        """
        self.file.append(codec.encode(record.to_fields()))
        return record

    @staticmethod
    def _matches(record: R, filters: dict[str, Any]) -> bool:
        return all(getattr(record, key) == value for key, value in filters.items())

    def find_by(self, **filters: Any) -> list[R]:
        """Records whose attributes equal every given filter value.

        Example:
            >>> likes.find_by(post_id=3, user_id=7)
        """
        return [record for record in self.scan() if self._matches(record, filters)]

    def first_by(self, **filters: Any) -> R | None:
        """First matching record in file order, or None."""
        for record in self.scan():
            if self._matches(record, filters):
                return record
        return None

    def count_by(self, **filters: Any) -> int:
        """Number of matching records."""
        return sum(1 for record in self.scan() if self._matches(record, filters))

    def count(self) -> int:
        """Number of well-formed records."""
        return sum(1 for _ in self.scan())

    def exists(self, **filters: Any) -> bool:
        """Check whether any record matches."""
        return self.first_by(**filters) is not None


# =============================================================================
# Specialised Repositories
# =============================================================================


class UserRepository(Repository[User]):
    """Users file, including the one in-place mutation (avatar update)."""

    def __init__(self, file: FlatFile):
        super().__init__(file, User)

    def get_by_username(self, username: str) -> User | None:
        return self.first_by(username=username)

    def get_by_id(self, user_id: int) -> User | None:
        return self.first_by(id=user_id)

    def authenticate(self, username: str, password: str) -> bool:
        """True if any line carries both ``username`` and ``password``."""
        return self.exists(username=username, password=password)

    def set_avatar(self, user_id: int, filename: str) -> bool:
        """Rewrite the file with ``filename`` as ``user_id``'s avatar.

        Every matching line is updated; all other lines, malformed ones
        included, are copied unchanged. The file is only replaced when a
        matching user exists.

        Returns:
            True if a user was updated, False if ``user_id`` is unknown

        Raises:
            StorageError: If the rewrite fails
        """
        if not self.exists(id=user_id):
            return False

        def replace_avatar(line: str) -> str:
            user = self._parse(line)
            if user is None or user.id != user_id:
                return line
            updated = user.model_copy(update={"avatar_filename": filename or None})
            return codec.encode(updated.to_fields())

        self.file.rewrite(replace_avatar)
        return True


class FollowRepository(Repository[Follow]):
    """Follow edges."""

    def __init__(self, file: FlatFile):
        super().__init__(file, Follow)

    def followees_of(self, user_id: int) -> set[int]:
        """Ids ``user_id`` follows (without ``user_id`` itself)."""
        return {edge.followee_id for edge in self.scan() if edge.follower_id == user_id}


# =============================================================================
# Repository Factory Helper
# =============================================================================


class RepositoryFactory:
    """Builds repositories on ``data_dir / model.FILE_NAME``.

    Example:
        >>> factory = RepositoryFactory(Path("data"))
        >>> users = factory.users()
        >>> likes = factory.for_entity(Like)
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def file_for(self, model: type[Record]) -> FlatFile:
        return FlatFile(self.data_dir / model.FILE_NAME)

    def for_entity(self, model: type[R]) -> Repository[R]:
        """Generic repository for ``model``."""
        return Repository[R](self.file_for(model), model)

    def users(self) -> UserRepository:
        return UserRepository(self.file_for(User))

    def follows(self) -> FollowRepository:
        return FollowRepository(self.file_for(Follow))


__all__ = [
    "Repository",
    "UserRepository",
    "FollowRepository",
    "RepositoryFactory",
]
