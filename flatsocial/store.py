"""Flat-file social store.

``SocialStore`` owns the data directory, the counter ledger and a single
write lock. It is constructed once by the caller and passed to whatever needs
it; there is no module-level instance.

Concurrency:
    Every mutating operation (``create_user``, ``add_post``, ``follow``,
    ``like``, ``comment``, ``set_avatar``) holds the store-wide lock for its
    whole duration. Reads take no lock and may run alongside a writer.

Example:
    >>> store = SocialStore(Path("data"))
    >>> store.initialize()
    >>> alice = store.create_user("alice", "secret")
    >>> bob = store.create_user("bob", "hunter2")
    >>> store.follow(alice, bob)
    True
    >>> store.add_post(bob, "hello")
    1
    >>> [view.content for view in store.fetch_timeline_for_user(alice)]
    ['hello']
"""

import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from flatsocial import codec
from flatsocial.aggregation import Aggregator
from flatsocial.config import (
    AVATARS_DIR_NAME,
    EXPORT_DIR_NAME,
    POST_IMAGES_DIR_NAME,
    settings,
)
from flatsocial.io import (
    ConflictError,
    InvalidValueError,
    MediaKind,
    MediaLibrary,
    NotFoundError,
    StorageError,
    StoreError,
    export_users_csv,
)
from flatsocial.ledger import CounterLedger, IdSpace
from flatsocial.metrics import track_operation
from flatsocial.models import Comment, Follow, Like, Post, PostView, User
from flatsocial.repository import RepositoryFactory
from flatsocial.timeline import TimelineAssembler
from flatsocial.types import StoreStatistics
from flatsocial.utils import current_millis, now_created_at

EXPORT_FILE_NAME = "users_export.csv"


class SocialStore:
    """Persistence and query layer for users, posts, follows, likes and comments.

    Args:
        data_dir: Directory holding the flat files (defaults to settings.data_dir)

    Example:
        >>> store = SocialStore()
        >>> store.initialize()
        >>> store.create_user("alice", "secret")
        1
        >>> store.all_usernames()
        ['alice']
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = data_dir or settings.data_dir

        factory = RepositoryFactory(self.data_dir)
        self.users = factory.users()
        self.posts = factory.for_entity(Post)
        self.follows = factory.follows()
        self.likes = factory.for_entity(Like)
        self.comments = factory.for_entity(Comment)

        self.ledger = CounterLedger(self.data_dir / CounterLedger.FILE_NAME)
        self.media = MediaLibrary(
            self.data_dir / AVATARS_DIR_NAME,
            self.data_dir / POST_IMAGES_DIR_NAME,
        )
        self.aggregator = Aggregator(self.users, self.likes, self.comments)
        self.timeline = TimelineAssembler(self.posts, self.follows, self.aggregator)

        self._lock = threading.Lock()
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Create missing files and directories, then load the ledger.

        Raises:
            StorageError: If anything cannot be created or read; the store
                must not be used in that case
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(f"❌ Cannot create data directory {self.data_dir}: {exc}")
            raise StorageError(f"Cannot create data directory {self.data_dir}: {exc}") from exc

        self.media.ensure()
        for repo in (self.users, self.posts, self.follows, self.likes, self.comments):
            repo.file.ensure()

        try:
            self.ledger.path.touch(exist_ok=True)
            self.ledger.load()
        except OSError as exc:
            logger.error(f"❌ Cannot load ledger {self.ledger.path}: {exc}")
            raise StorageError(f"Cannot load ledger {self.ledger.path}: {exc}") from exc

        self._initialized = True
        logger.info(f"✅ Store initialized at {self.data_dir}")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Store not initialized")

    @staticmethod
    def _check_boundary(**values: str) -> None:
        """Reject values that would merge with the column written after them."""
        for name, value in values.items():
            if codec.merges_with_next(value):
                raise InvalidValueError(f"{name} must not end with ',' or '{codec.SENTINEL}'")

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, username: str, password: str) -> int:
        """Register a user.

        Usernames are compared in their stored (escaped) form, so two names
        that would be written identically conflict.

        Args:
            username: Unique, case-sensitive handle
            password: Plain-text password

        Returns:
            The new user id

        Raises:
            ConflictError: If the username is already registered
            InvalidValueError: If the username or password ends with a comma
            StorageError: If the users file cannot be written
        """
        with track_operation("create_user"), self._lock:
            self._require_initialized()
            self._check_boundary(username=username, password=password)

            if self.users.get_by_username(codec.escape(username)) is not None:
                logger.warning(f"⚠️ Registration rejected, username taken: {username}")
                raise ConflictError(f"Username already exists: {username}")

            user_id = self.ledger.allocate(IdSpace.USERS)
            self.users.add(User(id=user_id, username=username, password=password))

        logger.info(f"✅ Created user @{username} (id={user_id})")
        return user_id

    def get_user_id(self, username: str) -> int:
        """Id of the first user line with ``username``.

        Raises:
            NotFoundError: If no user has that name
        """
        with track_operation("get_user_id"):
            self._require_initialized()
            user = self.users.get_by_username(codec.escape(username))
            if user is None:
                raise NotFoundError(f"Unknown user: {username}")
            return user.id

    def validate_login(self, username: str, password: str) -> bool:
        """True if some user line carries both ``username`` and ``password``."""
        with track_operation("validate_login"):
            self._require_initialized()
            ok = self.users.authenticate(codec.escape(username), codec.escape(password))

        if not ok:
            logger.info(f"Login failed for @{username}")
        return ok

    def set_avatar(self, user_id: int, filename: str) -> None:
        """Replace ``user_id``'s avatar filename.

        The users file is rewritten to a temporary file and atomically moved
        over the original.

        Raises:
            NotFoundError: If ``user_id`` is unknown (the file is not touched)
            StorageError: If the rewrite fails
        """
        with track_operation("set_avatar"), self._lock:
            self._require_initialized()
            if not self.users.set_avatar(user_id, filename):
                raise NotFoundError(f"Unknown user id: {user_id}")

        logger.info(f"✅ Avatar for user {user_id} set to {filename}")

    def get_avatar_filename(self, user_id: int) -> str | None:
        """Stored avatar filename of ``user_id``, None if unset or unknown."""
        self._require_initialized()
        user = self.users.get_by_id(user_id)
        return user.avatar_filename if user is not None else None

    def all_usernames(self) -> list[str]:
        """Every username in lexicographic order."""
        with track_operation("all_usernames"):
            self._require_initialized()
            return sorted(user.username for user in self.users.scan())

    def search_usernames(self, term: str) -> list[str]:
        """Usernames containing ``term``, ignoring case.

        A blank term returns every username.
        """
        names = self.all_usernames()
        if not term or not term.strip():
            return names
        needle = term.lower()
        return [name for name in names if needle in name.lower()]

    # =========================================================================
    # Posts, follows, likes, comments
    # =========================================================================

    def add_post(self, author_id: int, content: str, image_filename: str | None = None) -> int:
        """Append a post stamped with the current UTC time.

        Args:
            author_id: Posting user
            content: Post text, no length limit
            image_filename: Stored image name from ``attach_post_image``

        Returns:
            The new post id

        Raises:
            InvalidValueError: If the content ends with a comma
            StorageError: If the posts file cannot be written
        """
        with track_operation("add_post"), self._lock:
            self._require_initialized()
            self._check_boundary(content=content)
            post_id = self.ledger.allocate(IdSpace.POSTS)
            self.posts.add(
                Post(
                    id=post_id,
                    author_id=author_id,
                    content=content,
                    created_at=now_created_at(),
                    image_filename=image_filename,
                )
            )

        logger.info(f"✅ User {author_id} added post {post_id}")
        return post_id

    def follow(self, follower_id: int, followee_id: int) -> bool:
        """Append a follow edge.

        Duplicate edges are written as-is. Following oneself is a no-op.

        Returns:
            True if an edge was written
        """
        with track_operation("follow"), self._lock:
            self._require_initialized()
            if follower_id == followee_id:
                logger.debug(f"User {follower_id} tried to follow themself; ignored")
                return False
            self.follows.add(Follow(follower_id=follower_id, followee_id=followee_id))

        logger.info(f"✅ User {follower_id} now follows {followee_id}")
        return True

    def like(self, post_id: int, user_id: int) -> None:
        """Append a like; repeated likes are all counted."""
        with track_operation("like"), self._lock:
            self._require_initialized()
            self.likes.add(Like(post_id=post_id, user_id=user_id))

        logger.info(f"✅ User {user_id} liked post {post_id}")

    def comment(self, post_id: int, user_id: int, text: str) -> int:
        """Append a comment whose id is the current epoch time in milliseconds.

        Two comments written within the same millisecond share an id.

        Returns:
            The comment id
        """
        with track_operation("comment"), self._lock:
            self._require_initialized()
            comment_id = current_millis()
            self.comments.add(Comment(id=comment_id, post_id=post_id, user_id=user_id, text=text))

        logger.info(f"✅ User {user_id} commented on post {post_id}")
        return comment_id

    # =========================================================================
    # Aggregates and timelines
    # =========================================================================

    def count_likes(self, post_id: int) -> int:
        self._require_initialized()
        return self.aggregator.count_likes(post_id)

    def count_comments(self, post_id: int) -> int:
        self._require_initialized()
        return self.aggregator.count_comments(post_id)

    def lookup_username(self, user_id: int) -> str:
        self._require_initialized()
        return self.aggregator.lookup_username(user_id)

    def fetch_timeline_for_user(self, user_id: int) -> list[PostView]:
        """Posts by ``user_id`` and everyone they follow, newest first."""
        with track_operation("fetch_timeline"):
            self._require_initialized()
            return self.timeline.fetch_timeline_for_user(user_id)

    def fetch_all_posts(self) -> list[PostView]:
        """Every post in file order."""
        with track_operation("fetch_all_posts"):
            self._require_initialized()
            return self.timeline.fetch_all_posts()

    def fetch_posts_by_user(self, user_id: int) -> list[PostView]:
        """One author's posts in file order."""
        with track_operation("fetch_posts_by_user"):
            self._require_initialized()
            return self.timeline.fetch_posts_by_user(user_id)

    # =========================================================================
    # Media, export, statistics
    # =========================================================================

    def attach_post_image(self, source: Path) -> str:
        """Copy an image for a post and return the name to pass to ``add_post``."""
        self._require_initialized()
        return self.media.import_file(source, MediaKind.POST_IMAGE)

    def import_avatar(self, user_id: int, source: Path) -> str:
        """Copy an avatar image and assign it to ``user_id``.

        Raises:
            NotFoundError: If ``user_id`` is unknown (nothing is copied)
            StorageError: If the copy or the users file rewrite fails; a
                copied image is removed again
        """
        self._require_initialized()
        if self.users.get_by_id(user_id) is None:
            raise NotFoundError(f"Unknown user id: {user_id}")

        filename = self.media.import_file(source, MediaKind.AVATAR)
        try:
            self.set_avatar(user_id, filename)
        except StoreError:
            self.media.path_for(MediaKind.AVATAR, filename).unlink(missing_ok=True)
            logger.warning(f"⚠️ Removed orphaned avatar {filename}")
            raise
        return filename

    def export_users(self, output_path: Path | None = None) -> Path:
        """Write an ``id,username,avatar`` snapshot of the users file.

        Args:
            output_path: Destination (defaults to ``data_dir/export/users_export.csv``)

        Returns:
            Path of the written CSV
        """
        with track_operation("export_users"):
            self._require_initialized()
            path = output_path or self.data_dir / EXPORT_DIR_NAME / EXPORT_FILE_NAME
            export_users_csv(self.users.scan(), path)
            return path

    def get_statistics(self) -> StoreStatistics:
        """Record counts per file and the ledger's next ids."""
        with track_operation("get_statistics"):
            self._require_initialized()
            return {
                "users": self.users.count(),
                "posts": self.posts.count(),
                "follows": self.follows.count(),
                "likes": self.likes.count(),
                "comments": self.comments.count(),
                "next_user_id": self.ledger.peek(IdSpace.USERS),
                "next_post_id": self.ledger.peek(IdSpace.POSTS),
            }
