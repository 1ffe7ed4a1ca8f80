"""I/O operations for flatsocial.

This module handles:
1. The store's exception taxonomy
2. Flat file primitives (append, scan, atomic rewrite)
3. Media import into the avatar and post image directories
4. CSV export of the users file

Every ``OSError`` raised at this boundary is logged and re-raised as
``StorageError`` so callers only have to handle the store's own exceptions.

Example:
    >>> from flatsocial.io import FlatFile
    >>> users = FlatFile(Path("data/users.csv"))
    >>> users.ensure()
    >>> users.append("1,alice,secret,")
    >>> list(users.lines())
    ['1,alice,secret,']
"""

import os
import shutil
import tempfile
from collections.abc import Callable, Iterable, Iterator
from enum import StrEnum
from pathlib import Path

import pandas as pd  # type: ignore[import-untyped]
from loguru import logger

from flatsocial.models import User
from flatsocial.utils import media_filename

# =============================================================================
# Custom Exceptions
# =============================================================================


class StoreError(Exception):
    """Base class for store failures."""

    metric_status = "error"


class ConflictError(StoreError):
    """A unique value (the username) is already taken."""

    metric_status = "conflict"


class NotFoundError(StoreError):
    """A username or user id is not present."""

    metric_status = "not_found"


class InvalidValueError(StoreError, ValueError):
    """A value cannot be stored without breaking its record boundary."""

    metric_status = "invalid"


class StorageError(StoreError):
    """File creation, read or write failed at the storage boundary."""

    pass


# =============================================================================
# Flat Files
# =============================================================================


class FlatFile:
    """One append-only flat file with one record per line.

    Reads are unsynchronised full scans. Writers are expected to be
    serialised by the owner (the store's write lock).

    Args:
        path: Location of the file
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def name(self) -> str:
        return self.path.name

    def ensure(self) -> None:
        """Create the file (and its directory) if missing.

        Raises:
            StorageError: If the file cannot be created
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)
        except OSError as exc:
            logger.error(f"❌ Cannot create {self.path}: {exc}")
            raise StorageError(f"Cannot create {self.path}: {exc}") from exc

    def lines(self) -> Iterator[str]:
        """Yield every line without its terminator.

        Only ``\\n`` terminates a record; stray ``\\r`` characters stay inside
        the line.

        Raises:
            StorageError: If the file cannot be read
        """
        try:
            with open(self.path, encoding="utf-8", newline="\n") as fh:
                for raw in fh:
                    yield raw.removesuffix("\n")
        except OSError as exc:
            logger.error(f"❌ Failed to read {self.path}: {exc}")
            raise StorageError(f"Failed to read {self.path}: {exc}") from exc

    def append(self, line: str) -> None:
        """Append one line with a single write call.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            with open(self.path, "a", encoding="utf-8", newline="\n") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            logger.error(f"❌ Failed to append to {self.path}: {exc}")
            raise StorageError(f"Failed to append to {self.path}: {exc}") from exc

    def rewrite(self, transform: Callable[[str], str]) -> None:
        """Rewrite every line through ``transform`` and atomically replace the file.

        The new content is written to a temporary file in the same directory
        which then replaces the original with ``os.replace``, so readers see
        either the old or the new file, never a partial one. The temporary
        file is removed if anything fails before the replace.

        Args:
            transform: Maps an existing line (no terminator) to its new value

        Raises:
            StorageError: If reading, writing or replacing fails
        """
        tmp_path: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".tmp"
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as out:
                for line in self.lines():
                    out.write(transform(line) + "\n")
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            logger.error(f"❌ Failed to rewrite {self.path}: {exc}")
            raise StorageError(f"Failed to rewrite {self.path}: {exc}") from exc
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)


# =============================================================================
# Media
# =============================================================================


class MediaKind(StrEnum):
    """Which media directory a file belongs to."""

    AVATAR = "avatar"
    POST_IMAGE = "post_image"


class MediaLibrary:
    """Copies user-supplied images into the store's media directories.

    Files are stored as ``<epochMillis>_<originalName>``; the store records
    only that name.

    Args:
        avatars_dir: Directory for avatar images
        post_images_dir: Directory for images attached to posts
    """

    def __init__(self, avatars_dir: Path, post_images_dir: Path) -> None:
        self.avatars_dir = avatars_dir
        self.post_images_dir = post_images_dir

    def directory_for(self, kind: MediaKind) -> Path:
        return self.avatars_dir if kind == MediaKind.AVATAR else self.post_images_dir

    def ensure(self) -> None:
        """Create both media directories.

        Raises:
            StorageError: If a directory cannot be created
        """
        for directory in (self.avatars_dir, self.post_images_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error(f"❌ Cannot create {directory}: {exc}")
                raise StorageError(f"Cannot create {directory}: {exc}") from exc

    def import_file(self, source: Path, kind: MediaKind) -> str:
        """Copy ``source`` into the media directory for ``kind``.

        Args:
            source: Image file to copy
            kind: Target directory

        Returns:
            Stored filename (not the full path)

        Raises:
            StorageError: If the copy fails
        """
        name = media_filename(source)
        dest = self.directory_for(kind) / name
        try:
            shutil.copy2(source, dest)
        except OSError as exc:
            logger.error(f"❌ Failed to copy {source} to {dest}: {exc}")
            raise StorageError(f"Failed to copy {source}: {exc}") from exc

        logger.debug(f"Copied {source} to {dest}")
        return name

    def path_for(self, kind: MediaKind, filename: str) -> Path:
        """Full path of a stored media file."""
        return self.directory_for(kind) / filename


# =============================================================================
# Export
# =============================================================================

EXPORT_COLUMNS = ["id", "username", "avatar"]


def export_users_csv(users: Iterable[User], output_path: Path) -> int:
    """Write an ``id,username,avatar`` CSV snapshot.

    Args:
        users: Users to export, in file order
        output_path: Destination CSV file (parents are created)

    Returns:
        Number of exported rows

    Raises:
        StorageError: If the CSV cannot be written
    """
    rows = [
        {"id": user.id, "username": user.username, "avatar": user.avatar_filename or ""}
        for user in users
    ]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)
    except OSError as exc:
        logger.error(f"❌ Export to {output_path} failed: {exc}")
        raise StorageError(f"Export to {output_path} failed: {exc}") from exc

    logger.info(f"✅ Exported {len(df)} users to {output_path}")
    return len(df)


__all__ = [
    "StoreError",
    "ConflictError",
    "NotFoundError",
    "InvalidValueError",
    "StorageError",
    "FlatFile",
    "MediaKind",
    "MediaLibrary",
    "export_users_csv",
    "EXPORT_COLUMNS",
]
