"""Data models for flatsocial.

Models are organized into two sections:
1. Records: one pydantic model per flat file, converting to and from the
   decoded list of string fields
2. Views: read models assembled from several files
"""

from collections.abc import Sequence
from datetime import datetime
from typing import ClassVar, Optional, Self

from pydantic import BaseModel, ConfigDict, field_validator

from flatsocial import codec
from flatsocial.utils import CREATED_AT_FORMAT, parse_created_at

# =============================================================================
# Section 1: Records
# =============================================================================


class Record(BaseModel):
    """Base class for a record stored as one line of a flat file.

    Subclasses declare the file they live in, their column order and how many
    leading columns must be present. Columns after ``MIN_FIELDS`` are optional
    and default to their field default when missing from the line.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    FILE_NAME: ClassVar[str]
    COLUMNS: ClassVar[tuple[str, ...]]
    MIN_FIELDS: ClassVar[int]

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> Self:
        """Build a record from decoded fields.

        Extra trailing fields are ignored.

        Raises:
            ValueError: If too few fields are present, a field absorbed the
                separator after it, or a value fails validation (pydantic's
                ``ValidationError`` is a ``ValueError``)
        """
        if len(fields) < cls.MIN_FIELDS:
            raise ValueError(
                f"{cls.__name__} needs at least {cls.MIN_FIELDS} fields, got {len(fields)}"
            )
        if any(codec.MERGED in field for field in fields):
            raise ValueError(f"{cls.__name__} line has merged fields")
        return cls(**dict(zip(cls.COLUMNS, fields)))

    def to_fields(self) -> list[str]:
        """Column values in file order; ``None`` becomes an empty string."""
        values = []
        for column in self.COLUMNS:
            value = getattr(self, column)
            values.append("" if value is None else str(value))
        return values


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    return v or None


class User(Record):
    """Registered account.

    Attributes:
        id: Ledger-allocated user id
        username: Unique, case-sensitive handle
        password: Stored and compared as plain text
        avatar_filename: Stored avatar image name, if any
    """

    FILE_NAME: ClassVar[str] = "users.csv"
    COLUMNS: ClassVar[tuple[str, ...]] = ("id", "username", "password", "avatar_filename")
    MIN_FIELDS: ClassVar[int] = 3

    id: int
    username: str
    password: str
    avatar_filename: Optional[str] = None

    @field_validator("avatar_filename", mode="before")
    @classmethod
    def _coerce_avatar(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class Post(Record):
    """Text post with an optional image.

    Attributes:
        id: Ledger-allocated post id
        author_id: Posting user's id
        content: Post text, any length
        created_at: ``YYYY-MM-DD HH:MM:SS`` in UTC, compared as a string
        image_filename: Stored image name, if any
    """

    FILE_NAME: ClassVar[str] = "posts.csv"
    COLUMNS: ClassVar[tuple[str, ...]] = (
        "id",
        "author_id",
        "content",
        "created_at",
        "image_filename",
    )
    MIN_FIELDS: ClassVar[int] = 4

    id: int
    author_id: int
    content: str
    created_at: str
    image_filename: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def _check_created_at(cls, v: str) -> str:
        datetime.strptime(v, CREATED_AT_FORMAT)
        return v

    @field_validator("image_filename", mode="before")
    @classmethod
    def _coerce_image(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class Follow(Record):
    """Directed follow edge; duplicates may exist."""

    FILE_NAME: ClassVar[str] = "follows.csv"
    COLUMNS: ClassVar[tuple[str, ...]] = ("follower_id", "followee_id")
    MIN_FIELDS: ClassVar[int] = 2

    follower_id: int
    followee_id: int


class Like(Record):
    """One like of a post by a user; duplicates are counted."""

    FILE_NAME: ClassVar[str] = "likes.csv"
    COLUMNS: ClassVar[tuple[str, ...]] = ("post_id", "user_id")
    MIN_FIELDS: ClassVar[int] = 2

    post_id: int
    user_id: int


class Comment(Record):
    """Comment on a post.

    Attributes:
        id: Creation time in epoch milliseconds
        post_id: Commented post
        user_id: Commenting user
        text: Comment body
    """

    FILE_NAME: ClassVar[str] = "comments.csv"
    COLUMNS: ClassVar[tuple[str, ...]] = ("id", "post_id", "user_id", "text")
    MIN_FIELDS: ClassVar[int] = 3

    id: int
    post_id: int
    user_id: int
    text: str = ""


# =============================================================================
# Section 2: Views
# =============================================================================


class PostView(BaseModel):
    """Post enriched with its author's username and live counts.

    Attributes:
        post_id: Post id
        user_id: Author id
        username: Author username, ``"?"`` if the author is unknown
        content: Post text
        created_at: Stored timestamp string
        likes: Number of like records for the post
        comments: Number of comment records for the post
        image_filename: Stored image name, if any
    """

    model_config = ConfigDict(frozen=True)

    post_id: int
    user_id: int
    username: str
    content: str
    created_at: str
    likes: int = 0
    comments: int = 0
    image_filename: Optional[str] = None

    @property
    def created_datetime(self) -> Optional[datetime]:
        """``created_at`` parsed as an aware UTC datetime."""
        return parse_created_at(self.created_at)

    @property
    def has_image(self) -> bool:
        return bool(self.image_filename)

    def __str__(self) -> str:
        return (
            f"@{self.username} [{self.created_at}] {self.content} "
            f"(♥ {self.likes} | 💬 {self.comments})"
        )
