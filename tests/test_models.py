"""Tests for record and view models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from flatsocial.models import Comment, Follow, Like, Post, PostView, User


class TestUser:
    """Tests for the User record."""

    def test_from_fields_with_avatar(self):
        user = User.from_fields(["1", "alice", "secret", "123_cat.png"])

        assert user.id == 1
        assert user.username == "alice"
        assert user.avatar_filename == "123_cat.png"

    def test_blank_avatar_is_none(self):
        assert User.from_fields(["1", "alice", "secret", ""]).avatar_filename is None

    def test_missing_avatar_column_is_tolerated(self):
        assert User.from_fields(["1", "alice", "secret"]).avatar_filename is None

    def test_too_few_fields(self):
        with pytest.raises(ValueError, match="at least 3"):
            User.from_fields(["1", "alice"])

    def test_merged_fields_rejected(self):
        """A username that swallowed the next separator is not a valid line."""
        with pytest.raises(ValueError, match="merged"):
            User.from_fields(["1", "bob¬,pw", ""])

    def test_non_numeric_id_is_a_value_error(self):
        with pytest.raises(ValueError):
            User.from_fields(["x", "alice", "secret"])

    def test_to_fields_writes_empty_avatar(self):
        assert User(id=2, username="bob", password="pw").to_fields() == ["2", "bob", "pw", ""]

    def test_records_are_frozen(self):
        user = User(id=1, username="alice", password="pw")
        with pytest.raises(ValidationError):
            user.username = "mallory"


class TestPost:
    """Tests for the Post record."""

    def test_from_fields_without_image(self):
        post = Post.from_fields(["3", "1", "hello", "2024-01-01 10:00:00", ""])

        assert post.id == 3
        assert post.author_id == 1
        assert post.image_filename is None

    def test_from_fields_without_image_column(self):
        post = Post.from_fields(["3", "1", "hello", "2024-01-01 10:00:00"])
        assert post.image_filename is None

    @pytest.mark.parametrize("created_at", ["", "2024-01-01", "yesterday", "2024-13-01 00:00:00"])
    def test_created_at_must_match_format(self, created_at):
        with pytest.raises(ValueError):
            Post.from_fields(["3", "1", "hello", created_at])

    def test_merged_content_rejected(self):
        with pytest.raises(ValueError):
            Post.from_fields(["3", "1", "hi¬,2024-01-01 10:00:00", ""])

    def test_to_fields_column_order(self):
        post = Post(id=1, author_id=2, content="hi", created_at="2024-01-01 00:00:00",
                    image_filename="9_x.png")
        assert post.to_fields() == ["1", "2", "hi", "2024-01-01 00:00:00", "9_x.png"]


class TestEdgeRecords:
    """Tests for follows, likes and comments."""

    def test_follow(self):
        edge = Follow.from_fields(["1", "2"])
        assert (edge.follower_id, edge.followee_id) == (1, 2)

    def test_like_extra_fields_ignored(self):
        like = Like.from_fields(["5", "2", "extra"])
        assert (like.post_id, like.user_id) == (5, 2)

    def test_comment_text_defaults_to_empty(self):
        assert Comment.from_fields(["1700000000000", "5", "2"]).text == ""

    def test_comment_fields(self):
        comment = Comment(id=1700000000000, post_id=5, user_id=2, text="nice")
        assert comment.to_fields() == ["1700000000000", "5", "2", "nice"]


class TestPostView:
    """Tests for the enriched post view."""

    @pytest.fixture
    def view(self):
        return PostView(
            post_id=1,
            user_id=2,
            username="bob",
            content="hello",
            created_at="2024-03-04 05:06:07",
            likes=3,
            comments=1,
        )

    def test_created_datetime_is_utc(self, view):
        assert view.created_datetime == datetime(2024, 3, 4, 5, 6, 7, tzinfo=UTC)

    def test_has_image(self, view):
        assert view.has_image is False
        assert view.model_copy(update={"image_filename": "1_a.png"}).has_image is True

    def test_str_shows_author_and_counts(self, view):
        text = str(view)
        assert "@bob" in text
        assert "hello" in text
        assert "♥ 3" in text
