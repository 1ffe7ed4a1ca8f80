"""Timeline assembly.

Combines follows, posts and the aggregation layer into ``PostView`` lists.

The home timeline is sorted newest first by the ``created_at`` string. Since
timestamps only have second resolution, posts created within the same second
keep their file order (the sort is stable).
"""

from loguru import logger

from flatsocial.aggregation import Aggregator
from flatsocial.models import Post, PostView
from flatsocial.repository import FollowRepository, Repository


class TimelineAssembler:
    """Builds post views for timelines and profile grids.

    Args:
        posts: Posts repository
        follows: Follow edges repository
        aggregator: Counts and username lookups

    Example:
        >>> assembler = TimelineAssembler(posts, follows, aggregator)
        >>> for view in assembler.fetch_timeline_for_user(1):
        ...     print(view)
    """

    def __init__(
        self,
        posts: Repository[Post],
        follows: FollowRepository,
        aggregator: Aggregator,
    ):
        self.posts = posts
        self.follows = follows
        self.aggregator = aggregator

    def followee_set(self, user_id: int) -> set[int]:
        """Authors visible on ``user_id``'s timeline, always including themself."""
        return {user_id} | self.follows.followees_of(user_id)

    def to_view(self, post: Post) -> PostView:
        """Enrich a post with live counts and its author's username."""
        return PostView(
            post_id=post.id,
            user_id=post.author_id,
            username=self.aggregator.lookup_username(post.author_id),
            content=post.content,
            created_at=post.created_at,
            likes=self.aggregator.count_likes(post.id),
            comments=self.aggregator.count_comments(post.id),
            image_filename=post.image_filename,
        )

    def fetch_timeline_for_user(self, user_id: int) -> list[PostView]:
        """Posts by the followee set, newest first.

        Args:
            user_id: Viewing user

        Returns:
            Post views sorted descending by ``created_at``; ties keep file order
        """
        followees = self.followee_set(user_id)
        views = [self.to_view(post) for post in self.posts.scan() if post.author_id in followees]
        views.sort(key=lambda view: view.created_at, reverse=True)

        logger.debug(
            f"Timeline for user {user_id}: {len(views)} posts from {len(followees)} authors"
        )
        return views

    def fetch_all_posts(self) -> list[PostView]:
        """Every post, enriched, in file order (not time-sorted)."""
        return [self.to_view(post) for post in self.posts.scan()]

    def fetch_posts_by_user(self, user_id: int) -> list[PostView]:
        """One author's posts in file order, as shown on a profile grid."""
        return [view for view in self.fetch_all_posts() if view.user_id == user_id]
