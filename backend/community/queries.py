"""
Read-side query helpers.

Counts shown in the UI come straight from the denormalized columns, so
listing a feed never runs COUNT(*) over likes or comments.

THE N+1 PROBLEM:
----------------
Rendering a post with 50 comments must not fetch each comment's author
separately. Every helper here uses select_related for the author and pulls
a whole collection in one query.
"""

from datetime import timedelta
from typing import Optional

from django.contrib.auth.models import User
from django.utils import timezone

from .models import Comment, Event, GroupMember, Post, PostLike
from .permissions import visible


def get_feed_posts(user: User):
    """Newest-first posts with author and pet joined. Query: 1"""
    return (
        visible(user, Post)
        .select_related('author', 'author__profile', 'pet')
        .order_by('-created_at')
    )


def get_post_with_author(user: User, post_id) -> Optional[Post]:
    return (
        visible(user, Post)
        .select_related('author', 'author__profile', 'pet')
        .filter(id=post_id)
        .first()
    )


def get_comments_for_post(post_id) -> list[Comment]:
    """All comments for a post, oldest first, authors joined. Query: 1"""
    return list(
        Comment.objects
        .filter(post_id=post_id)
        .select_related('author', 'author__profile')
        .order_by('created_at')
    )


def get_post_with_comments(user: User, post_id) -> Optional[dict]:
    """
    Post plus its comments in two queries.

    comment_count is the live length of the list, which equals
    post.comments_count whenever the counter is consistent.
    """
    post = get_post_with_author(user, post_id)
    if not post:
        return None

    comments = get_comments_for_post(post_id)
    return {
        'post': post,
        'comments': comments,
        'comment_count': len(comments),
    }


def user_has_liked(user_id, post_id) -> bool:
    return PostLike.objects.filter(user_id=user_id, post_id=post_id).exists()


def get_liked_post_ids(user_id, post_ids) -> set:
    """Which of `post_ids` the user has liked. Query: 1 for a whole feed page."""
    return set(
        PostLike.objects
        .filter(user_id=user_id, post_id__in=list(post_ids))
        .values_list('post_id', flat=True)
    )


def get_group_members(group_id):
    return (
        GroupMember.objects
        .filter(group_id=group_id)
        .select_related('user', 'user__profile')
        .order_by('joined_at')
    )


def get_upcoming_events(user: User, days: int = 7):
    now = timezone.now()
    return (
        visible(user, Event)
        .filter(
            is_completed=False,
            event_date__gte=now,
            event_date__lte=now + timedelta(days=days),
        )
        .select_related('pet')
        .order_by('event_date')
    )
