"""
Community Services
==================

Every write that creates or removes a counted child row lives here:

    like_post / unlike_post         -> POST_LIKES
    add_comment / delete_comment    -> POST_COMMENTS
    join_group / remove_group_member-> GROUP_MEMBERS

Each one:
1. Resolves the parent (ParentNotFound if missing or not visible)
2. Checks the caller against the access policy (AccessDenied)
3. Hands the child mutation to the counter, which applies it and the
   `count = count +/- 1` update in one transaction
4. Adds the notification for the other party in that same transaction

CONCURRENCY STRATEGY:
---------------------
Problem: Two requests like the same post at the same moment
Naive: Check if exists -> Create if not -> RACE CONDITION!

We insert first and let the unique constraint reject the duplicate.
IntegrityError means "already liked", and because the insert and the
counter increment share a transaction, a rejected insert never counts.

DATABASE FAILURES:
------------------
A failed counter update surfaces as AtomicUpdateFailure after the whole
transaction has rolled back. Nothing here retries.
"""

import logging
from typing import Literal, Optional

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction

from .counters import GROUP_MEMBERS, POST_COMMENTS, POST_LIKES
from .exceptions import (
    AccessDenied, AlreadyMember, ChildNotFound, NotAMember, ParentNotFound
)
from .models import Comment, Group, GroupMember, Notification, Pet, Post, PostLike, Profile
from .notifications import notify, send_welcome
from .permissions import WRITE, authorize, can_read
from .queries import user_has_liked

logger = logging.getLogger(__name__)


class LikeResult:
    """Result of a like operation with type safety."""
    def __init__(
        self,
        success: bool,
        action: Literal['created', 'removed', 'already_exists', 'already_removed'],
        likes_count: Optional[int] = None
    ):
        self.success = success
        self.action = action
        self.likes_count = likes_count


def _display_name(user: User) -> str:
    profile = Profile.objects.filter(user=user).only('full_name').first()
    return profile.full_name if profile else user.username


def _get_post(user: User, post_id) -> Post:
    post = Post.objects.select_related('author').filter(id=post_id).first()
    if post is None or not can_read(user, post):
        raise ParentNotFound(f"Post {post_id} does not exist.")
    return post


def _get_group(user: User, group_id) -> Group:
    group = Group.objects.select_related('created_by').filter(id=group_id).first()
    if group is None or not can_read(user, group):
        raise ParentNotFound(f"Group {group_id} does not exist.")
    return group


def _check_pet(user: User, pet_id) -> Optional[Pet]:
    if pet_id is None:
        return None
    pet = Pet.objects.filter(id=pet_id).first()
    if pet is None:
        raise ParentNotFound(f"Pet {pet_id} does not exist.")
    if pet.owner_id != user.id:
        raise AccessDenied("You can only tag your own pets.")
    return pet


# ============================================================================
# PROFILES
# ============================================================================

def create_profile(user: User, full_name: str, **fields) -> Profile:
    """Create the caller's profile and drop a welcome note in their inbox."""
    full_name = (full_name or '').strip()
    if not full_name:
        raise ValueError("Full name is required.")
    try:
        with transaction.atomic():
            profile = Profile.objects.create(user=user, full_name=full_name, **fields)
            send_welcome(user, full_name)
    except IntegrityError:
        raise ValueError("Profile already exists.")
    return profile


# ============================================================================
# POSTS
# ============================================================================

def create_post(user: User, content: str, pet_id=None, image_url='', video_url='') -> Post:
    content = (content or '').strip()
    if not content:
        raise ValueError("Post content cannot be empty.")
    pet = _check_pet(user, pet_id)
    post = Post.objects.create(
        author=user,
        content=content,
        pet=pet,
        image_url=image_url,
        video_url=video_url,
    )
    logger.info(f"Post {post.id} created by {user.username}")
    return post


def update_post(user: User, post_id, **changes) -> Post:
    """
    Edit a post's own fields.

    Counter fields are not accepted here; they only move with child rows.
    Only the edited columns are written, so a like landing between the
    read and the save is not overwritten.
    """
    post = _get_post(user, post_id)
    authorize(user, WRITE, post)

    update_fields = ['updated_at']
    if 'pet_id' in changes:
        post.pet = _check_pet(user, changes.pop('pet_id'))
        update_fields.append('pet')
    if 'content' in changes:
        content = (changes.pop('content') or '').strip()
        if not content:
            raise ValueError("Post content cannot be empty.")
        post.content = content
        update_fields.append('content')
    for field in ('image_url', 'video_url'):
        if field in changes:
            setattr(post, field, changes.pop(field))
            update_fields.append(field)
    if changes:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(changes))}")

    post.save(update_fields=update_fields)
    return post


def delete_post(user: User, post_id):
    """
    Delete a post. Its likes and comments go with it through the
    foreign-key cascade; there is no count left to maintain.
    """
    post = _get_post(user, post_id)
    authorize(user, WRITE, post)
    post.delete()
    logger.info(f"Post {post_id} deleted by {user.username}")


# ============================================================================
# LIKES
# ============================================================================

def like_post(user: User, post_id) -> LikeResult:
    """
    Like a post atomically.

    OPERATION:
    1. Get post (verify exists)
    2. Insert PostLike + increment likes_count (one transaction)
    3. Notify the author unless they liked their own post
    4. IntegrityError: the like already exists, nothing counted.
       Any other constraint failure (post deleted meanwhile) is not
       reported as a duplicate.
    """
    post = _get_post(user, post_id)

    try:
        with transaction.atomic():
            POST_LIKES.create_child(post=post, user=user)
            if post.author_id != user.id:
                notify(
                    post.author,
                    Notification.Type.LIKE,
                    'New like',
                    f"{_display_name(user)} liked your post.",
                    action_url=f'/posts/{post.id}',
                    related_id=post.id,
                )
    except IntegrityError:
        if user_has_liked(user.id, post.id):
            return LikeResult(success=False, action='already_exists')
        if not Post.objects.filter(id=post.id).exists():
            raise ParentNotFound(f"Post {post_id} does not exist.")
        raise

    return LikeResult(
        success=True,
        action='created',
        likes_count=POST_LIKES.cached_count(post.id)
    )


def unlike_post(user: User, post_id) -> LikeResult:
    post = _get_post(user, post_id)

    like = PostLike.objects.filter(post=post, user=user).first()
    if like is None or not POST_LIKES.delete_child(like):
        return LikeResult(success=False, action='already_removed')

    return LikeResult(
        success=True,
        action='removed',
        likes_count=POST_LIKES.cached_count(post.id)
    )


def toggle_like(user: User, post_id) -> LikeResult:
    """
    Toggle like on a post.

    NOT atomic across check-and-toggle. The worst case of a race is that
    two toggles cancel out; the counter itself stays exact either way.
    """
    if user_has_liked(user.id, post_id):
        return unlike_post(user, post_id)
    return like_post(user, post_id)


# ============================================================================
# COMMENTS
# ============================================================================

def add_comment(user: User, post_id, content: str) -> Comment:
    content = (content or '').strip()
    if not content:
        raise ValueError("Comment cannot be empty.")

    post = _get_post(user, post_id)

    with transaction.atomic():
        comment = POST_COMMENTS.create_child(post=post, author=user, content=content)
        if post.author_id != user.id:
            notify(
                post.author,
                Notification.Type.COMMENT,
                'New comment',
                f"{_display_name(user)} commented on your post.",
                action_url=f'/posts/{post.id}',
                related_id=post.id,
            )
    return comment


def delete_comment(user: User, comment_id):
    comment = Comment.objects.filter(id=comment_id).first()
    if comment is None:
        raise ChildNotFound(f"Comment {comment_id} does not exist.")
    authorize(user, WRITE, comment)
    if not POST_COMMENTS.delete_child(comment):
        raise ChildNotFound(f"Comment {comment_id} does not exist.")


# ============================================================================
# GROUPS
# ============================================================================

def create_group(user: User, name: str, category: str, join_as_admin: bool = True, **fields) -> Group:
    """
    Create a group. members_count starts at 0; enrolling the creator goes
    through the membership counter like any other join.
    """
    name = (name or '').strip()
    if not name:
        raise ValueError("Group name is required.")
    if not (category or '').strip():
        raise ValueError("Group category is required.")

    with transaction.atomic():
        group = Group.objects.create(created_by=user, name=name, category=category, **fields)
        if join_as_admin:
            GROUP_MEMBERS.create_child(group=group, user=user, role=GroupMember.Role.ADMIN)
            group.refresh_from_db(fields=['members_count'])
    logger.info(f"Group {group.id} created by {user.username}")
    return group


def join_group(user: User, group_id) -> GroupMember:
    group = _get_group(user, group_id)

    try:
        with transaction.atomic():
            membership = GROUP_MEMBERS.create_child(group=group, user=user)
            if group.created_by_id != user.id:
                notify(
                    group.created_by,
                    Notification.Type.GROUP,
                    'New member',
                    f"{_display_name(user)} joined {group.name}.",
                    action_url=f'/groups/{group.id}',
                    related_id=group.id,
                )
    except IntegrityError:
        if GroupMember.objects.filter(group=group, user=user).exists():
            raise AlreadyMember(f"{user.username} is already a member of {group.name}.")
        if not Group.objects.filter(id=group.id).exists():
            raise ParentNotFound(f"Group {group_id} does not exist.")
        raise
    return membership


def remove_group_member(actor: User, group_id, user_id):
    """
    Remove a membership.

    The membership lookup happens before anything is written, so removing
    someone who is not in the group raises NotAMember and the count is
    never touched. The member may always leave; the creator may remove
    anyone.

    A private group is reported as missing to anyone who can neither read
    it nor belongs to it.
    """
    group = Group.objects.filter(id=group_id).first()
    if group is None or not (
        can_read(actor, group)
        or GroupMember.objects.filter(group=group, user=actor).exists()
    ):
        raise ParentNotFound(f"Group {group_id} does not exist.")

    membership = GroupMember.objects.filter(group=group, user_id=user_id).first()
    if membership is None:
        raise NotAMember(f"User {user_id} is not a member of {group.name}.")

    if actor.id != group.created_by_id:
        authorize(actor, WRITE, membership)

    if not GROUP_MEMBERS.delete_child(membership):
        raise NotAMember(f"User {user_id} is not a member of {group.name}.")


def leave_group(user: User, group_id):
    remove_group_member(user, group_id, user.id)


def change_member_role(actor: User, group_id, user_id, role: str) -> GroupMember:
    """Creator-only. Updates the row in place; members_count is unaffected."""
    group = _get_group(actor, group_id)
    authorize(actor, WRITE, group)
    if role not in GroupMember.Role.values:
        raise ValueError(f"Invalid role: {role}")

    membership = GroupMember.objects.filter(group=group, user_id=user_id).first()
    if membership is None:
        raise NotAMember(f"User {user_id} is not a member of {group.name}.")
    membership.role = role
    membership.save(update_fields=['role'])
    return membership


def get_group(user: User, group_id) -> Group:
    """The group if `user` may see it, else ParentNotFound."""
    return _get_group(user, group_id)
