"""
Data Models for PawPilot HQ
===========================

Design Philosophy:
------------------
1. Identity comes from Django's auth.User. Everything a member adds on top
   of that (display name, bio, avatar) lives on Profile, keyed by the user.

2. Three parents carry denormalized counters:
   - Post.likes_count     <- PostLike rows
   - Post.comments_count  <- Comment rows
   - Group.members_count  <- GroupMember rows
   The child rows are the source of truth. The counters are a read
   optimisation and are only ever touched by community.counters, which
   applies `count = count + delta` inside the database.

3. Uniqueness that matters for counting is enforced by the database:
   one like per (post, user), one membership per (group, user).
   Even if two requests hit simultaneously, only one row survives.

4. shares_count and messages_count are part of the schema but no child
   table feeds them yet. They are read-only everywhere.

Indexes Strategy:
-----------------
- post.author, post.created_at DESC: profile pages and the feed
- comment.post: fetching all comments for a post
- post_like.post: counting and "did I like this" lookups
- group_member.group / group_member.user: member lists and "my groups"
- event.owner, event.event_date: calendar and reminder scans
- notification.recipient, notification.created_at DESC: inbox
"""

import uuid

from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinLengthValidator, MinValueValidator
from django.utils import timezone


class Profile(models.Model):
    """Public-facing profile of a member, one per auth user."""
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='profile'
    )
    full_name = models.CharField(max_length=200)
    avatar_url = models.URLField(blank=True)
    bio = models.TextField(blank=True)
    location = models.CharField(max_length=200, blank=True)
    joined_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_name or self.user.username


class Pet(models.Model):
    class Gender(models.TextChoices):
        MALE = 'male', 'Male'
        FEMALE = 'female', 'Female'
        UNKNOWN = 'unknown', 'Unknown'

    class HealthStatus(models.TextChoices):
        HEALTHY = 'healthy', 'Healthy'
        CHECKUP_DUE = 'checkup_due', 'Checkup due'
        SICK = 'sick', 'Sick'
        RECOVERING = 'recovering', 'Recovering'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='pets',
        db_index=True
    )
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=50)
    breed = models.CharField(max_length=100, blank=True)
    age_years = models.PositiveSmallIntegerField(null=True, blank=True)
    age_months = models.PositiveSmallIntegerField(null=True, blank=True)
    weight_kg = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )
    color = models.CharField(max_length=50, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    is_neutered = models.BooleanField(default=False)
    microchip_id = models.CharField(max_length=64, blank=True)
    health_status = models.CharField(
        max_length=20,
        choices=HealthStatus.choices,
        default=HealthStatus.HEALTHY
    )
    is_vaccinated = models.BooleanField(default=False)
    last_vet_visit = models.DateField(null=True, blank=True)
    next_vet_visit = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    avatar_url = models.URLField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.type})"


class Post(models.Model):
    """
    A feed post, optionally about one of the author's pets.

    likes_count and comments_count are derived values. Never assign them
    directly; go through community.counters.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='posts',
        db_index=True
    )
    content = models.TextField(validators=[MinLengthValidator(1)])
    image_url = models.URLField(blank=True)
    video_url = models.URLField(blank=True)
    pet = models.ForeignKey(
        Pet,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='posts'
    )
    likes_count = models.PositiveIntegerField(default=0)
    comments_count = models.PositiveIntegerField(default=0)
    shares_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='post_created_at_idx'),
        ]

    def __str__(self):
        return f"{self.content[:50]} by {self.author.username}"


class Comment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='comments',
        db_index=True
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    content = models.TextField(validators=[MinLengthValidator(1)])
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']  # Oldest first under a post

    def __str__(self):
        return f"Comment by {self.author.username} on {self.post_id}"


class PostLike(models.Model):
    """
    One user's like on one post.

    CONCURRENCY STRATEGY:
    - Unique constraint (post, user) enforced at DB level
    - Insert first, let the database reject the duplicate
    - IntegrityError caught and handled gracefully by the service
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='likes',
        db_index=True
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='post_likes'
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['post', 'user'],
                name='unique_like_per_user_per_post'
            )
        ]

    def __str__(self):
        return f"{self.user.username} liked {self.post_id}"


class Group(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100)
    icon_url = models.URLField(blank=True)
    cover_url = models.URLField(blank=True)
    is_public = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='created_groups'
    )
    members_count = models.PositiveIntegerField(default=0)
    messages_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class GroupMember(models.Model):
    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        MODERATOR = 'moderator', 'Moderator'
        MEMBER = 'member', 'Member'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='memberships',
        db_index=True
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='group_memberships',
        db_index=True
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(
                fields=['group', 'user'],
                name='unique_membership_per_user_per_group'
            )
        ]

    def __str__(self):
        return f"{self.user.username} in {self.group_id} ({self.role})"


class Event(models.Model):
    """Calendar entry for a member, usually about one of their pets."""

    class EventType(models.TextChoices):
        VET_APPOINTMENT = 'vet_appointment', 'Vet appointment'
        VACCINATION = 'vaccination', 'Vaccination'
        MEDICATION = 'medication', 'Medication'
        GROOMING = 'grooming', 'Grooming'
        TRAINING = 'training', 'Training'
        OTHER = 'other', 'Other'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='events',
        db_index=True
    )
    pet = models.ForeignKey(
        Pet,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='events'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=20, choices=EventType.choices)
    event_date = models.DateTimeField(db_index=True)
    location = models.CharField(max_length=200, blank=True)
    is_completed = models.BooleanField(default=False)
    reminder_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['event_date']

    def __str__(self):
        return f"{self.title} on {self.event_date:%Y-%m-%d}"


class Notification(models.Model):
    class Type(models.TextChoices):
        VACCINATION = 'vaccination', 'Vaccination'
        LIKE = 'like', 'Like'
        COMMENT = 'comment', 'Comment'
        GROUP = 'group', 'Group'
        HEALTH = 'health', 'Health'
        WELCOME = 'welcome', 'Welcome'
        MEDICATION = 'medication', 'Medication'
        FRIEND = 'friend', 'Friend'
        FEATURE = 'feature', 'Feature'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
        db_index=True
    )
    type = models.CharField(max_length=20, choices=Type.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    action_url = models.CharField(max_length=500, blank=True)
    related_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='notification_created_at_idx'),
        ]

    def __str__(self):
        return f"{self.type} for {self.recipient.username}: {self.title}"
