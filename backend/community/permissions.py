"""
Row-level access policies.

Each model gets one RowPolicy describing who may read a row and who may
write it. The service layer calls authorize() before mutating anything,
list endpoints filter through visible(), and RowLevelPolicy applies the
same table to DRF object permissions.

    Resource      Read                      Write
    ------------  ------------------------  ------------------------
    Profile       own                       own
    Pet           any member                owner
    Post          any member                author
    Comment       any member                author
    PostLike      any member                liker
    Group         public, or own            creator
    GroupMember   any member                the member
    Event         own                       owner
    Notification  own                       recipient
"""
from django.db.models import Q
from rest_framework import permissions

from .exceptions import AccessDenied
from .models import (
    Comment, Event, Group, GroupMember, Notification, Pet, Post, PostLike, Profile
)

READ = 'read'
WRITE = 'write'


class RowPolicy:
    """
    owner_field: FK to the user who owns the row.
    public_read: everyone authenticated may read every row.
    read_filter: extra Q() that makes a non-owned row readable.
    """

    def __init__(self, owner_field, public_read=False, read_filter=None):
        self.owner_field = owner_field
        self.public_read = public_read
        self.read_filter = read_filter

    def owner_id(self, obj):
        return getattr(obj, f'{self.owner_field}_id')

    def can_read(self, user, obj) -> bool:
        if self.public_read or self.owner_id(obj) == user.id:
            return True
        if self.read_filter is not None:
            return type(obj).objects.filter(self.read_filter, pk=obj.pk).exists()
        return False

    def can_write(self, user, obj) -> bool:
        return self.owner_id(obj) == user.id

    def filter(self, user, queryset):
        if self.public_read:
            return queryset
        condition = Q(**{self.owner_field: user})
        if self.read_filter is not None:
            condition |= self.read_filter
        return queryset.filter(condition)


POLICIES = {
    Profile: RowPolicy('user'),
    Pet: RowPolicy('owner', public_read=True),
    Post: RowPolicy('author', public_read=True),
    Comment: RowPolicy('author', public_read=True),
    PostLike: RowPolicy('user', public_read=True),
    Group: RowPolicy('created_by', read_filter=Q(is_public=True)),
    GroupMember: RowPolicy('user', public_read=True),
    Event: RowPolicy('owner'),
    Notification: RowPolicy('recipient'),
}


def _policy(model):
    try:
        return POLICIES[model]
    except KeyError:
        raise LookupError(f"No access policy registered for {model.__name__}")


def _is_member(user) -> bool:
    return user is not None and user.is_authenticated


def can_read(user, obj) -> bool:
    return _is_member(user) and _policy(type(obj)).can_read(user, obj)


def can_write(user, obj) -> bool:
    return _is_member(user) and _policy(type(obj)).can_write(user, obj)


def authorize(user, action, obj):
    """Raise AccessDenied unless `user` may perform `action` (READ/WRITE) on `obj`."""
    allowed = can_read(user, obj) if action == READ else can_write(user, obj)
    if not allowed:
        raise AccessDenied(
            f"Not allowed to {action} this {type(obj).__name__.lower()}."
        )


def visible(user, model_or_queryset):
    """Rows of a model (or queryset) that `user` may read."""
    if hasattr(model_or_queryset, 'model'):
        queryset = model_or_queryset
    else:
        queryset = model_or_queryset.objects.all()
    if not _is_member(user):
        return queryset.none()
    return _policy(queryset.model).filter(user, queryset)


class RowLevelPolicy(permissions.BasePermission):
    """Apply the policy table to DRF object permissions."""
    message = 'You do not have permission to access this record.'

    def has_permission(self, request, view):
        return _is_member(request.user)

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return can_read(request.user, obj)
        return can_write(request.user, obj)
