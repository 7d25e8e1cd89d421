"""
Denormalized Counter Maintenance
================================

Post.likes_count, Post.comments_count and Group.members_count are cached
cardinalities of child collections. This module is the only code allowed to
change them.

ONE OBJECT PER RELATIONSHIP:
----------------------------
Each relationship gets a DenormalizedCounter. Inserting or deleting a child
row goes through counter.create_child() / counter.delete_child(), which run
the child mutation and the counter update in one transaction. Call sites
never write `F(...) + 1` themselves, so none of them can forget to.

WHY F() AND NOT READ-MODIFY-WRITE:
----------------------------------
Naive:  post.likes_count += 1; post.save()
        Two requests read 4, both write 5 -> lost update.

Ours:   UPDATE post SET likes_count = likes_count + 1 WHERE id = %s
        The database serialises the row update, so 100 concurrent likes
        from count 0 always end at 100.

FAILURE SEMANTICS:
------------------
- Parent row missing at update time -> ParentNotFound, child rolled back.
- Database refuses the update        -> AtomicUpdateFailure, child rolled back.
No retries here; retry policy belongs to the caller.
"""

import logging

from django.db import DatabaseError, transaction
from django.db.models import Count, F, IntegerField, OuterRef, Subquery
from django.db.models.functions import Coalesce

from .exceptions import AtomicUpdateFailure, ParentNotFound
from .models import Comment, Group, GroupMember, Post, PostLike

logger = logging.getLogger(__name__)


class DenormalizedCounter:
    """
    Keeps `parent_model.<count_field>` equal to the number of
    `child_model` rows whose `parent_field` points at that parent.
    """

    def __init__(self, name, parent_model, count_field, child_model, parent_field):
        self.name = name
        self.parent_model = parent_model
        self.count_field = count_field
        self.child_model = child_model
        self.parent_field = parent_field

        fk = child_model._meta.get_field(parent_field)
        self.parent_attname = fk.attname

    def __repr__(self):
        return f"<DenormalizedCounter {self.name}>"

    # ------------------------------------------------------------------
    # Atomic primitive
    # ------------------------------------------------------------------

    def adjust(self, parent_id, delta: int, missing_ok: bool = False) -> int:
        """
        Apply `count = count + delta` to one parent row.

        Returns the number of rows updated (0 or 1).
        """
        try:
            updated = self.parent_model.objects.filter(pk=parent_id).update(
                **{self.count_field: F(self.count_field) + delta}
            )
        except DatabaseError as exc:
            logger.error(
                f"{self.name}: could not apply {delta:+d} to {parent_id}: {exc}"
            )
            raise AtomicUpdateFailure(
                f"Could not update {self.count_field} for {parent_id}."
            ) from exc

        if not updated and not missing_ok:
            raise ParentNotFound(
                f"{self.parent_model.__name__} {parent_id} does not exist."
            )
        return updated

    def increment(self, parent_id) -> int:
        return self.adjust(parent_id, 1)

    def decrement(self, parent_id, missing_ok: bool = False) -> int:
        return self.adjust(parent_id, -1, missing_ok=missing_ok)

    # ------------------------------------------------------------------
    # Repository entry points
    # ------------------------------------------------------------------

    def create_child(self, **fields):
        """
        Insert a child row and count it, as one unit.

        IntegrityError from the insert (e.g. a duplicate like) propagates
        untouched so callers can treat it as "already exists".
        """
        return self.save_new_child(self.child_model(**fields))

    def save_new_child(self, child):
        """Same as create_child() for an instance built elsewhere (admin forms)."""
        with transaction.atomic():
            child.save(force_insert=True)
            self.increment(getattr(child, self.parent_attname))
        logger.debug(f"{self.name}: +1 on {getattr(child, self.parent_attname)}")
        return child

    def delete_child(self, child) -> bool:
        """
        Delete a child row and uncount it, as one unit.

        Deleting by primary key means two concurrent deletes of the same
        row decrement only once: the loser deletes nothing.
        Returns False when the row was already gone.
        """
        return self.delete_children(getattr(child, self.parent_attname), [child.pk]) == 1

    def delete_children(self, parent_id, pks, missing_ok: bool = False) -> int:
        """
        Delete several children of one parent and subtract exactly the
        number of rows this call removed. Returns that number.
        """
        with transaction.atomic():
            _, per_model = (
                self.child_model.objects
                .filter(pk__in=pks, **{self.parent_attname: parent_id})
                .delete()
            )
            deleted = per_model.get(self.child_model._meta.label, 0)
            if deleted:
                self.adjust(parent_id, -deleted, missing_ok=missing_ok)
        if deleted:
            logger.debug(f"{self.name}: -{deleted} on {parent_id}")
        return deleted

    # ------------------------------------------------------------------
    # Reads and repair
    # ------------------------------------------------------------------

    def cached_count(self, parent_id) -> int:
        value = (
            self.parent_model.objects
            .filter(pk=parent_id)
            .values_list(self.count_field, flat=True)
            .first()
        )
        if value is None:
            raise ParentNotFound(
                f"{self.parent_model.__name__} {parent_id} does not exist."
            )
        return value

    def live_count(self, parent_id) -> int:
        return self.child_model.objects.filter(**{self.parent_attname: parent_id}).count()

    def _live_subquery(self):
        children = (
            self.child_model.objects
            .filter(**{self.parent_field: OuterRef('pk')})
            .order_by()
            .values(self.parent_field)
            .annotate(n=Count('pk'))
            .values('n')
        )
        return Coalesce(Subquery(children, output_field=IntegerField()), 0)

    def drifted(self):
        """Parents whose cached count disagrees with their children, annotated with `live`."""
        return (
            self.parent_model.objects
            .annotate(live=self._live_subquery())
            .exclude(**{self.count_field: F('live')})
        )

    def reconcile(self, parent_ids=None) -> int:
        """
        Rewrite drifted counts from the child rows.

        The new value is computed by the database in the same UPDATE, so
        mutations that commit while this runs are not overwritten with a
        stale number.
        """
        drifted = self.drifted()
        if parent_ids is not None:
            drifted = drifted.filter(pk__in=parent_ids)
        ids = list(drifted.values_list('pk', flat=True))
        if not ids:
            return 0

        with transaction.atomic():
            self.parent_model.objects.filter(pk__in=ids).update(
                **{self.count_field: self._live_subquery()}
            )
        logger.warning(f"{self.name}: repaired {len(ids)} drifted count(s)")
        return len(ids)


POST_LIKES = DenormalizedCounter('post_likes', Post, 'likes_count', PostLike, 'post')
POST_COMMENTS = DenormalizedCounter('post_comments', Post, 'comments_count', Comment, 'post')
GROUP_MEMBERS = DenormalizedCounter('group_members', Group, 'members_count', GroupMember, 'group')

COUNTERS = (POST_LIKES, POST_COMMENTS, GROUP_MEMBERS)


def counter_for(child_model):
    """Return the counter fed by `child_model`, or None."""
    for counter in COUNTERS:
        if counter.child_model is child_model:
            return counter
    return None
