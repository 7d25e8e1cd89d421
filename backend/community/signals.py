"""
Django signals for keeping denormalized counters right across cascades.

Trade-off Discussion:
---------------------
Normal creates and deletes go through community.counters, which adjusts
the count in the same transaction. The one path that bypasses it is the
foreign-key cascade: deleting a User removes their likes, comments and
memberships on *other people's* posts and groups, and nobody calls
delete_child() for those rows.

Deleting a Post or a Group needs no handling: the parent row disappears
together with its count.

So before the cascade runs, the user's children are removed through the
counters here, and the cascade finds nothing left to delete.

IMPORTANT: pre_delete is sent inside the Collector's transaction, before
any row is removed. Everything below commits or rolls back together with
the user deletion itself.
"""

import logging
from collections import defaultdict

from django.contrib.auth.models import User
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .counters import COUNTERS

logger = logging.getLogger(__name__)

# Child FK pointing at the user, per counted child model
USER_FIELDS = {
    'PostLike': 'user',
    'Comment': 'author',
    'GroupMember': 'user',
}


@receiver(pre_delete, sender=User)
def release_user_children(sender, instance, **kwargs):
    """
    Before a user goes, delete their counted children and subtract them
    from every parent they are counted in.

    LOCKING:
    1. The user row first. A new like/comment/join must lock it for its
       foreign-key check, so it waits until this deletion is done.
    2. Then the children. An unlike/leave running elsewhere either
       committed already (the row is gone and not counted here) or waits
       and then deletes nothing, so nothing is subtracted twice.
    """
    list(
        User.objects.select_for_update()
        .filter(pk=instance.pk)
        .values_list('pk', flat=True)
    )

    for counter in COUNTERS:
        user_field = USER_FIELDS[counter.child_model.__name__]
        rows = (
            counter.child_model.objects
            .select_for_update()
            .filter(**{user_field: instance})
            .order_by('pk')
            .values_list('pk', counter.parent_attname)
        )
        per_parent = defaultdict(list)
        for pk, parent_id in rows:
            per_parent[parent_id].append(pk)

        for parent_id, pks in per_parent.items():
            removed = counter.delete_children(parent_id, pks, missing_ok=True)
            logger.debug(
                f"{counter.name}: -{removed} on {parent_id} "
                f"(user {instance.pk} deleted)"
            )
