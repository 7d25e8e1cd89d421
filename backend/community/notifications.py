"""
Notification service.

Notifications are plain rows in a member's inbox. Other services create them
inside their own transaction (a like and its "someone liked your post"
notification commit or roll back together).
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .exceptions import ChildNotFound
from .models import Event, Notification
from .permissions import WRITE, authorize

logger = logging.getLogger(__name__)

REMINDER_TYPES = {
    Event.EventType.VACCINATION: Notification.Type.VACCINATION,
    Event.EventType.MEDICATION: Notification.Type.MEDICATION,
}


def notifications_enabled() -> bool:
    return getattr(settings, 'COMMUNITY_NOTIFICATIONS_ENABLED', True)


def notify(recipient, type, title, message, action_url='', related_id=None):
    """Create an unread notification, or return None when notifications are disabled."""
    if not notifications_enabled():
        return None
    notification = Notification.objects.create(
        recipient=recipient,
        type=type,
        title=title,
        message=message,
        action_url=action_url,
        related_id=related_id,
    )
    logger.debug(f"Notified {recipient.username}: {type}")
    return notification


def send_welcome(user, full_name):
    return notify(
        user,
        Notification.Type.WELCOME,
        'Welcome to PawPilot HQ!',
        f"Hi {full_name}, add your first pet to get started.",
        action_url='/pets',
    )


def mark_read(user, notification_id) -> Notification:
    notification = Notification.objects.filter(id=notification_id).first()
    if notification is None:
        raise ChildNotFound(f"Notification {notification_id} does not exist.")
    authorize(user, WRITE, notification)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return notification


def mark_all_read(user) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).update(is_read=True)


def unread_count(user) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()


def delete_notification(user, notification_id):
    notification = Notification.objects.filter(id=notification_id).first()
    if notification is None:
        raise ChildNotFound(f"Notification {notification_id} does not exist.")
    authorize(user, WRITE, notification)
    notification.delete()


def _reminder_for(event):
    kind = REMINDER_TYPES.get(event.event_type, Notification.Type.HEALTH)
    when = timezone.localtime(event.event_date).strftime('%b %d, %H:%M')
    subject = f" for {event.pet.name}" if event.pet_id else ''
    return kind, f"Upcoming: {event.title}", f"{event.get_event_type_display()}{subject} on {when}."


def send_event_reminders(now=None, window_hours=None) -> int:
    """
    Notify owners about incomplete events due within the window.

    Each event is reminded once: the notification and the reminder_sent flag
    are written together, and the row is locked so two concurrent runs
    cannot both send it.
    """
    now = now or timezone.now()
    if window_hours is None:
        window_hours = getattr(settings, 'EVENT_REMINDER_WINDOW_HOURS', 24)
    horizon = now + timedelta(hours=window_hours)

    due_ids = list(
        Event.objects
        .filter(
            is_completed=False,
            reminder_sent=False,
            event_date__gte=now,
            event_date__lte=horizon,
        )
        .values_list('id', flat=True)
    )

    sent = 0
    for event_id in due_ids:
        with transaction.atomic():
            event = (
                Event.objects
                .select_for_update()
                .filter(id=event_id, reminder_sent=False)
                .first()
            )
            if event is None:
                continue
            kind, title, message = _reminder_for(event)
            notify(
                event.owner,
                kind,
                title,
                message,
                action_url='/calendar',
                related_id=event.id,
            )
            event.reminder_sent = True
            event.save(update_fields=['reminder_sent'])
            sent += 1

    if sent:
        logger.info(f"Sent {sent} event reminder(s)")
    return sent
