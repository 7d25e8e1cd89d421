"""
Notification banner.

    {% load banners %}
    {% notification_banner message "success" %}

Renders a coloured strip: red for errors, green for success, blue for
anything else. The message is escaped.
"""
from django import template
from django.utils.html import format_html

register = template.Library()

BANNER_COLORS = {
    'error': 'red',
    'success': 'green',
    'info': 'blue',
}

BANNER_STYLE = (
    'padding: 10px; margin: 10px 0; border-radius: 5px; '
    'color: white; background-color: {};'
)


@register.simple_tag
def notification_banner(message, type='info'):
    kind = type if type in BANNER_COLORS else 'info'
    return format_html(
        '<div class="notification-banner notification-banner--{}" role="status" style="{}">{}</div>',
        kind,
        BANNER_STYLE.format(BANNER_COLORS[kind]),
        message,
    )
