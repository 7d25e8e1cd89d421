"""
Django Admin Configuration for Community Models
"""
from django.contrib import admin
from django.db import transaction

from .counters import counter_for
from .models import Comment, Event, Group, GroupMember, Notification, Pet, Post, PostLike, Profile


class CountedChildAdmin(admin.ModelAdmin):
    """
    Admin for rows that feed a denormalized counter.

    Adds and deletes are routed through the counter so staff edits keep
    the parent's count exact. The parent link is frozen after creation.
    """

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            readonly.append(counter_for(self.model).parent_field)
        return readonly

    def save_model(self, request, obj, form, change):
        if change:
            super().save_model(request, obj, form, change)
        else:
            counter_for(self.model).save_new_child(obj)

    def delete_model(self, request, obj):
        counter_for(self.model).delete_child(obj)

    def delete_queryset(self, request, queryset):
        counter = counter_for(self.model)
        with transaction.atomic():
            for obj in queryset:
                counter.delete_child(obj)


class CountedParentAdmin(admin.ModelAdmin):
    """
    Admin for rows that carry denormalized counters.

    Counters are read-only here, and on change only the edited columns are
    saved so a like or join committed meanwhile is kept.
    """
    counter_fields = ()

    def get_readonly_fields(self, request, obj=None):
        return [*super().get_readonly_fields(request, obj), *self.counter_fields]

    def save_model(self, request, obj, form, change):
        if not change:
            super().save_model(request, obj, form, change)
            return
        changed = [name for name in form.changed_data if name not in self.counter_fields]
        obj.save(update_fields=[*changed, 'updated_at'])


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'full_name', 'location', 'joined_at']
    search_fields = ['full_name', 'user__username', 'user__email']
    readonly_fields = ['joined_at', 'updated_at']


@admin.register(Pet)
class PetAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'breed', 'owner', 'health_status', 'is_vaccinated']
    list_filter = ['type', 'health_status', 'is_vaccinated']
    search_fields = ['name', 'breed', 'microchip_id', 'owner__username']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Post)
class PostAdmin(CountedParentAdmin):
    list_display = ['id', 'author', 'likes_count', 'comments_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['content', 'author__username']
    readonly_fields = ['created_at', 'updated_at']
    counter_fields = ('likes_count', 'comments_count', 'shares_count')


@admin.register(Comment)
class CommentAdmin(CountedChildAdmin):
    list_display = ['id', 'post', 'author', 'created_at']
    list_filter = ['created_at']
    search_fields = ['content', 'author__username']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(PostLike)
class PostLikeAdmin(CountedChildAdmin):
    list_display = ['user', 'post', 'created_at']
    list_filter = ['created_at']
    search_fields = ['user__username']


@admin.register(Group)
class GroupAdmin(CountedParentAdmin):
    list_display = ['name', 'category', 'is_public', 'created_by', 'members_count', 'created_at']
    list_filter = ['category', 'is_public']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    counter_fields = ('members_count', 'messages_count')


@admin.register(GroupMember)
class GroupMemberAdmin(CountedChildAdmin):
    list_display = ['user', 'group', 'role', 'joined_at']
    list_filter = ['role']
    search_fields = ['user__username', 'group__name']


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'event_type', 'owner', 'pet', 'event_date', 'is_completed', 'reminder_sent']
    list_filter = ['event_type', 'is_completed', 'reminder_sent']
    search_fields = ['title', 'owner__username', 'pet__name']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'type', 'title', 'is_read', 'created_at']
    list_filter = ['type', 'is_read', 'created_at']
    search_fields = ['recipient__username', 'title']
    readonly_fields = ['created_at']
