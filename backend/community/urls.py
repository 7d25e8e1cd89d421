"""
Community App URL Configuration
"""
from django.urls import path
from .views import (
    CommentDetailView,
    EventDetailView,
    EventListCreateView,
    FeedView,
    GroupDetailView,
    GroupListCreateView,
    GroupMemberDetailView,
    GroupMembersView,
    GroupMembershipView,
    LikePostView,
    LikeToggleView,
    NotificationDetailView,
    NotificationListView,
    NotificationReadAllView,
    NotificationReadView,
    PetDetailView,
    PetListCreateView,
    PostCommentsView,
    PostCreateView,
    PostDetailView,
    ProfileView,
    WhoAmIView,
)

urlpatterns = [
    # Profile
    path('profile/', ProfileView.as_view(), name='profile'),

    # Pets
    path('pets/', PetListCreateView.as_view(), name='pet-list'),
    path('pets/<uuid:pet_id>/', PetDetailView.as_view(), name='pet-detail'),

    # Feed & posts
    path('feed/', FeedView.as_view(), name='feed'),
    path('posts/', PostCreateView.as_view(), name='post-create'),
    path('posts/<uuid:post_id>/', PostDetailView.as_view(), name='post-detail'),
    path('posts/<uuid:post_id>/comments/', PostCommentsView.as_view(), name='post-comments'),
    path('posts/<uuid:post_id>/like/', LikePostView.as_view(), name='like-post'),

    # Comments
    path('comments/<uuid:comment_id>/', CommentDetailView.as_view(), name='comment-detail'),

    # Likes (unified endpoint)
    path('likes/toggle/', LikeToggleView.as_view(), name='like-toggle'),

    # Groups
    path('groups/', GroupListCreateView.as_view(), name='group-list'),
    path('groups/<uuid:group_id>/', GroupDetailView.as_view(), name='group-detail'),
    path('groups/<uuid:group_id>/members/', GroupMembersView.as_view(), name='group-members'),
    path('groups/<uuid:group_id>/members/<int:user_id>/', GroupMemberDetailView.as_view(), name='group-member-detail'),
    path('groups/<uuid:group_id>/membership/', GroupMembershipView.as_view(), name='group-membership'),

    # Events
    path('events/', EventListCreateView.as_view(), name='event-list'),
    path('events/<uuid:event_id>/', EventDetailView.as_view(), name='event-detail'),

    # Notifications
    path('notifications/', NotificationListView.as_view(), name='notification-list'),
    path('notifications/read-all/', NotificationReadAllView.as_view(), name='notification-read-all'),
    path('notifications/<uuid:notification_id>/', NotificationDetailView.as_view(), name='notification-detail'),
    path('notifications/<uuid:notification_id>/read/', NotificationReadView.as_view(), name='notification-read'),

    # Auth
    path('auth/whoami/', WhoAmIView.as_view(), name='whoami'),
]
