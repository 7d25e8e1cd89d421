"""
DRF Views
=========

API endpoints for PawPilot HQ.

Every endpoint requires an authenticated member. Row visibility and
ownership come from community.permissions:
- list views filter through visible()
- detail views use RowLevelPolicy for object permissions
- anything that creates or deletes a counted child (likes, comments,
  memberships) is delegated to community.services, which raise domain
  errors that the exception handler turns into responses
"""

from rest_framework import generics, permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import CursorPagination
from rest_framework.response import Response
from rest_framework.views import APIView
from django.http import Http404
from django.shortcuts import get_object_or_404

from . import notifications, services
from .models import Event, Group, Notification, Pet, Profile
from .permissions import RowLevelPolicy, visible
from .queries import (
    get_comments_for_post,
    get_feed_posts,
    get_group_members,
    get_liked_post_ids,
    get_post_with_comments,
    get_upcoming_events,
)
from .serializers import (
    CommentSerializer,
    EventSerializer,
    GroupMemberSerializer,
    GroupSerializer,
    LikeActionSerializer,
    MemberRoleSerializer,
    NotificationSerializer,
    PetSerializer,
    PostSerializer,
    PostWriteSerializer,
    ProfileSerializer,
)


class FeedPagination(CursorPagination):
    """
    Cursor pagination for the feed.

    WHY CURSOR PAGINATION:
    - Offset pagination: SELECT ... LIMIT 20 OFFSET 1000 -> scans 1020 rows
    - Cursor pagination: SELECT ... WHERE created_at < cursor -> index seek
    """
    page_size = 20
    ordering = '-created_at'
    cursor_query_param = 'cursor'


def _like_payload(result):
    return {
        'success': result.success,
        'action': result.action,
        'likes_count': result.likes_count,
    }


# ============================================================================
# PROFILE
# ============================================================================

class ProfileView(APIView):
    """
    GET   /api/profile/  -> own profile
    POST  /api/profile/  -> create own profile (sends a welcome notification)
    PATCH /api/profile/  -> update own profile
    """

    def get(self, request):
        profile = get_object_or_404(Profile, user=request.user)
        return Response(ProfileSerializer(profile).data)

    def post(self, request):
        serializer = ProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = services.create_profile(request.user, **serializer.validated_data)
        return Response(ProfileSerializer(profile).data, status=status.HTTP_201_CREATED)

    def patch(self, request):
        profile = get_object_or_404(Profile, user=request.user)
        serializer = ProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


# ============================================================================
# PETS
# ============================================================================

class PetListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/pets/           -> own pets (or ?owner=<user_id>)
    POST /api/pets/
    """
    serializer_class = PetSerializer
    pagination_class = None

    def get_queryset(self):
        queryset = visible(self.request.user, Pet).select_related('owner', 'owner__profile')
        owner = self.request.query_params.get('owner')
        if owner:
            return queryset.filter(owner_id=owner)
        return queryset.filter(owner=self.request.user)

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class PetDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = PetSerializer
    permission_classes = [RowLevelPolicy]
    lookup_url_kwarg = 'pet_id'

    def get_queryset(self):
        return Pet.objects.select_related('owner')


# ============================================================================
# POSTS
# ============================================================================

class FeedView(generics.ListAPIView):
    """
    GET /api/feed/

    Returns paginated list of posts, newest first.
    Queries: 1 for the page + 1 for the caller's likes on it
    """
    serializer_class = PostSerializer
    pagination_class = FeedPagination

    def get_queryset(self):
        queryset = get_feed_posts(self.request.user)
        author = self.request.query_params.get('author')
        if author:
            queryset = queryset.filter(author_id=author)
        return queryset

    def list(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        liked = get_liked_post_ids(request.user.id, [post.id for post in page])
        serializer = self.get_serializer(page, many=True, context={
            'request': request,
            'liked_post_ids': liked,
        })
        return self.get_paginated_response(serializer.data)


class PostCreateView(APIView):
    """POST /api/posts/"""

    def post(self, request):
        serializer = PostWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        post = services.create_post(request.user, **serializer.validated_data)
        return Response(PostSerializer(post).data, status=status.HTTP_201_CREATED)


class PostDetailView(APIView):
    """
    GET    /api/posts/<id>/
    PATCH  /api/posts/<id>/   (author only)
    DELETE /api/posts/<id>/   (author only, cascades likes and comments)
    """

    def get(self, request, post_id):
        detail = get_post_with_comments(request.user, post_id)
        if detail is None:
            raise Http404
        post = detail['post']
        liked = get_liked_post_ids(request.user.id, [post.id])
        data = PostSerializer(post, context={'liked_post_ids': liked}).data
        data['comments'] = CommentSerializer(detail['comments'], many=True).data
        return Response(data)

    def patch(self, request, post_id):
        serializer = PostWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        post = services.update_post(request.user, post_id, **serializer.validated_data)
        return Response(PostSerializer(post).data)

    def delete(self, request, post_id):
        services.delete_post(request.user, post_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# COMMENTS
# ============================================================================

class PostCommentsView(APIView):
    """
    GET  /api/posts/<post_id>/comments/
    POST /api/posts/<post_id>/comments/   body: {"content": "..."}
    """

    def get(self, request, post_id):
        get_object_or_404(get_feed_posts(request.user), id=post_id)
        comments = get_comments_for_post(post_id)
        return Response(CommentSerializer(comments, many=True).data)

    def post(self, request, post_id):
        serializer = CommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(
            request.user, post_id, serializer.validated_data['content']
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentDetailView(APIView):
    """DELETE /api/comments/<comment_id>/"""

    def delete(self, request, comment_id):
        services.delete_comment(request.user, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# LIKES
# ============================================================================

class LikePostView(APIView):
    """
    POST   /api/posts/<post_id>/like/  -> like
    DELETE /api/posts/<post_id>/like/  -> unlike

    CONCURRENCY:
    - Unique constraint prevents duplicates
    - likes_count moves in the same transaction as the like row
    """

    def post(self, request, post_id):
        result = services.like_post(request.user, post_id)
        code = status.HTTP_201_CREATED if result.success else status.HTTP_200_OK
        return Response(_like_payload(result), status=code)

    def delete(self, request, post_id):
        result = services.unlike_post(request.user, post_id)
        return Response(_like_payload(result))


class LikeToggleView(APIView):
    """POST /api/likes/toggle/   body: {"post_id": "<uuid>"}"""

    def post(self, request):
        serializer = LikeActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.toggle_like(request.user, serializer.validated_data['post_id'])
        return Response(_like_payload(result))


# ============================================================================
# GROUPS
# ============================================================================

class GroupListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/groups/   -> public groups plus the caller's own
    POST /api/groups/   -> creator joins as admin, members_count = 1
    """
    serializer_class = GroupSerializer
    pagination_class = None

    def get_queryset(self):
        queryset = visible(self.request.user, Group).select_related('created_by', 'created_by__profile')
        category = self.request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = services.create_group(request.user, **serializer.validated_data)
        return Response(self.get_serializer(group).data, status=status.HTTP_201_CREATED)


class GroupDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = GroupSerializer
    permission_classes = [RowLevelPolicy]
    lookup_url_kwarg = 'group_id'

    def get_queryset(self):
        return visible(self.request.user, Group).select_related('created_by')


class GroupMembersView(generics.ListAPIView):
    """GET /api/groups/<group_id>/members/"""
    serializer_class = GroupMemberSerializer
    pagination_class = None

    def get_queryset(self):
        group = services.get_group(self.request.user, self.kwargs['group_id'])
        return get_group_members(group.id)


class GroupMembershipView(APIView):
    """
    POST   /api/groups/<group_id>/membership/  -> join
    DELETE /api/groups/<group_id>/membership/  -> leave
    """

    def post(self, request, group_id):
        membership = services.join_group(request.user, group_id)
        return Response(GroupMemberSerializer(membership).data, status=status.HTTP_201_CREATED)

    def delete(self, request, group_id):
        services.leave_group(request.user, group_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class GroupMemberDetailView(APIView):
    """
    PATCH  /api/groups/<group_id>/members/<user_id>/  -> change role (creator)
    DELETE /api/groups/<group_id>/members/<user_id>/  -> remove (creator or self)
    """

    def patch(self, request, group_id, user_id):
        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = services.change_member_role(
            request.user, group_id, user_id, serializer.validated_data['role']
        )
        return Response(GroupMemberSerializer(membership).data)

    def delete(self, request, group_id, user_id):
        services.remove_group_member(request.user, group_id, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# EVENTS
# ============================================================================

class EventListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/events/   (?upcoming=<days> for incomplete events in the next N days)
    POST /api/events/
    """
    serializer_class = EventSerializer
    pagination_class = None

    def get_queryset(self):
        upcoming = self.request.query_params.get('upcoming')
        if upcoming:
            try:
                days = int(upcoming)
            except ValueError:
                raise ValidationError({'upcoming': 'Must be a number of days.'})
            return get_upcoming_events(self.request.user, days=days)
        return visible(self.request.user, Event).select_related('pet').order_by('event_date')

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class EventDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = EventSerializer
    permission_classes = [RowLevelPolicy]
    lookup_url_kwarg = 'event_id'

    def get_queryset(self):
        return visible(self.request.user, Event).select_related('pet')


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class NotificationListView(generics.ListAPIView):
    """
    GET /api/notifications/   (?unread=1 to filter)

    Response includes unread_count alongside the page.
    """
    serializer_class = NotificationSerializer
    pagination_class = None

    def get_queryset(self):
        queryset = visible(self.request.user, Notification)
        if self.request.query_params.get('unread'):
            queryset = queryset.filter(is_read=False)
        return queryset

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset()[:100], many=True)
        return Response({
            'results': serializer.data,
            'unread_count': notifications.unread_count(request.user),
        })


class NotificationReadView(APIView):
    """POST /api/notifications/<notification_id>/read/"""

    def post(self, request, notification_id):
        notification = notifications.mark_read(request.user, notification_id)
        return Response(NotificationSerializer(notification).data)


class NotificationReadAllView(APIView):
    """POST /api/notifications/read-all/"""

    def post(self, request):
        updated = notifications.mark_all_read(request.user)
        return Response({'updated': updated})


class NotificationDetailView(APIView):
    """DELETE /api/notifications/<notification_id>/"""

    def delete(self, request, notification_id):
        notifications.delete_notification(request.user, notification_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# SESSION HELPERS
# ============================================================================

class WhoAmIView(APIView):
    """
    GET /api/auth/whoami/

    Returns current authenticated user info.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        if request.user.is_authenticated:
            return Response({
                'authenticated': True,
                'user_id': request.user.id,
                'username': request.user.username,
                'unread_notifications': notifications.unread_count(request.user),
            })
        return Response({
            'authenticated': False,
            'user_id': None,
            'username': None,
        })
