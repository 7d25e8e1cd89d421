"""
DRF Serializers
===============

Serializers handle:
1. Validation of incoming data
2. Transformation of model instances to JSON

DESIGN DECISIONS:
-----------------
1. Owner/author fields are always set from request.user by the view,
   never read from the body.
2. Counter fields (likes_count, comments_count, shares_count,
   members_count, messages_count) are read-only everywhere.
3. Writes that touch counted children don't use serializer.save(); views
   pass validated data to community.services instead.
"""

from rest_framework import serializers
from django.contrib.auth.models import User

from .models import Comment, Event, Group, GroupMember, Notification, Pet, Post, Profile


class UserSerializer(serializers.ModelSerializer):
    """Minimal user representation for embedding in other objects."""
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'full_name']
        read_only_fields = fields

    def get_full_name(self, obj):
        profile = getattr(obj, 'profile', None)
        return profile.full_name if profile else ''


class ProfileSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Profile
        fields = ['full_name', 'email', 'avatar_url', 'bio', 'location', 'joined_at', 'updated_at']
        read_only_fields = ['email', 'joined_at', 'updated_at']

    def validate_full_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Full name cannot be empty.")
        return value.strip()


class PetSerializer(serializers.ModelSerializer):
    owner = UserSerializer(read_only=True)

    class Meta:
        model = Pet
        fields = [
            'id', 'owner', 'name', 'type', 'breed', 'age_years', 'age_months',
            'weight_kg', 'color', 'gender', 'is_neutered', 'microchip_id',
            'health_status', 'is_vaccinated', 'last_vet_visit', 'next_vet_visit',
            'notes', 'avatar_url', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']

    def validate_age_months(self, value):
        if value is not None and value > 11:
            raise serializers.ValidationError("Months must be between 0 and 11.")
        return value


class PetSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Pet
        fields = ['id', 'name', 'type', 'avatar_url']
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    """
    Serializer for feed and detail views.

    user_liked comes from a set of liked post ids the view puts in the
    context, so a feed page costs one extra query, not one per post.
    """
    author = UserSerializer(read_only=True)
    pet = PetSummarySerializer(read_only=True)
    user_liked = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            'id', 'author', 'content', 'image_url', 'video_url', 'pet',
            'likes_count', 'comments_count', 'shares_count',
            'user_liked', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'likes_count', 'comments_count', 'shares_count', 'created_at', 'updated_at'
        ]

    def get_user_liked(self, obj):
        liked_ids = self.context.get('liked_post_ids', set())
        return obj.id in liked_ids


class PostWriteSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)
    pet_id = serializers.UUIDField(required=False, allow_null=True)
    image_url = serializers.URLField(required=False, allow_blank=True)
    video_url = serializers.URLField(required=False, allow_blank=True)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Post content cannot be empty.")
        return value.strip()


class CommentSerializer(serializers.ModelSerializer):
    author = UserSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'post', 'author', 'content', 'created_at', 'updated_at']
        read_only_fields = ['id', 'post', 'author', 'created_at', 'updated_at']

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Comment cannot be empty.")
        return value.strip()


class LikeActionSerializer(serializers.Serializer):
    post_id = serializers.UUIDField()


class GroupSerializer(serializers.ModelSerializer):
    created_by = UserSerializer(read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'category', 'icon_url', 'cover_url',
            'is_public', 'created_by', 'members_count', 'messages_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'created_by', 'members_count', 'messages_count', 'created_at', 'updated_at'
        ]

    def update(self, instance, validated_data):
        # Write only what changed; members_count may have moved since the read.
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=[*validated_data, 'updated_at'])
        return instance


class GroupMemberSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = GroupMember
        fields = ['id', 'group', 'user', 'role', 'joined_at']
        read_only_fields = fields


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=GroupMember.Role.choices)


class EventSerializer(serializers.ModelSerializer):
    pet = PetSummarySerializer(read_only=True)
    pet_id = serializers.PrimaryKeyRelatedField(
        source='pet',
        queryset=Pet.objects.all(),
        write_only=True,
        required=False,
        allow_null=True
    )

    class Meta:
        model = Event
        fields = [
            'id', 'pet', 'pet_id', 'title', 'description', 'event_type',
            'event_date', 'location', 'is_completed', 'reminder_sent',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'reminder_sent', 'created_at', 'updated_at']

    def validate_pet_id(self, value):
        request = self.context.get('request')
        if value is not None and request and value.owner_id != request.user.id:
            raise serializers.ValidationError("You can only schedule events for your own pets.")
        return value


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'title', 'message', 'is_read',
            'action_url', 'related_id', 'created_at',
        ]
        read_only_fields = fields
