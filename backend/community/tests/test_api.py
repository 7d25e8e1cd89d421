"""
API tests: status codes, error shapes and read-only counters.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from community.models import Comment, Event, GroupMember, Notification, Post, Profile
from community.services import add_comment, join_group, like_post

from .factories import make_group, make_pet, make_post, make_user


class APIAuthTestCase(APITestCase):

    def test_anonymous_rejected(self):
        response = self.client.get(reverse('feed'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_whoami(self):
        response = self.client.get(reverse('whoami'))
        self.assertFalse(response.data['authenticated'])

        user = make_user('sam')
        self.client.force_authenticate(user)
        response = self.client.get(reverse('whoami'))

        self.assertTrue(response.data['authenticated'])
        self.assertEqual(response.data['username'], 'sam')
        self.assertEqual(response.data['unread_notifications'], 0)


class ProfileAPITestCase(APITestCase):

    def setUp(self):
        self.user = make_user('sam')
        self.client.force_authenticate(self.user)

    def test_create_and_update_profile(self):
        response = self.client.post(reverse('profile'), {'full_name': 'Sam Rivers'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Notification.objects.filter(recipient=self.user).count(), 1)

        response = self.client.patch(reverse('profile'), {'bio': 'Two dogs, one cat'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Profile.objects.get(user=self.user).bio, 'Two dogs, one cat')

    def test_duplicate_profile(self):
        self.client.post(reverse('profile'), {'full_name': 'Sam'})

        response = self.client.post(reverse('profile'), {'full_name': 'Sam'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_profile(self):
        self.assertEqual(self.client.get(reverse('profile')).status_code, status.HTTP_404_NOT_FOUND)


class PostAPITestCase(APITestCase):

    def setUp(self):
        self.author = make_user('author')
        self.reader = make_user('reader')
        self.post = make_post(self.author)
        self.client.force_authenticate(self.reader)

    def test_feed_marks_liked_posts(self):
        other = make_post(self.author, 'Second walk')
        like_post(self.reader, self.post.id)

        response = self.client.get(reverse('feed'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_id = {item['id']: item for item in response.data['results']}
        self.assertTrue(by_id[str(self.post.id)]['user_liked'])
        self.assertEqual(by_id[str(self.post.id)]['likes_count'], 1)
        self.assertFalse(by_id[str(other.id)]['user_liked'])

    def test_create_post(self):
        response = self.client.post(reverse('post-create'), {'content': 'Hello pack'})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['likes_count'], 0)
        self.assertEqual(response.data['author']['username'], 'reader')

    def test_tagging_foreign_pet_forbidden(self):
        pet = make_pet(self.author)

        response = self.client.post(
            reverse('post-create'), {'content': 'Borrowed dog', 'pet_id': str(pet.id)}
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'AccessDenied')

    def test_counters_ignored_on_update(self):
        self.client.force_authenticate(self.author)

        response = self.client.patch(
            reverse('post-detail', args=[self.post.id]),
            {'content': 'Edited', 'likes_count': 500, 'comments_count': 9},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.post.refresh_from_db()
        self.assertEqual(self.post.content, 'Edited')
        self.assertEqual(self.post.likes_count, 0)
        self.assertEqual(self.post.comments_count, 0)

    def test_only_author_deletes(self):
        url = reverse('post-detail', args=[self.post.id])

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.author)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Post.objects.filter(id=self.post.id).exists())

    def test_missing_post(self):
        response = self.client.get(reverse('post-detail', args=[uuid.uuid4()]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class LikeAPITestCase(APITestCase):

    def setUp(self):
        self.author = make_user('author')
        self.fan = make_user('fan')
        self.post = make_post(self.author)
        self.url = reverse('like-post', args=[self.post.id])
        self.client.force_authenticate(self.fan)

    def test_like_and_duplicate(self):
        first = self.client.post(self.url)
        second = self.client.post(self.url)

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['likes_count'], 1)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data['action'], 'already_exists')

    def test_unlike(self):
        self.client.post(self.url)

        response = self.client.delete(self.url)

        self.assertEqual(response.data['action'], 'removed')
        self.assertEqual(response.data['likes_count'], 0)

    def test_toggle(self):
        url = reverse('like-toggle')

        self.assertEqual(self.client.post(url, {'post_id': str(self.post.id)}).data['action'], 'created')
        self.assertEqual(self.client.post(url, {'post_id': str(self.post.id)}).data['action'], 'removed')

    def test_like_missing_post(self):
        response = self.client.post(reverse('like-post', args=[uuid.uuid4()]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'ParentNotFound')

    def test_counter_failure_maps_to_503(self):
        with patch('django.db.models.query.QuerySet.update', side_effect=DatabaseError('down')):
            response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['code'], 'AtomicUpdateFailure')
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 0)


class CommentAPITestCase(APITestCase):

    def setUp(self):
        self.author = make_user('author')
        self.commenter = make_user('commenter')
        self.post = make_post(self.author)
        self.client.force_authenticate(self.commenter)

    def test_comment_lifecycle(self):
        url = reverse('post-comments', args=[self.post.id])

        response = self.client.post(url, {'content': 'Adorable'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        listing = self.client.get(url)
        self.assertEqual(len(listing.data), 1)
        self.assertEqual(listing.data[0]['author']['username'], 'commenter')

        response = self.client.delete(reverse('comment-detail', args=[response.data['id']]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.post.refresh_from_db()
        self.assertEqual(self.post.comments_count, 0)

    def test_blank_comment(self):
        response = self.client.post(reverse('post-comments', args=[self.post.id]), {'content': '  '})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Comment.objects.exists())

    def test_delete_others_comment(self):
        comment = add_comment(self.author, self.post.id, 'My own post, my own comment')

        response = self.client.delete(reverse('comment-detail', args=[comment.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class GroupAPITestCase(APITestCase):

    def setUp(self):
        self.creator = make_user('creator')
        self.member = make_user('member')
        self.group = make_group(self.creator)
        self.client.force_authenticate(self.member)

    def test_create_group_enrolls_creator(self):
        response = self.client.post(reverse('group-list'), {
            'name': 'Rabbit Hole',
            'category': 'rabbits',
            'members_count': 40,
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['members_count'], 1)
        self.assertTrue(
            GroupMember.objects.filter(
                group_id=response.data['id'], user=self.member, role=GroupMember.Role.ADMIN
            ).exists()
        )

    def test_join_leave(self):
        url = reverse('group-membership', args=[self.group.id])

        self.assertEqual(self.client.post(url).status_code, status.HTTP_201_CREATED)
        conflict = self.client.post(url)
        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(conflict.data['code'], 'AlreadyMember')

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_404_NOT_FOUND)
        self.group.refresh_from_db()
        self.assertEqual(self.group.members_count, 1)

    def test_private_group_hidden(self):
        private = make_group(self.creator, name='Backstage', is_public=False)

        self.assertEqual(
            self.client.get(reverse('group-detail', args=[private.id])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertEqual(
            self.client.post(reverse('group-membership', args=[private.id])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        names = [g['name'] for g in self.client.get(reverse('group-list')).data]
        self.assertNotIn('Backstage', names)

    def test_members_and_roles(self):
        join_group(self.member, self.group.id)
        detail = reverse('group-member-detail', args=[self.group.id, self.member.id])

        members = self.client.get(reverse('group-members', args=[self.group.id]))
        self.assertEqual(len(members.data), 2)

        self.assertEqual(
            self.client.patch(detail, {'role': 'moderator'}).status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self.client.force_authenticate(self.creator)
        response = self.client.patch(detail, {'role': 'moderator'})
        self.assertEqual(response.data['role'], 'moderator')

        self.assertEqual(self.client.delete(detail).status_code, status.HTTP_204_NO_CONTENT)
        self.group.refresh_from_db()
        self.assertEqual(self.group.members_count, 1)

    def test_remove_non_member(self):
        self.client.force_authenticate(self.creator)
        outsider = make_user('outsider')

        response = self.client.delete(
            reverse('group-member-detail', args=[self.group.id, outsider.id])
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'NotAMember')

    def test_counters_read_only_on_group_update(self):
        self.client.force_authenticate(self.creator)

        response = self.client.patch(
            reverse('group-detail', args=[self.group.id]),
            {'description': 'All breeds welcome', 'members_count': 999},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.group.refresh_from_db()
        self.assertEqual(self.group.members_count, 1)
        self.assertEqual(self.group.description, 'All breeds welcome')

    def test_non_creator_cannot_edit_group(self):
        response = self.client.patch(
            reverse('group-detail', args=[self.group.id]), {'description': 'mine now'}
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PetAndEventAPITestCase(APITestCase):

    def setUp(self):
        self.owner = make_user('owner')
        self.other = make_user('other')
        self.client.force_authenticate(self.owner)

    def test_pet_crud(self):
        response = self.client.post(reverse('pet-list'), {'name': 'Mochi', 'type': 'Cat'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        pet_url = reverse('pet-detail', args=[response.data['id']])

        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.get(pet_url).status_code, status.HTTP_200_OK)
        self.assertEqual(
            self.client.patch(pet_url, {'name': 'Stolen'}).status_code,
            status.HTTP_403_FORBIDDEN,
        )

    def test_pet_age_months(self):
        response = self.client.post(
            reverse('pet-list'), {'name': 'Pip', 'type': 'Dog', 'age_months': 14}
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_events_are_private(self):
        pet = make_pet(self.owner)
        response = self.client.post(reverse('event-list'), {
            'title': 'Vet visit',
            'event_type': Event.EventType.VET_APPOINTMENT,
            'event_date': (timezone.now() + timedelta(days=1)).isoformat(),
            'pet_id': str(pet.id),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        event_url = reverse('event-detail', args=[response.data['id']])

        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.get(event_url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(reverse('event-list')).data, [])

    def test_event_for_foreign_pet(self):
        pet = make_pet(self.other)

        response = self.client.post(reverse('event-list'), {
            'title': 'Not mine',
            'event_type': Event.EventType.GROOMING,
            'event_date': (timezone.now() + timedelta(days=1)).isoformat(),
            'pet_id': str(pet.id),
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class NotificationAPITestCase(APITestCase):

    def setUp(self):
        self.author = make_user('author')
        self.fan = make_user('fan')
        post = make_post(self.author)
        like_post(self.fan, post.id)
        add_comment(self.fan, post.id, 'Great photo')
        self.client.force_authenticate(self.author)

    def test_inbox(self):
        response = self.client.get(reverse('notification-list'))

        self.assertEqual(response.data['unread_count'], 2)
        self.assertEqual(len(response.data['results']), 2)

    def test_mark_read_and_read_all(self):
        notification = Notification.objects.filter(recipient=self.author).first()

        response = self.client.post(reverse('notification-read', args=[notification.id]))
        self.assertTrue(response.data['is_read'])

        response = self.client.post(reverse('notification-read-all'))
        self.assertEqual(response.data['updated'], 1)
        unread = self.client.get(reverse('notification-list'), {'unread': 1})
        self.assertEqual(unread.data['results'], [])

    def test_cannot_touch_others_notifications(self):
        notification = Notification.objects.filter(recipient=self.author).first()
        self.client.force_authenticate(self.fan)

        response = self.client.delete(reverse('notification-detail', args=[notification.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
