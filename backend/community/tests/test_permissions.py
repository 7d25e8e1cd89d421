"""
Tests for row-level access policies.
"""

from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, TestCase

from community.exceptions import AccessDenied
from community.models import Event, Group, Notification, Pet, Post, Profile
from community.notifications import notify
from community.permissions import (
    READ, WRITE, RowLevelPolicy, authorize, can_read, can_write, visible
)
from community.services import create_profile

from .factories import make_event, make_group, make_pet, make_post, make_user


class RowPolicyTestCase(TestCase):

    def setUp(self):
        self.owner = make_user('owner')
        self.other = make_user('other')

    def test_public_rows_readable_by_any_member(self):
        post = make_post(self.owner)
        pet = make_pet(self.owner)

        self.assertTrue(can_read(self.other, post))
        self.assertTrue(can_read(self.other, pet))
        self.assertFalse(can_write(self.other, post))
        self.assertFalse(can_write(self.other, pet))
        self.assertTrue(can_write(self.owner, post))

    def test_private_rows_only_for_owner(self):
        event = make_event(self.owner)
        notification = notify(self.owner, Notification.Type.FEATURE, 'New', 'Try the calendar')

        self.assertTrue(can_read(self.owner, event))
        self.assertFalse(can_read(self.other, event))
        self.assertFalse(can_read(self.other, notification))

    def test_profile_is_private(self):
        profile = create_profile(self.owner, 'Olive Owner')

        self.assertTrue(can_read(self.owner, profile))
        self.assertFalse(can_read(self.other, profile))

    def test_group_visibility(self):
        public = make_group(self.owner)
        private = make_group(self.owner, name='Secret Society', is_public=False)

        self.assertTrue(can_read(self.other, public))
        self.assertFalse(can_read(self.other, private))
        self.assertTrue(can_read(self.owner, private))
        self.assertFalse(can_write(self.other, public))

    def test_anonymous_user_sees_nothing(self):
        post = make_post(self.owner)
        anonymous = AnonymousUser()

        self.assertFalse(can_read(anonymous, post))
        self.assertFalse(can_write(anonymous, post))
        self.assertFalse(visible(anonymous, Post).exists())

    def test_authorize(self):
        post = make_post(self.owner)

        authorize(self.other, READ, post)
        authorize(self.owner, WRITE, post)
        with self.assertRaises(AccessDenied):
            authorize(self.other, WRITE, post)

    def test_visible_filters_private_models(self):
        make_event(self.owner)
        make_event(self.other, title='Nail trim')
        make_group(self.owner, name='Open House')
        make_group(self.owner, name='Closed Door', is_public=False)
        make_group(self.other, name='Other Closed', is_public=False)

        self.assertEqual(visible(self.owner, Event).count(), 1)
        self.assertEqual(
            set(visible(self.other, Group).values_list('name', flat=True)),
            {'Open House', 'Other Closed'},
        )

    def test_visible_accepts_queryset(self):
        make_pet(self.owner, name='Luna')
        make_pet(self.other, name='Milo')

        pets = visible(self.other, Pet.objects.filter(name='Luna'))

        self.assertEqual(list(pets.values_list('name', flat=True)), ['Luna'])

    def test_unregistered_model(self):
        with self.assertRaises(LookupError):
            can_read(self.owner, self.other)

    def test_profile_rows(self):
        create_profile(self.owner, 'Olive')
        create_profile(self.other, 'Otto')

        self.assertEqual(list(visible(self.owner, Profile)), [self.owner.profile])


class RowLevelPolicyPermissionTestCase(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.permission = RowLevelPolicy()
        self.owner = make_user('owner')
        self.other = make_user('other')
        self.pet = make_pet(self.owner)

    def _request(self, method, user):
        request = getattr(self.factory, method)('/api/pets/')
        request.user = user
        return request

    def test_safe_method_uses_read_policy(self):
        request = self._request('get', self.other)

        self.assertTrue(self.permission.has_permission(request, None))
        self.assertTrue(self.permission.has_object_permission(request, None, self.pet))

    def test_unsafe_method_uses_write_policy(self):
        self.assertFalse(
            self.permission.has_object_permission(self._request('patch', self.other), None, self.pet)
        )
        self.assertTrue(
            self.permission.has_object_permission(self._request('delete', self.owner), None, self.pet)
        )

    def test_anonymous_rejected(self):
        request = self._request('get', AnonymousUser())

        self.assertFalse(self.permission.has_permission(request, None))
