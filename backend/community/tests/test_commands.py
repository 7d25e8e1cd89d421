"""
Tests for management commands and admin counter handling.
"""

from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch

from django.contrib import admin
from django.core.management import CommandError, call_command
from django.test import TestCase

from community.admin import PostAdmin, PostLikeAdmin
from community.counters import POST_LIKES
from community.exceptions import AtomicUpdateFailure
from community.models import Group, Notification, Post, PostLike
from community.services import add_comment, join_group, like_post

from .factories import make_event, make_group, make_post, make_user


class RecountCountersCommandTestCase(TestCase):

    def setUp(self):
        self.author = make_user('author')
        self.fan = make_user('fan')
        self.post = make_post(self.author)
        self.group = make_group(self.author)
        like_post(self.fan, self.post.id)
        add_comment(self.fan, self.post.id, 'Lovely')
        join_group(self.fan, self.group.id)

    def _call(self, *args):
        out = StringIO()
        call_command('recount_counters', *args, stdout=out)
        return out.getvalue()

    def test_clean_database(self):
        output = self._call('--check')

        self.assertIn('post_likes: ok', output)
        self.assertIn('post_comments: ok', output)
        self.assertIn('group_members: ok', output)

    def test_check_reports_drift(self):
        Group.objects.filter(id=self.group.id).update(members_count=10)

        with self.assertRaisesMessage(CommandError, '1 counter(s) out of sync'):
            self._call('--check')

        self.group.refresh_from_db()
        self.assertEqual(self.group.members_count, 10)

    def test_repairs_drift(self):
        Post.objects.filter(id=self.post.id).update(likes_count=0, comments_count=5)

        output = self._call()

        self.assertIn('post_likes: repaired 1', output)
        self.assertIn('post_comments: repaired 1', output)
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 1)
        self.assertEqual(self.post.comments_count, 1)
        self.assertIn('post_likes: ok', self._call('--check'))


class SendEventRemindersCommandTestCase(TestCase):

    def test_sends_and_reports(self):
        owner = make_user('owner')
        make_event(owner, hours_from_now=5)
        make_event(owner, hours_from_now=50, title='Later')
        out = StringIO()

        call_command('send_event_reminders', '--hours', '6', stdout=out)

        self.assertIn('Sent 1 reminder(s)', out.getvalue())
        self.assertEqual(Notification.objects.filter(recipient=owner).count(), 1)


class SeedDataCommandTestCase(TestCase):

    def test_seeded_counters_are_consistent(self):
        call_command('seed_data', '--users', '4', '--posts', '5', '--comments', '10', stdout=StringIO())

        self.assertEqual(Post.objects.count(), 5)
        self.assertIn('post_likes: ok', self._check())

    def _check(self):
        out = StringIO()
        call_command('recount_counters', '--check', stdout=out)
        return out.getvalue()


class AdminCounterTestCase(TestCase):

    def setUp(self):
        self.author = make_user('author')
        self.fan = make_user('fan')
        self.post = make_post(self.author)

    def test_admin_add_and_delete_like(self):
        like_admin = PostLikeAdmin(PostLike, admin.site)

        like_admin.save_model(None, PostLike(post=self.post, user=self.fan), None, False)
        self.assertEqual(POST_LIKES.cached_count(self.post.id), 1)

        like_admin.delete_queryset(None, PostLike.objects.all())
        self.assertEqual(POST_LIKES.cached_count(self.post.id), 0)

    def test_admin_bulk_delete_all_or_nothing(self):
        like_post(self.fan, self.post.id)
        like_post(make_user('other'), self.post.id)
        like_admin = PostLikeAdmin(PostLike, admin.site)

        with patch.object(POST_LIKES, 'adjust', side_effect=[1, AtomicUpdateFailure('down')]):
            with self.assertRaises(AtomicUpdateFailure):
                like_admin.delete_queryset(None, PostLike.objects.all())

        self.assertEqual(PostLike.objects.filter(post=self.post).count(), 2)
        self.assertEqual(POST_LIKES.cached_count(self.post.id), 2)

    def test_admin_post_edit_keeps_count(self):
        stale = Post.objects.get(id=self.post.id)
        like_post(self.fan, self.post.id)

        stale.content = 'Edited by staff'
        PostAdmin(Post, admin.site).save_model(
            None, stale, SimpleNamespace(changed_data=['content']), True
        )

        self.post.refresh_from_db()
        self.assertEqual(self.post.content, 'Edited by staff')
        self.assertEqual(self.post.likes_count, 1)

    def test_counter_fields_read_only(self):
        readonly = PostAdmin(Post, admin.site).get_readonly_fields(None, self.post)

        self.assertIn('likes_count', readonly)
        self.assertIn('comments_count', readonly)
