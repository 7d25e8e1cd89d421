"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data

Everything goes through community.services, so the seeded counters are
consistent by construction (check with `manage.py recount_counters --check`).
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.utils import timezone

from community.models import Event, Group, Notification, Pet, Post, Profile
from community.services import (
    add_comment, create_group, create_post, create_profile, join_group, like_post
)


class Command(BaseCommand):
    help = 'Seed the database with sample data for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=10,
            help='Number of users to create'
        )
        parser.add_argument(
            '--posts',
            type=int,
            default=20,
            help='Number of posts to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=100,
            help='Number of comments to create'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Notification.objects.all().delete()
            Event.objects.all().delete()
            Group.objects.all().delete()
            Post.objects.all().delete()
            Pet.objects.all().delete()
            Profile.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating pets...')
        pets = self._create_pets(users)

        self.stdout.write('Creating posts...')
        posts = self._create_posts(users, pets, options['posts'])

        self.stdout.write('Creating comments...')
        comment_count = self._create_comments(users, posts, options['comments'])

        self.stdout.write('Creating likes...')
        self._create_likes(users, posts)

        self.stdout.write('Creating groups...')
        groups = self._create_groups(users)

        self.stdout.write('Creating events...')
        event_count = self._create_events(pets)

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {len(pets)} pets\n'
            f'  - {len(posts)} posts\n'
            f'  - {comment_count} comments\n'
            f'  - {len(groups)} groups\n'
            f'  - {event_count} events\n'
            f'  - Likes, memberships and notifications'
        ))

    def _create_users(self, count):
        first_names = ['Alex', 'Sam', 'Jordan', 'Taylor', 'Casey', 'Riley', 'Morgan', 'Jamie']
        users = []
        for i in range(count):
            username = f'user{i+1}'
            user, created = User.objects.get_or_create(
                username=username,
                defaults={'email': f'{username}@example.com'}
            )
            if created:
                user.set_password('password123')
                user.save(update_fields=['password'])
            if not Profile.objects.filter(user=user).exists():
                create_profile(user, f'{random.choice(first_names)} {i+1}', location='Springfield')
            users.append(user)
        return users

    def _create_pets(self, users):
        kinds = [
            ('Dog', ['Labrador', 'Beagle', 'Corgi', 'Poodle']),
            ('Cat', ['Siamese', 'Maine Coon', 'Tabby']),
            ('Rabbit', ['Holland Lop', 'Rex']),
        ]
        names = ['Biscuit', 'Luna', 'Milo', 'Pepper', 'Nala', 'Ziggy', 'Mochi', 'Olive']
        pets = []
        for user in users:
            for _ in range(random.randint(1, 2)):
                kind, breeds = random.choice(kinds)
                pets.append(Pet.objects.create(
                    owner=user,
                    name=random.choice(names),
                    type=kind,
                    breed=random.choice(breeds),
                    age_years=random.randint(0, 12),
                    gender=random.choice(Pet.Gender.values),
                    is_vaccinated=random.random() < 0.8,
                ))
        return pets

    def _create_posts(self, users, pets, count):
        contents = [
            "First day at the dog park and they made three new friends!",
            "Any tips for getting a cat to like the carrier?",
            "Vet visit went great, all vaccinations up to date.",
            "Tried a new puzzle feeder today. Ten minutes, solved.",
            "Sunday nap mode: activated.",
        ]
        posts = []
        for i in range(count):
            author = random.choice(users)
            own_pets = [pet for pet in pets if pet.owner_id == author.id]
            post = create_post(
                author,
                f"{random.choice(contents)} #{i+1}",
                pet_id=random.choice(own_pets).id if own_pets else None,
            )
            Post.objects.filter(id=post.id).update(
                created_at=timezone.now() - timedelta(hours=random.randint(0, 48))
            )
            posts.append(post)
        return posts

    def _create_comments(self, users, posts, count):
        comment_texts = [
            "So cute!",
            "Ours does exactly the same thing.",
            "Thanks for sharing!",
            "Which brand is that?",
            "Give them a scratch from me.",
        ]
        for _ in range(count):
            add_comment(random.choice(users), random.choice(posts).id, random.choice(comment_texts))
        return count

    def _create_likes(self, users, posts):
        for post in posts:
            likers = random.sample(users, k=len(users) // 2)
            for liker in likers:
                like_post(liker, post.id)

    def _create_groups(self, users):
        specs = [
            ('Dog Lovers', 'dogs', True),
            ('Cat Corner', 'cats', True),
            ('Senior Pets Support', 'health', True),
            ('Neighbourhood Walkers', 'local', False),
        ]
        groups = []
        for name, category, is_public in specs:
            creator = random.choice(users)
            group = create_group(creator, name, category, is_public=is_public)
            if is_public:
                for member in random.sample(users, k=len(users) // 2):
                    if member.id != creator.id:
                        join_group(member, group.id)
            groups.append(group)
        return groups

    def _create_events(self, pets):
        count = 0
        for pet in pets:
            if random.random() < 0.5:
                Event.objects.create(
                    owner_id=pet.owner_id,
                    pet=pet,
                    title=f"{pet.name}'s checkup",
                    event_type=random.choice(Event.EventType.values),
                    event_date=timezone.now() + timedelta(hours=random.randint(2, 24 * 14)),
                )
                count += 1
        return count
