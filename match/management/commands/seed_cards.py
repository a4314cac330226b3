from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from cards.models import ProfileCard
from cards.store import ProfileCardStore

User = get_user_model()

MATCHERS = [
    {'username': 'sarah', 'display_name': 'Sarah Miller', 'email': 'sarah@example.com'},
    {'username': 'david', 'display_name': 'David Chen', 'email': 'david@example.com'},
    {'username': 'maria', 'display_name': 'Maria Garcia', 'email': 'maria@example.com'},
]

CARDS = [
    {
        'matcher': 'sarah',
        'friend_name': 'Emma Wilson',
        'friend_email': 'emma@example.com',
        'friend_age': 29,
        'friend_gender': 'woman',
        'friend_postal_code': 'M5V2T6',
        'education_level': 'master',
        'occupation': 'Architect',
        'bio': 'Weekend hiker and amateur potter who loves slow mornings and long conversations.',
        'interests': ['hiking', 'pottery', 'jazz', 'travel'],
        'preferred_age_min': 27,
        'preferred_age_max': 36,
        'seeking': ['long-term relationship'],
        'preferred_gender': 'men',
        'max_distance_km': 30,
    },
    {
        'matcher': 'david',
        'friend_name': 'Liam Brooks',
        'friend_email': 'liam@example.com',
        'friend_age': 32,
        'friend_gender': 'man',
        'friend_postal_code': 'M4P2G2',
        'education_level': 'bachelor',
        'occupation': 'Software engineer',
        'bio': 'Trail runner and jazz fan, happiest cooking for friends after a long hike.',
        'interests': ['hiking', 'jazz', 'cooking'],
        'preferred_age_min': 26,
        'preferred_age_max': 34,
        'seeking': ['long-term relationship'],
        'preferred_gender': 'women',
        'max_distance_km': 25,
    },
    {
        'matcher': 'maria',
        'friend_name': 'Noah Patel',
        'friend_email': 'noah@example.com',
        'friend_age': 35,
        'friend_gender': 'man',
        'friend_postal_code': 'M6J1E6',
        'education_level': 'doctorate',
        'occupation': 'Physician',
        'bio': 'Busy doctor who unwinds with board games, travel and a good documentary.',
        'interests': ['travel', 'board games', 'documentaries'],
        'preferred_age_min': 28,
        'preferred_age_max': 38,
        'seeking': ['long-term relationship', 'companionship'],
        'preferred_gender': 'women',
        'max_distance_km': 40,
    },
    {
        'matcher': 'maria',
        'friend_name': 'Olivia Martin',
        'friend_email': 'olivia@example.com',
        'friend_age': 31,
        'friend_gender': 'woman',
        'friend_postal_code': 'M5R1A1',
        'education_level': 'bachelor',
        'occupation': 'Teacher',
        'bio': 'Grade school teacher, book club organiser and a terrible but enthusiastic cook.',
        'interests': ['reading', 'cooking', 'board games'],
        'preferred_age_min': 29,
        'preferred_age_max': 40,
        'seeking': ['companionship'],
        'preferred_gender': 'men',
        'max_distance_km': 20,
    },
]


class Command(BaseCommand):
    help = 'Seed demo matchers and profile cards.'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='wingman-demo', help='Password for the demo matchers.')

    @transaction.atomic
    def handle(self, *args, **options):
        matchers = {}
        for item in MATCHERS:
            user = User.objects.filter(username=item['username']).first()
            if user is None:
                user = User.objects.create_user(password=options['password'], **item)
            matchers[item['username']] = user

        store = ProfileCardStore()
        created = 0
        for item in CARDS:
            data = dict(item)
            owner = matchers[data.pop('matcher')]
            if ProfileCard.objects.filter(matcher=owner, friend_name=data['friend_name']).exists():
                continue
            store.create(data, owner_id=owner.id, owner_name=owner.matcher_name)
            created += 1

        self.stdout.write(self.style.SUCCESS(f'Seeded {len(matchers)} matchers and {created} profile cards.'))
