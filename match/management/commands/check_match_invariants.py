from collections import Counter

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from cards.models import ProfileCard
from cards.store import ProfileCardStore
from match.models import PotentialMatch


class Command(BaseCommand):
    help = (
        'Check potential match bookkeeping: match_attempts against the records that reference '
        'each card, duplicate card pairs, and matched flags against mutual matches.'
    )

    def add_arguments(self, parser):
        parser.add_argument('--repair', action='store_true', help='Fix counters and missing matched flags.')

    def handle(self, *args, **options):
        repair = options['repair']
        problems = 0

        with transaction.atomic():
            pairs = list(PotentialMatch.objects.values_list('id', 'profile_card_a_id', 'profile_card_b_id'))

            references = Counter()
            by_pair = {}
            for match_id, card_a, card_b in pairs:
                references[card_a] += 1
                references[card_b] += 1
                by_pair.setdefault(frozenset((card_a, card_b)), []).append(match_id)

            cards = ProfileCard.objects.select_for_update() if repair else ProfileCard.objects.all()
            for card in cards.order_by('pk'):
                expected = references.get(card.pk, 0)
                if card.match_attempts != expected:
                    problems += 1
                    self.stdout.write(
                        f'Card {card.pk}: match_attempts={card.match_attempts}, records={expected}'
                    )
                    if repair:
                        ProfileCard.objects.filter(pk=card.pk).update(match_attempts=expected)

            for pair, match_ids in by_pair.items():
                if len(match_ids) > 1:
                    problems += 1
                    self.stdout.write(f'Cards {sorted(pair)}: duplicate potential matches {sorted(match_ids)}')

            mutual = PotentialMatch.objects.filter(
                status_friend_a=PotentialMatch.ACCEPTED, status_friend_b=PotentialMatch.ACCEPTED
            ).select_related('profile_card_a', 'profile_card_b')
            mutual_card_ids = set()
            for match in mutual:
                mutual_card_ids.update((match.profile_card_a_id, match.profile_card_b_id))
                unmatched = [
                    card.pk for card in (match.profile_card_a, match.profile_card_b) if not card.is_matched
                ]
                if unmatched:
                    problems += 1
                    self.stdout.write(f'Mutual match {match.pk}: cards {unmatched} are not marked matched')
                    if repair:
                        ProfileCardStore().mark_matched(unmatched)

            orphaned = ProfileCard.objects.filter(match_status=ProfileCard.STATUS_MATCHED).exclude(
                pk__in=mutual_card_ids
            )
            for card in orphaned:
                problems += 1
                self.stdout.write(f'Card {card.pk}: marked matched without a mutual match')

        if not problems:
            self.stdout.write(self.style.SUCCESS('All match invariants hold.'))
        elif repair:
            self.stdout.write(self.style.WARNING(f'{problems} problem(s) found; counters and matched flags repaired.'))
        else:
            raise CommandError(f'{problems} match invariant violation(s) found.')
