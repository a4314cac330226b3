from django.contrib.auth import get_user_model

from cards.models import ProfileCard
from cards.store import ProfileCardStore
from match.oracle import MatchOracleAdapter, Suggestion
from match.services import PotentialMatchEngine
from match.store import PotentialMatchStore

User = get_user_model()


def make_matcher(username, display_name=None):
    return User.objects.create_user(username=username, password="pass1234", display_name=display_name)


def make_card(matcher, friend_name, **fields):
    data = {
        'friend_name': friend_name,
        'bio': f"{friend_name} likes long walks.",
        'friend_email': f"{friend_name.lower().replace(' ', '.')}@example.com",
    }
    data.update(fields)
    return ProfileCardStore().create(data, owner_id=matcher.id, owner_name=matcher.matcher_name)


def reload(card):
    return ProfileCard.objects.get(pk=card.pk)


class StubBackend:
    """Suggests every pool card, or a fixed list of (candidate_id, score, reason)."""

    def __init__(self, suggestions=None, score=80, error=None):
        self.suggestions = suggestions
        self.score = score
        self.error = error
        self.calls = []

    def suggest(self, target, pool):
        self.calls.append((target, list(pool)))
        if self.error is not None:
            raise self.error
        if self.suggestions is not None:
            return [Suggestion(*item) for item in self.suggestions]
        return [Suggestion(card.id, self.score, f"{target.name} fits {card.name}") for card in pool]

    @property
    def last_pool_ids(self):
        return [card.id for card in self.calls[-1][1]]


class RecordingDispatcher:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def send(self, match_id, friend_a, friend_b):
        self.calls.append((match_id, friend_a, friend_b))
        if self.error is not None:
            raise self.error
        return 2


def make_engine(backend=None, dispatcher=None, **options):
    return PotentialMatchEngine(
        card_store=ProfileCardStore(),
        match_store=PotentialMatchStore(),
        oracle=MatchOracleAdapter(backend or StubBackend(), limit=5),
        dispatcher=dispatcher or RecordingDispatcher(),
        **options
    )
