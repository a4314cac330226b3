# match/advice.py
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from openai import OpenAI

from .exceptions import OracleUnavailable
from .models import PotentialMatch
from .oracle import CardSummary

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 80

ADVICE_PROMPT = (
    'You are an expert matchmaker, skilled at analysing profiles and feedback to give actionable advice.\n\n'
    'Based on the friend profile, the recommender profile and the match feedback below, suggest advice tags '
    'the recommender can use to improve future match suggestions.\n'
    'Consider shared interests, relationship goals, communication styles and any specific preferences mentioned. '
    'Keep each tag short, specific and easy to act on. Give at most {limit} tags.\n\n'
    'Return ONLY valid JSON with this exact schema:\n'
    '{{"adviceTags": ["<tag>", ...]}}\n\n'
    'Friend profile:\n{profile}\n\n'
    'Recommender profile:\n{recommender}\n\n'
    'Match feedback:\n{feedback}\n'
)


@dataclass(frozen=True)
class RecommenderSummary:
    name: str
    card_count: int = 0

    def to_prompt(self) -> str:
        return f"{self.name}, matchmaker for {self.card_count} friend(s)"


@dataclass(frozen=True)
class MatchFeedback:
    """One past proposal, seen from the side of the card asking for advice."""

    other_name: str
    compatibility_score: int
    compatibility_reason: str
    stage: str
    own_matcher: str
    other_matcher: str
    own_friend: Optional[str] = None
    other_friend: Optional[str] = None

    @classmethod
    def from_match(cls, match, card_id) -> 'MatchFeedback':
        own_is_a = match.profile_card_a_id == card_id
        other_card = match.profile_card_b if own_is_a else match.profile_card_a
        return cls(
            other_name=other_card.friend_name,
            compatibility_score=match.compatibility_score,
            compatibility_reason=match.compatibility_reason or '',
            stage=match.stage,
            own_matcher=match.status_matcher_a if own_is_a else match.status_matcher_b,
            other_matcher=match.status_matcher_b if own_is_a else match.status_matcher_a,
            own_friend=match.status_friend_a if own_is_a else match.status_friend_b,
            other_friend=match.status_friend_b if own_is_a else match.status_friend_a,
        )

    @property
    def declined_by_our_side(self) -> bool:
        return PotentialMatch.REJECTED in (self.own_matcher, self.own_friend)

    @property
    def declined_by_their_side(self) -> bool:
        return PotentialMatch.REJECTED in (self.other_matcher, self.other_friend)

    def to_prompt(self) -> str:
        return (
            f"- With {self.other_name} (score {self.compatibility_score}, {self.stage}): "
            f"our matcher {self.own_matcher}, their matcher {self.other_matcher}, "
            f"our friend {self.own_friend or 'not asked'}, their friend {self.other_friend or 'not asked'}. "
            f"Suggested because: {self.compatibility_reason or 'no reason given'}"
        )


@dataclass
class AdviceResult:
    card_id: int
    advice_tags: List[str] = field(default_factory=list)
    feedback_count: int = 0


def sanitize_tags(raw, limit: int) -> List[str]:
    """Trim, collapse whitespace, drop blanks and case-insensitive repeats, cap the count."""
    seen = set()
    tags = []
    for tag in raw or []:
        if not isinstance(tag, str):
            continue
        text = ' '.join(tag.split())[:MAX_TAG_LENGTH]
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        tags.append(text)
    return tags[:limit]


def _load_reply(text: str):
    try:
        return json.loads(text)
    except ValueError:
        pass
    for opening, closing in (('{', '}'), ('[', ']')):
        start = text.find(opening)
        end = text.rfind(closing)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except ValueError:
                continue
    raise OracleUnavailable("Advice service returned malformed JSON.")


def parse_advice_tags(text: str) -> List[str]:
    """Accept ``{"adviceTags": [...]}``, ``{"advice_tags": [...]}`` or a bare JSON array."""
    if not text:
        raise OracleUnavailable("Advice service returned an empty reply.")
    parsed = _load_reply(text)
    if isinstance(parsed, dict):
        parsed = parsed.get('adviceTags', parsed.get('advice_tags'))
    if not isinstance(parsed, list):
        raise OracleUnavailable("Advice service reply has no advice tag list.")
    return [item for item in parsed if isinstance(item, str)]


# ---------------------------
# Backends
# ---------------------------
class OpenAIMatchAdvisor:
    """Advice tags from an OpenAI chat completion."""

    def __init__(self, api_key=None, model=None, timeout=None, limit=None, client=None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_ADVICE_MODEL
        self.timeout = timeout if timeout is not None else settings.OPENAI_TIMEOUT
        self.limit = limit if limit is not None else settings.MATCH_ADVICE_TAG_LIMIT
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise OracleUnavailable("OpenAI API key is not configured.")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=settings.OPENAI_MAX_RETRIES)
        return self._client

    def render_prompt(self, card: CardSummary, recommender: RecommenderSummary,
                      feedback: List[MatchFeedback]) -> str:
        return ADVICE_PROMPT.format(
            limit=self.limit,
            profile=card.to_prompt(),
            recommender=recommender.to_prompt(),
            feedback='\n'.join(item.to_prompt() for item in feedback) or 'No match attempts yet.',
        )

    def advise(self, card: CardSummary, recommender: RecommenderSummary,
               feedback: List[MatchFeedback]) -> List[str]:
        prompt = self.render_prompt(card, recommender, feedback)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': 'Return only valid JSON.'},
                    {'role': 'user', 'content': prompt},
                ],
            )
            content = (response.choices[0].message.content or '').strip()
        except OracleUnavailable:
            raise
        except Exception as e:
            logger.error(f"OpenAI advice request failed for card {card.id}: {e}")
            raise OracleUnavailable(f"Advice service request failed: {e}")

        return parse_advice_tags(content)


class FeedbackHeuristicAdvisor:
    """Deterministic local advisor built on card completeness and past outcomes."""

    def advise(self, card: CardSummary, recommender: RecommenderSummary,
               feedback: List[MatchFeedback]) -> List[str]:
        prefs = card.preferences
        tags = []
        if len(card.interests) < 3:
            tags.append("List at least three interests")
        if len(card.bio.split()) < 12:
            tags.append("Write a fuller bio")
        if not prefs.get('seeking'):
            tags.append("Say what your friend is seeking")
        age_min, age_max = prefs.get('age_min'), prefs.get('age_max')
        if age_min is not None and age_max is not None and age_max - age_min < 5:
            tags.append("Widen the preferred age range")

        if not feedback:
            tags.append("Run a match search to gather feedback")
            return tags

        total = len(feedback)
        if sum(item.declined_by_our_side for item in feedback) * 2 > total:
            tags.append("Tighten preferences to reflect past rejections")
        if sum(item.declined_by_their_side for item in feedback) * 2 > total:
            tags.append("Highlight what makes your friend stand out")
        if sum(item.compatibility_score for item in feedback) / total < 50:
            tags.append("Favour candidates with shared interests")
        if any(item.own_matcher == PotentialMatch.PENDING for item in feedback):
            tags.append("Review pending suggestions")
        return tags or ["Keep the card up to date"]
