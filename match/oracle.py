# match/oracle.py
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings
from openai import OpenAI

from .exceptions import OracleUnavailable

logger = logging.getLogger(__name__)

OUTCOME_SUGGESTED = 'suggested'
OUTCOME_NO_CANDIDATES = 'no_candidates'

GENDER_FOR_PREFERENCE = {
    'men': 'man',
    'women': 'woman',
    'other': 'other',
}

MATCH_PROMPT = (
    'You are a matchmaking assistant. Compare the target profile card with each candidate card '
    'and pick the best potential matches.\n\n'
    'Key matching criteria:\n'
    '1) Age: each friend\'s age should fall in the other card\'s preferred age range.\n'
    '2) Gender: each friend\'s gender must fit the gender the other card is interested in. '
    'Be flexible when a value is "other" or missing.\n'
    '3) Location: postal codes and preferred distance should suggest they could realistically meet.\n'
    '4) Education and occupation: reward lifestyle alignment, never penalise missing data.\n'
    '5) Seeking: relationship goals should be compatible.\n'
    '6) Shared interests and complementary bios.\n\n'
    'Never suggest the target card itself. Suggest at most {limit} cards, ranked from most to least '
    'compatible. Score each from 0 to 100 and explain the fit in 2-3 sentences.\n\n'
    'Return ONLY valid JSON with this exact schema:\n'
    '{{"suggestions": [{{"candidate_id": <card id>, "compatibility_score": <integer 0-100>, '
    '"compatibility_reason": "<2-3 sentences>"}}]}}\n'
    'Return {{"suggestions": []}} when no candidate is a good match.\n\n'
    'Target profile card:\n{target}\n\n'
    'Candidate profile cards:\n{candidates}\n'
)


@dataclass(frozen=True)
class CardSummary:
    id: int
    name: str
    bio: str = ''
    interests: List[str] = field(default_factory=list)
    preferences: Dict[str, Any] = field(default_factory=dict)
    age: Optional[int] = None
    gender: str = ''
    postal_code: str = ''
    education: str = ''
    occupation: str = ''

    @classmethod
    def from_card(cls, card) -> 'CardSummary':
        return cls(
            id=card.id,
            name=card.friend_name,
            bio=card.bio or '',
            interests=list(card.interests or []),
            preferences={
                'age_min': card.preferred_age_min,
                'age_max': card.preferred_age_max,
                'seeking': list(card.seeking or []),
                'gender': card.preferred_gender,
                'max_distance_km': card.max_distance_km,
            },
            age=card.friend_age,
            gender=card.friend_gender or '',
            postal_code=card.friend_postal_code or '',
            education=card.get_education_level_display() if card.education_level else '',
            occupation=card.occupation or '',
        )

    def to_prompt(self) -> str:
        prefs = self.preferences
        age_range = f"{prefs.get('age_min') or ''}-{prefs.get('age_max') or ''}".strip('-')
        distance = prefs.get('max_distance_km')
        lines = [
            f"- Card ID: {self.id}",
            f"  Name: {self.name}",
            f"  Age: {self.age or 'Not provided'}",
            f"  Gender: {self.gender or 'Not provided'}",
            f"  Postal code: {self.postal_code or 'Not provided'}",
            f"  Education: {self.education or 'Not provided'}",
            f"  Occupation: {self.occupation or 'Not provided'}",
            f"  Bio: {self.bio}",
            f"  Interests: {', '.join(self.interests)}",
            f"  Preferred age range: {age_range or 'Any'}",
            f"  Seeking: {', '.join(prefs.get('seeking') or []) or 'Not provided'}",
            f"  Interested in: {prefs.get('gender') or 'any'}",
            f"  Preferred proximity: {f'{distance} km' if distance else 'Not provided'}",
        ]
        return '\n'.join(lines)


@dataclass(frozen=True)
class Suggestion:
    candidate_id: int
    compatibility_score: int
    compatibility_reason: str


@dataclass(frozen=True)
class OracleResult:
    outcome: str
    suggestions: List[Suggestion] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.suggestions


# ---------------------------
# Adapter
# ---------------------------
class MatchOracleAdapter:
    """Wraps a scoring backend and enforces the suggestion contract.

    Backends may be remote and probabilistic, so their raw output is never
    trusted: scores are clamped, unknown ids and the target are dropped, each
    candidate appears at most once, and the list is ranked and truncated.
    """

    def __init__(self, backend, limit: Optional[int] = None):
        self.backend = backend
        self.limit = limit if limit is not None else settings.MATCH_SUGGESTION_LIMIT

    def suggest(self, target: Optional[CardSummary], pool: List[CardSummary]) -> OracleResult:
        if target is None:
            return OracleResult(outcome=OUTCOME_NO_CANDIDATES)

        pool = [card for card in pool if card.id != target.id]
        if not pool:
            return OracleResult(outcome=OUTCOME_NO_CANDIDATES)

        raw = self.backend.suggest(target, pool)
        return OracleResult(outcome=OUTCOME_SUGGESTED, suggestions=self._sanitize(raw, target, pool))

    def _sanitize(self, raw, target: CardSummary, pool: List[CardSummary]) -> List[Suggestion]:
        known = {str(card.id): card.id for card in pool}
        seen = set()
        cleaned = []
        for item in raw or []:
            candidate_id = known.get(str(item.candidate_id))
            if candidate_id is None or candidate_id == target.id:
                logger.info(f"Oracle suggestion dropped: unknown candidate {item.candidate_id!r} for card {target.id}")
                continue
            if candidate_id in seen:
                continue
            try:
                score = int(round(float(item.compatibility_score)))
            except (TypeError, ValueError, OverflowError):
                logger.info(f"Oracle suggestion dropped: bad score {item.compatibility_score!r} for card {candidate_id}")
                continue
            seen.add(candidate_id)
            cleaned.append(Suggestion(
                candidate_id=candidate_id,
                compatibility_score=max(0, min(100, score)),
                compatibility_reason=str(item.compatibility_reason or '').strip(),
            ))
        # stable sort keeps the backend's order among equal scores
        cleaned.sort(key=lambda s: s.compatibility_score, reverse=True)
        return cleaned[:self.limit]


# ---------------------------
# Backends
# ---------------------------
class OpenAIMatchOracle:
    """Remote scorer backed by an OpenAI chat completion."""

    def __init__(self, api_key=None, model=None, timeout=None, limit=None, client=None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MATCH_MODEL
        self.timeout = timeout if timeout is not None else settings.OPENAI_TIMEOUT
        self.limit = limit if limit is not None else settings.MATCH_SUGGESTION_LIMIT
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise OracleUnavailable("OpenAI API key is not configured.")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=settings.OPENAI_MAX_RETRIES)
        return self._client

    def render_prompt(self, target: CardSummary, pool: List[CardSummary]) -> str:
        return MATCH_PROMPT.format(
            limit=self.limit,
            target=target.to_prompt(),
            candidates='\n'.join(card.to_prompt() for card in pool),
        )

    def suggest(self, target: CardSummary, pool: List[CardSummary]) -> List[Suggestion]:
        prompt = self.render_prompt(target, pool)
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
            logger.error(f"OpenAI match request failed for card {target.id}: {e}")
            raise OracleUnavailable(f"Compatibility service request failed: {e}")

        return parse_suggestions(content)


def _extract_json(text: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except ValueError:
        start = text.find('{')
        end = text.rfind('}')
        if start != -1 and end > start:
            return json.loads(text[start:end + 1])
        raise


def parse_suggestions(text: str) -> List[Suggestion]:
    """Parse a ``{"suggestions": [...]}`` reply, tolerating prose around the JSON."""
    if not text:
        raise OracleUnavailable("Compatibility service returned an empty reply.")
    try:
        parsed = _extract_json(text)
    except ValueError:
        raise OracleUnavailable("Compatibility service returned malformed JSON.")

    items = parsed.get('suggestions') if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        raise OracleUnavailable("Compatibility service reply has no suggestions list.")

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        candidate_id = item.get('candidate_id', item.get('candidateId', item.get('matchedProfileCardId')))
        if candidate_id is None:
            continue
        suggestions.append(Suggestion(
            candidate_id=candidate_id,
            compatibility_score=item.get('compatibility_score', item.get('compatibilityScore', 0)),
            compatibility_reason=str(item.get('compatibility_reason', item.get('compatibilityReason', ''))).strip()[:500],
        ))
    return suggestions


class PreferenceOverlapOracle:
    """Deterministic local scorer.

    Pairs failing either side's age or gender preference are left out; the
    rest are scored on shared interests, shared relationship goals and bio
    word overlap.
    """

    BASE_SCORE = 30
    INTEREST_WEIGHT = 35
    SEEKING_WEIGHT = 20
    BIO_WEIGHT = 15

    def suggest(self, target: CardSummary, pool: List[CardSummary]) -> List[Suggestion]:
        suggestions = []
        for candidate in pool:
            if not (self._fits(target, candidate) and self._fits(candidate, target)):
                continue
            suggestions.append(self._score(target, candidate))
        suggestions.sort(key=lambda s: s.compatibility_score, reverse=True)
        return suggestions

    def _fits(self, seeker: CardSummary, other: CardSummary) -> bool:
        """Does ``other`` satisfy what ``seeker`` is looking for."""
        prefs = seeker.preferences
        if other.age is not None:
            if prefs.get('age_min') is not None and other.age < prefs['age_min']:
                return False
            if prefs.get('age_max') is not None and other.age > prefs['age_max']:
                return False
        wanted = GENDER_FOR_PREFERENCE.get(prefs.get('gender') or 'any')
        if wanted and other.gender and other.gender != wanted:
            return False
        return True

    def _score(self, target: CardSummary, candidate: CardSummary) -> Suggestion:
        shared_interests = _normalized(target.interests) & _normalized(candidate.interests)
        shared_seeking = (
            _normalized(target.preferences.get('seeking') or [])
            & _normalized(candidate.preferences.get('seeking') or [])
        )
        target_words = _words(target.bio)
        bio_overlap = len(target_words & _words(candidate.bio)) / max(1, len(target_words))

        score = (
            self.BASE_SCORE
            + self.INTEREST_WEIGHT * _ratio(shared_interests, target.interests, candidate.interests)
            + self.SEEKING_WEIGHT * (1 if shared_seeking else 0)
            + self.BIO_WEIGHT * bio_overlap
        )

        if shared_interests:
            reason = f"{target.name} and {candidate.name} share {', '.join(sorted(shared_interests))}."
        else:
            reason = f"{target.name} and {candidate.name} fit each other's stated preferences."
        if shared_seeking:
            reason += f" Both are looking for {', '.join(sorted(shared_seeking))}."

        return Suggestion(
            candidate_id=candidate.id,
            compatibility_score=int(min(100, round(score))),
            compatibility_reason=reason,
        )


def _normalized(tags) -> set:
    return {str(tag).strip().lower() for tag in tags if str(tag).strip()}


def _words(text: str) -> set:
    return {word for word in re.findall(r'[a-z]+', (text or '').lower()) if len(word) > 3}


def _ratio(shared: set, left, right) -> float:
    smaller = min(len(_normalized(left)), len(_normalized(right)))
    return len(shared) / smaller if smaller else 0.0
