# match/services.py
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, transaction
from django.utils.module_loading import import_string

from cards.store import ProfileCardStore
from .advice import AdviceResult, MatchFeedback, RecommenderSummary, sanitize_tags
from .exceptions import (
    MatchEngineError,
    OracleUnavailable,
    PermissionDenied,
    TransientStoreFailure,
    ValidationFailed,
)
from .models import PotentialMatch
from .notifications import FriendSummary, render_introduction_email
from .oracle import CardSummary, MatchOracleAdapter
from .store import PotentialMatchStore

logger = logging.getLogger(__name__)

OUTCOME_CREATED = 'created'
OUTCOME_NO_CANDIDATES = 'no_candidates'
OUTCOME_NO_NEW_MATCHES = 'no_new_matches'

DISPATCHED = 'dispatched'
ALREADY_DISPATCHED = 'already_dispatched'
DELIVERY_FAILED = 'delivery_failed'


@dataclass
class MatchSearchResult:
    target_card_id: int
    created_ids: List[int] = field(default_factory=list)
    duplicates: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    outcome: str = OUTCOME_NO_CANDIDATES


@dataclass
class DispatchResult:
    match_id: int
    outcome: str
    delivered: int = 0


class PotentialMatchEngine:
    """Lifecycle of potential matches: creation, decisions, introduction.

    Every store access runs through ``sync_to_async``; the only state shared
    between concurrent calls lives in the database and the cache.
    """

    def __init__(self, card_store, match_store, oracle, dispatcher,
                 advisor=None, require_card_owner=None, allow_same_matcher=None, search_lock_ttl=None):
        self.card_store = card_store
        self.match_store = match_store
        self.oracle = oracle
        self.dispatcher = dispatcher
        self.advisor = advisor if advisor is not None else import_string(settings.MATCH_ADVICE_BACKEND)()
        self.advice_limit = settings.MATCH_ADVICE_TAG_LIMIT
        self.require_card_owner = (
            settings.MATCH_REQUIRE_CARD_OWNER if require_card_owner is None else require_card_owner
        )
        self.allow_same_matcher = (
            settings.MATCH_ALLOW_SAME_MATCHER if allow_same_matcher is None else allow_same_matcher
        )
        self.search_lock_ttl = settings.MATCH_SEARCH_LOCK_TTL if search_lock_ttl is None else search_lock_ttl

    async def _run(self, func, *args, **kwargs):
        try:
            return await sync_to_async(func)(*args, **kwargs)
        except DatabaseError as e:
            name = getattr(func, '__name__', repr(func))
            logger.error(f"Store failure in {name}: {e}")
            raise TransientStoreFailure(f"Storage failure, please retry: {e}") from e

    # ---------------------------
    # Match search
    # ---------------------------
    async def request_matches(self, target_card_id, requesting_matcher_id) -> MatchSearchResult:
        lock_key = f"match_search_lock:{target_card_id}"
        lock_token = f"{requesting_matcher_id}:{uuid.uuid4().hex}"
        if not await cache.aadd(lock_key, lock_token, timeout=self.search_lock_ttl):
            raise TransientStoreFailure("A match search for this card is already running, please retry.")

        try:
            target, pool = await self._run(self._load_search_inputs, target_card_id, requesting_matcher_id)
            oracle_result = await self._ask_oracle(target, pool)

            result = MatchSearchResult(target_card_id=target.id)
            if oracle_result.is_empty:
                logger.info(f"No candidates for card {target.id} (pool size {len(pool)})")
                return result

            for suggestion in oracle_result.suggestions:
                status, match = await self._run(self._create_for_suggestion, target.id, suggestion)
                if status == 'created':
                    result.created_ids.append(match.id)
                elif status == 'duplicate':
                    result.duplicates.append(suggestion.candidate_id)
                else:
                    result.skipped.append(suggestion.candidate_id)

            result.outcome = OUTCOME_CREATED if result.created_ids else OUTCOME_NO_NEW_MATCHES
            logger.info(
                f"Match search for card {target.id}: created={result.created_ids} "
                f"duplicates={result.duplicates} skipped={result.skipped}"
            )
            return result
        finally:
            await self._release_search_lock(lock_key, lock_token)

    async def _release_search_lock(self, lock_key, lock_token):
        # a lock that expired and was taken by another search is not ours to delete
        if await cache.aget(lock_key) == lock_token:
            await cache.adelete(lock_key)
        else:
            logger.warning(f"Search lock {lock_key} expired before the search finished")

    def _load_search_inputs(self, target_card_id, requesting_matcher_id):
        target = self.card_store.get_or_raise(target_card_id)
        if self.require_card_owner and target.matcher_id != requesting_matcher_id:
            raise PermissionDenied("Only the matcher who created this card can search matches for it.")
        if target.is_matched:
            raise ValidationFailed(f"Profile card {target.id} is already matched.")

        exclude_owner = None if self.allow_same_matcher else target.matcher_id
        pool = self.card_store.candidate_pool(target.id, exclude_owner_id=exclude_owner)
        return target, pool

    async def _ask_oracle(self, target, pool):
        summaries = [CardSummary.from_card(card) for card in pool]
        try:
            return await sync_to_async(self.oracle.suggest, thread_sensitive=False)(
                CardSummary.from_card(target), summaries
            )
        except MatchEngineError:
            raise
        except Exception as e:
            logger.exception(f"Oracle failed for card {target.id}")
            raise OracleUnavailable(f"Compatibility service failed: {e}")

    def _create_for_suggestion(self, target_id, suggestion) -> Tuple[str, Optional[PotentialMatch]]:
        """One atomic unit: insert the record and bump both counters, or nothing."""
        candidate_id = suggestion.candidate_id
        try:
            with transaction.atomic():
                cards = self.card_store.get_for_update([target_id, candidate_id])
                target = cards.get(target_id)
                candidate = cards.get(candidate_id)

                if candidate is None:
                    logger.warning(f"Suggestion skipped: candidate card {candidate_id} no longer exists")
                    return ('skipped', None)
                if target is None or target.is_matched:
                    logger.warning(f"Suggestion skipped: target card {target_id} is no longer available")
                    return ('skipped', None)
                if candidate.is_matched:
                    logger.info(f"Suggestion skipped: candidate card {candidate_id} is already matched")
                    return ('skipped', None)
                if not self.allow_same_matcher and candidate.matcher_id == target.matcher_id:
                    logger.info(f"Suggestion skipped: card {candidate_id} belongs to the same matcher")
                    return ('skipped', None)

                existing = self.match_store.find_for_pair(target_id, candidate_id)
                if existing is not None:
                    logger.info(f"Suggestion skipped: pair {target_id}/{candidate_id} already has match {existing.id}")
                    return ('duplicate', existing)

                match = self.match_store.create({
                    'profile_card_a_id': target.id,
                    'profile_card_b_id': candidate.id,
                    'matcher_a_id': target.matcher_id,
                    'matcher_b_id': candidate.matcher_id,
                    'compatibility_score': suggestion.compatibility_score,
                    'compatibility_reason': suggestion.compatibility_reason,
                })
                self.card_store.increment_match_attempts([target.id, candidate.id])
        except IntegrityError:
            # A concurrent search inserted the same pair first.
            logger.info(f"Suggestion skipped: pair {target_id}/{candidate_id} was created concurrently")
            return ('duplicate', None)

        logger.info(f"Potential match created: id={match.id}, cards={target_id}<->{candidate_id}, "
                    f"score={match.compatibility_score}")
        return ('created', match)

    # ---------------------------
    # Matcher decisions
    # ---------------------------
    async def submit_matcher_decision(self, match_id, acting_matcher_id, decision, role=None) -> PotentialMatch:
        if decision not in PotentialMatch.FINAL_DECISIONS:
            raise ValidationFailed(f"Decision must be one of {', '.join(PotentialMatch.FINAL_DECISIONS)}.")
        if role is not None and role not in PotentialMatch.ROLES:
            raise ValidationFailed("Role must be 'A' or 'B'.")
        return await self._run(self._apply_matcher_decision, match_id, acting_matcher_id, decision, role)

    def _apply_matcher_decision(self, match_id, acting_matcher_id, decision, role):
        with transaction.atomic():
            match = self.match_store.get_for_update(match_id)
            roles = match.roles_for_matcher(acting_matcher_id)
            if not roles:
                raise PermissionDenied("You are not a matcher on this potential match.")
            if role is None:
                if len(roles) > 1:
                    raise ValidationFailed("You own both cards of this match; pass the role you are deciding for.")
                role = roles[0]
            elif role not in roles:
                raise PermissionDenied(f"You are not matcher {role} on this potential match.")
            if match.friend_email_sent:
                raise ValidationFailed("The introduction was already sent; matcher decisions are locked.")

            column = 'status_matcher_a' if role == PotentialMatch.ROLE_A else 'status_matcher_b'
            # Only the acting side's column; the guard catches a dispatch that slipped in.
            updated = self.match_store.update(match.id, {column: decision}, friend_email_sent=False)
            if not updated:
                raise ValidationFailed("The introduction was already sent; matcher decisions are locked.")

        logger.info(f"Matcher {acting_matcher_id} set {column}={decision} on match {match_id}")
        return self.match_store.get(match_id)

    # ---------------------------
    # Introduction
    # ---------------------------
    async def dispatch_introduction(self, match_id, acting_matcher_id=None) -> DispatchResult:
        status, friends = await self._run(self._mark_introduction_sent, match_id, acting_matcher_id)
        if status == ALREADY_DISPATCHED:
            logger.info(f"Introduction for match {match_id} already dispatched, nothing to do")
            return DispatchResult(match_id=match_id, outcome=ALREADY_DISPATCHED)

        # The flag is committed; delivery problems never roll it back.
        try:
            delivered = await sync_to_async(self.dispatcher.send, thread_sensitive=False)(match_id, *friends)
        except Exception:
            logger.exception(f"Introduction delivery failed for match {match_id}")
            return DispatchResult(match_id=match_id, outcome=DELIVERY_FAILED)

        logger.info(f"Introduction dispatched for match {match_id}")
        return DispatchResult(match_id=match_id, outcome=DISPATCHED, delivered=delivered or 0)

    def _mark_introduction_sent(self, match_id, acting_matcher_id):
        with transaction.atomic():
            match = self.match_store.get_for_update(match_id)
            if acting_matcher_id is not None and not match.is_party(acting_matcher_id):
                raise PermissionDenied("You are not a matcher on this potential match.")
            if match.friend_email_sent:
                return (ALREADY_DISPATCHED, None)
            if not match.matchers_accepted:
                raise ValidationFailed("Both matchers must accept before the introduction is sent.")

            partial: Dict[str, Any] = {'friend_email_sent': True}
            for column in ('status_friend_a', 'status_friend_b'):
                # a decision recorded earlier survives a retried dispatch
                if getattr(match, column) not in PotentialMatch.FINAL_DECISIONS:
                    partial[column] = PotentialMatch.PENDING
            self.match_store.update(match.id, partial)

            cards = self.card_store.get_for_update([match.profile_card_a_id, match.profile_card_b_id])
            friends = (
                FriendSummary.from_card(cards[match.profile_card_a_id]),
                FriendSummary.from_card(cards[match.profile_card_b_id]),
            )
        return (DISPATCHED, friends)

    # ---------------------------
    # Friend decisions
    # ---------------------------
    async def submit_friend_decision(self, match_id, friend_role, decision, acting_matcher_id=None) -> PotentialMatch:
        if friend_role not in PotentialMatch.ROLES:
            raise ValidationFailed("Friend role must be 'A' or 'B'.")
        if decision not in PotentialMatch.FINAL_DECISIONS:
            raise ValidationFailed(f"Decision must be one of {', '.join(PotentialMatch.FINAL_DECISIONS)}.")
        return await self._run(self._apply_friend_decision, match_id, friend_role, decision, acting_matcher_id)

    def _apply_friend_decision(self, match_id, friend_role, decision, acting_matcher_id):
        with transaction.atomic():
            match = self.match_store.get_for_update(match_id)
            if acting_matcher_id is not None and friend_role not in match.roles_for_matcher(acting_matcher_id):
                raise PermissionDenied(f"Only matcher {friend_role} can record friend {friend_role}'s answer.")
            if not match.friend_email_sent:
                raise ValidationFailed("Friends cannot answer before the introduction is sent.")
            if match.friend_side_closed:
                raise ValidationFailed("The friends' answers on this match are final.")

            column = 'status_friend_a' if friend_role == PotentialMatch.ROLE_A else 'status_friend_b'
            setattr(match, column, decision)
            card_ids = [match.profile_card_a_id, match.profile_card_b_id]
            if match.friends_accepted:
                cards = self.card_store.get_for_update(card_ids)
                taken = [card_id for card_id, card in cards.items() if card.is_matched]
                if taken:
                    raise ValidationFailed(f"Profile card(s) {taken} are already matched elsewhere.")

            self.match_store.update(match.id, {column: decision})
            if match.friends_accepted:
                self.card_store.mark_matched(card_ids)

        logger.info(f"Friend {friend_role} set {decision} on match {match_id}")
        if match.friends_accepted:
            logger.info(f"Mutual match {match_id}: cards {card_ids} are now matched")
        return self.match_store.get(match_id)

    # ---------------------------
    # Queries
    # ---------------------------
    async def get_match(self, match_id, matcher_id) -> PotentialMatch:
        match = await self._run(self.match_store.get_or_raise, match_id)
        if not match.is_party(matcher_id):
            raise PermissionDenied("You are not a matcher on this potential match.")
        return match

    async def matches_for_matcher(self, matcher_id, stage=None) -> List[PotentialMatch]:
        if stage is not None and stage not in PotentialMatch.STAGES:
            raise ValidationFailed(f"Unknown stage {stage!r}.")
        matches = await self._run(self.match_store.for_matcher, matcher_id)
        if stage is None:
            return matches
        return [match for match in matches if match.stage == stage]

    async def mutual_matches_for_matcher(self, matcher_id) -> List[PotentialMatch]:
        matches = await self._run(self.match_store.for_matcher, matcher_id)
        return [match for match in matches if match.is_mutual]

    async def introduction_preview(self, match_id, matcher_id):
        match = await self.get_match(match_id, matcher_id)
        if not match.matchers_accepted:
            raise ValidationFailed("Both matchers must accept before an introduction can be drafted.")
        return render_introduction_email(
            FriendSummary.from_card(match.profile_card_a),
            FriendSummary.from_card(match.profile_card_b),
        )


    # ---------------------------
    # Advice
    # ---------------------------
    async def match_advice(self, card_id, matcher_id) -> AdviceResult:
        card, recommender, feedback = await self._run(self._load_advice_inputs, card_id, matcher_id)
        try:
            raw = await sync_to_async(self.advisor.advise, thread_sensitive=False)(
                CardSummary.from_card(card), recommender, feedback
            )
        except MatchEngineError:
            raise
        except Exception as e:
            logger.exception(f"Advisor failed for card {card.id}")
            raise OracleUnavailable(f"Advice service failed: {e}")

        tags = sanitize_tags(raw, self.advice_limit)
        logger.info(f"Advice for card {card.id}: {len(tags)} tags from {len(feedback)} past matches")
        return AdviceResult(card_id=card.id, advice_tags=tags, feedback_count=len(feedback))

    def _load_advice_inputs(self, card_id, matcher_id):
        card = self.card_store.get_or_raise(card_id)
        if self.require_card_owner and card.matcher_id != matcher_id:
            raise PermissionDenied("Only the matcher who created this card can ask for advice on it.")
        feedback = [MatchFeedback.from_match(match, card.id) for match in self.match_store.for_card(card.id)]
        recommender = RecommenderSummary(
            name=card.matcher_name,
            card_count=len(self.card_store.for_matcher(card.matcher_id)),
        )
        return card, recommender, feedback


def get_engine() -> PotentialMatchEngine:
    """Engine wired with the backends named in settings."""
    backend = import_string(settings.MATCH_ORACLE_BACKEND)()
    dispatcher = import_string(settings.INTRODUCTION_DISPATCHER_BACKEND)()
    return PotentialMatchEngine(
        card_store=ProfileCardStore(),
        match_store=PotentialMatchStore(),
        oracle=MatchOracleAdapter(backend),
        dispatcher=dispatcher,
    )
