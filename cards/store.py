# cards/store.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import F, ProtectedError
from django.utils import timezone

from match.exceptions import NotFound, PermissionDenied, ValidationFailed
from .models import ProfileCard

logger = logging.getLogger(__name__)


class ProfileCardStore:
    """Persistence for profile cards.

    Card edits go through ``update``; the two bookkeeping fields are written
    only through ``increment_match_attempts`` and ``mark_matched``, which the
    match engine calls inside its own transactions.
    """

    EDITABLE_FIELDS = (
        'friend_name', 'friend_email', 'friend_age', 'friend_gender', 'friend_postal_code',
        'education_level', 'occupation', 'bio', 'interests', 'photo_url',
        'preferred_age_min', 'preferred_age_max', 'seeking', 'preferred_gender', 'max_distance_km',
    )

    # ---------------------------
    # CRUD
    # ---------------------------
    def create(self, data: Dict[str, Any], owner_id: int, owner_name: str) -> ProfileCard:
        self._reject_bookkeeping(data)
        fields = {key: value for key, value in data.items() if key in self.EDITABLE_FIELDS}
        card = ProfileCard.objects.create(matcher_id=owner_id, matcher_name=owner_name, **fields)
        logger.info(f"Profile card created: id={card.id}, matcher_id={owner_id}")
        return card

    def get(self, card_id) -> Optional[ProfileCard]:
        return ProfileCard.objects.filter(pk=card_id).first()

    def get_or_raise(self, card_id) -> ProfileCard:
        card = self.get(card_id)
        if card is None:
            raise NotFound(f"Profile card {card_id} not found.")
        return card

    def get_for_update(self, card_ids: Iterable[int]) -> Dict[int, ProfileCard]:
        """Lock the given cards for the surrounding transaction, in id order."""
        cards = ProfileCard.objects.select_for_update().filter(pk__in=list(card_ids)).order_by('pk')
        return {card.pk: card for card in cards}

    def update(self, card_id, partial: Dict[str, Any], acting_matcher_id=None) -> ProfileCard:
        self._reject_bookkeeping(partial)
        unknown = set(partial) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise ValidationFailed(f"Unknown profile card fields: {', '.join(sorted(unknown))}")

        with transaction.atomic():
            card = self._get_locked(card_id)
            if acting_matcher_id is not None and card.matcher_id != acting_matcher_id:
                raise PermissionDenied("Only the matcher who created this card can edit it.")
            if card.is_matched:
                raise ValidationFailed(f"Profile card {card_id} is matched and can no longer be edited.")

            # the write only lands while the card is still available
            now = timezone.now()
            updated = ProfileCard.objects.filter(
                pk=card.pk, match_status=ProfileCard.STATUS_AVAILABLE
            ).update(updated_at=now, **partial)
            if not updated:
                raise ValidationFailed(f"Profile card {card_id} is matched and can no longer be edited.")

        for key, value in partial.items():
            setattr(card, key, value)
        card.updated_at = now
        return card

    def _get_locked(self, card_id) -> ProfileCard:
        card = ProfileCard.objects.select_for_update().filter(pk=card_id).first()
        if card is None:
            raise NotFound(f"Profile card {card_id} not found.")
        return card

    def delete(self, card_id, acting_matcher_id=None) -> None:
        card = self.get_or_raise(card_id)
        if acting_matcher_id is not None and card.matcher_id != acting_matcher_id:
            raise PermissionDenied("Only the matcher who created this card can delete it.")
        if card.is_matched:
            raise ValidationFailed(f"Profile card {card_id} is matched and can no longer be deleted.")
        try:
            card.delete()
        except ProtectedError:
            raise ValidationFailed(f"Profile card {card_id} is part of a potential match and cannot be deleted.")
        logger.info(f"Profile card deleted: id={card_id}")

    # ---------------------------
    # Queries
    # ---------------------------
    def for_matcher(self, owner_id) -> List[ProfileCard]:
        return list(ProfileCard.objects.filter(matcher_id=owner_id))

    def all(self) -> List[ProfileCard]:
        return list(ProfileCard.objects.all())

    def candidate_pool(self, exclude_id, exclude_owner_id=None) -> List[ProfileCard]:
        """Every available card except the target (and optionally its owner's cards)."""
        queryset = ProfileCard.objects.filter(match_status=ProfileCard.STATUS_AVAILABLE).exclude(pk=exclude_id)
        if exclude_owner_id is not None:
            queryset = queryset.exclude(matcher_id=exclude_owner_id)
        return list(queryset.order_by('pk'))

    # ---------------------------
    # Engine-only bookkeeping
    # ---------------------------
    def increment_match_attempts(self, card_ids: Iterable[int]) -> int:
        return ProfileCard.objects.filter(pk__in=list(card_ids)).update(
            match_attempts=F('match_attempts') + 1,
            updated_at=timezone.now(),
        )

    def mark_matched(self, card_ids: Iterable[int]) -> int:
        # available -> matched only; re-running is a no-op.
        return ProfileCard.objects.filter(
            pk__in=list(card_ids), match_status=ProfileCard.STATUS_AVAILABLE
        ).update(match_status=ProfileCard.STATUS_MATCHED, updated_at=timezone.now())

    def _reject_bookkeeping(self, data: Dict[str, Any]) -> None:
        touched = [field for field in ProfileCard.BOOKKEEPING_FIELDS if field in data]
        if touched:
            raise ValidationFailed(f"Fields managed by the match engine cannot be set directly: {', '.join(touched)}")
