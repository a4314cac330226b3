# match/store.py
import logging
from typing import Any, Dict, List, Optional

from django.db.models import Q
from django.utils import timezone

from .exceptions import NotFound, ValidationFailed
from .models import PotentialMatch, make_pair_key

logger = logging.getLogger(__name__)


class PotentialMatchStore:
    """Persistence for potential matches. Records are never deleted."""

    IMMUTABLE_FIELDS = (
        'id', 'profile_card_a', 'profile_card_b', 'profile_card_a_id', 'profile_card_b_id',
        'matcher_a', 'matcher_b', 'matcher_a_id', 'matcher_b_id', 'pair_key', 'created_at',
    )

    def _queryset(self):
        return PotentialMatch.objects.select_related(
            'profile_card_a', 'profile_card_b', 'matcher_a', 'matcher_b'
        )

    def create(self, data: Dict[str, Any]) -> PotentialMatch:
        card_a_id = data['profile_card_a_id']
        card_b_id = data['profile_card_b_id']
        if card_a_id == card_b_id:
            raise ValidationFailed("A potential match needs two different profile cards.")
        return PotentialMatch.objects.create(pair_key=make_pair_key(card_a_id, card_b_id), **data)

    def get(self, match_id) -> Optional[PotentialMatch]:
        return self._queryset().filter(pk=match_id).first()

    def get_or_raise(self, match_id) -> PotentialMatch:
        match = self.get(match_id)
        if match is None:
            raise NotFound(f"Potential match {match_id} not found.")
        return match

    def get_for_update(self, match_id) -> PotentialMatch:
        match = PotentialMatch.objects.select_for_update().filter(pk=match_id).first()
        if match is None:
            raise NotFound(f"Potential match {match_id} not found.")
        return match

    def update(self, match_id, partial: Dict[str, Any], **conditions) -> int:
        """Write ``partial`` and stamp ``updated_at``; extra kwargs guard the row."""
        touched = [field for field in partial if field in self.IMMUTABLE_FIELDS]
        if touched:
            raise ValidationFailed(f"Potential match fields cannot change: {', '.join(touched)}")
        return PotentialMatch.objects.filter(pk=match_id, **conditions).update(
            updated_at=timezone.now(), **partial
        )

    # ---------------------------
    # Queries
    # ---------------------------
    def for_matcher(self, matcher_id) -> List[PotentialMatch]:
        return list(self._queryset().filter(Q(matcher_a_id=matcher_id) | Q(matcher_b_id=matcher_id)))

    def find_for_pair(self, card_id_1, card_id_2) -> Optional[PotentialMatch]:
        # Both orderings; A/B labels are positional.
        return PotentialMatch.objects.filter(
            Q(profile_card_a_id=card_id_1, profile_card_b_id=card_id_2)
            | Q(profile_card_a_id=card_id_2, profile_card_b_id=card_id_1)
        ).first()

    def for_card(self, card_id) -> List[PotentialMatch]:
        return list(self._queryset().filter(
            Q(profile_card_a_id=card_id) | Q(profile_card_b_id=card_id)
        ))

    def count_for_card(self, card_id) -> int:
        return PotentialMatch.objects.filter(
            Q(profile_card_a_id=card_id) | Q(profile_card_b_id=card_id)
        ).count()
