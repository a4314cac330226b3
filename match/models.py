from django.conf import settings
from django.core.validators import MaxValueValidator
from django.db import models


def make_pair_key(card_id_1, card_id_2) -> str:
    """Order-independent key for a pair of profile cards."""
    low, high = sorted((int(card_id_1), int(card_id_2)))
    return f"{low}:{high}"


class PotentialMatch(models.Model):
    """A proposed pairing of two profile cards awaiting matcher and friend approval.

    A and B are positional: card A is the card a search was run for, card B
    the suggested candidate.  The labels never change after creation.
    """

    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    DECISION_CHOICES = [
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (REJECTED, 'Rejected'),
    ]
    FINAL_DECISIONS = (ACCEPTED, REJECTED)

    ROLE_A = 'A'
    ROLE_B = 'B'
    ROLES = (ROLE_A, ROLE_B)

    STAGE_AWAITING_MATCHERS = 'awaiting_matchers'
    STAGE_READY_TO_INTRODUCE = 'ready_to_introduce'
    STAGE_AWAITING_FRIENDS = 'awaiting_friends'
    STAGE_MUTUAL = 'mutual_match'
    STAGE_DECLINED = 'declined'
    STAGES = (
        STAGE_AWAITING_MATCHERS,
        STAGE_READY_TO_INTRODUCE,
        STAGE_AWAITING_FRIENDS,
        STAGE_MUTUAL,
        STAGE_DECLINED,
    )

    profile_card_a = models.ForeignKey('cards.ProfileCard', on_delete=models.PROTECT, related_name='potential_matches_as_a')
    profile_card_b = models.ForeignKey('cards.ProfileCard', on_delete=models.PROTECT, related_name='potential_matches_as_b')
    matcher_a = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='potential_matches_as_a')
    matcher_b = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='potential_matches_as_b')
    pair_key = models.CharField(max_length=64, unique=True, editable=False)

    compatibility_score = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    compatibility_reason = models.TextField(blank=True)

    status_matcher_a = models.CharField(max_length=10, choices=DECISION_CHOICES, default=PENDING)
    status_matcher_b = models.CharField(max_length=10, choices=DECISION_CHOICES, default=PENDING)
    status_friend_a = models.CharField(max_length=10, choices=DECISION_CHOICES, null=True, blank=True)
    status_friend_b = models.CharField(max_length=10, choices=DECISION_CHOICES, null=True, blank=True)
    friend_email_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(profile_card_a=models.F('profile_card_b')),
                name='potential_match_distinct_cards',
            ),
        ]
        indexes = [
            models.Index(fields=['profile_card_a', 'profile_card_b'], name='pm_card_pair_idx'),
            models.Index(fields=['matcher_a'], name='pm_matcher_a_idx'),
            models.Index(fields=['matcher_b'], name='pm_matcher_b_idx'),
        ]

    def __str__(self):
        return f"PotentialMatch {self.pk} ({self.profile_card_a_id} <-> {self.profile_card_b_id})"

    def save(self, *args, **kwargs):
        if not self.pair_key:
            self.pair_key = make_pair_key(self.profile_card_a_id, self.profile_card_b_id)
        super().save(*args, **kwargs)

    # ---------------------------
    # Derived state
    # ---------------------------
    @property
    def matchers_accepted(self) -> bool:
        return self.status_matcher_a == self.ACCEPTED and self.status_matcher_b == self.ACCEPTED

    @property
    def friends_accepted(self) -> bool:
        return self.status_friend_a == self.ACCEPTED and self.status_friend_b == self.ACCEPTED

    @property
    def rejected_by_matcher(self) -> bool:
        return self.REJECTED in (self.status_matcher_a, self.status_matcher_b)

    @property
    def rejected_by_friend(self) -> bool:
        return self.REJECTED in (self.status_friend_a, self.status_friend_b)

    @property
    def is_rejected(self) -> bool:
        return self.rejected_by_matcher or self.rejected_by_friend

    @property
    def is_mutual(self) -> bool:
        return self.friends_accepted

    @property
    def friend_side_closed(self) -> bool:
        return self.rejected_by_friend or self.friends_accepted

    @property
    def is_terminal(self) -> bool:
        return self.is_rejected or self.is_mutual

    @property
    def stage(self) -> str:
        if self.is_mutual:
            return self.STAGE_MUTUAL
        if self.is_rejected:
            return self.STAGE_DECLINED
        if self.friend_email_sent:
            return self.STAGE_AWAITING_FRIENDS
        if self.matchers_accepted:
            return self.STAGE_READY_TO_INTRODUCE
        return self.STAGE_AWAITING_MATCHERS

    def roles_for_matcher(self, matcher_id) -> list:
        """Sides owned by the matcher: [], ['A'], ['B'] or ['A', 'B']."""
        roles = []
        if self.matcher_a_id == matcher_id:
            roles.append(self.ROLE_A)
        if self.matcher_b_id == matcher_id:
            roles.append(self.ROLE_B)
        return roles

    def is_party(self, matcher_id) -> bool:
        return bool(self.roles_for_matcher(matcher_id))

    def card_id_for_role(self, role):
        return self.profile_card_a_id if role == self.ROLE_A else self.profile_card_b_id
