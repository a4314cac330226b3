# match/serializers.py
from rest_framework import serializers

from cards.serializers import CardBriefSerializer
from .models import PotentialMatch


class PotentialMatchSerializer(serializers.ModelSerializer):
    profile_card_a = CardBriefSerializer(read_only=True)
    profile_card_b = CardBriefSerializer(read_only=True)
    matcher_a_id = serializers.IntegerField(read_only=True)
    matcher_b_id = serializers.IntegerField(read_only=True)
    stage = serializers.CharField(read_only=True)
    my_roles = serializers.SerializerMethodField()

    class Meta:
        model = PotentialMatch
        fields = [
            'id', 'profile_card_a', 'profile_card_b', 'matcher_a_id', 'matcher_b_id',
            'compatibility_score', 'compatibility_reason',
            'status_matcher_a', 'status_matcher_b', 'status_friend_a', 'status_friend_b',
            'friend_email_sent', 'stage', 'my_roles', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_my_roles(self, obj):
        request = self.context.get('request')
        if request is None:
            return []
        return obj.roles_for_matcher(request.user.id)


class MatcherDecisionSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=PotentialMatch.FINAL_DECISIONS)
    role = serializers.ChoiceField(choices=PotentialMatch.ROLES, required=False)


class FriendDecisionSerializer(serializers.Serializer):
    friend_role = serializers.ChoiceField(choices=PotentialMatch.ROLES)
    decision = serializers.ChoiceField(choices=PotentialMatch.FINAL_DECISIONS)


class IntroductionEmailSerializer(serializers.Serializer):
    subject = serializers.CharField()
    email_body = serializers.CharField()


class MatchSearchResultSerializer(serializers.Serializer):
    target_card_id = serializers.IntegerField()
    created_ids = serializers.ListField(child=serializers.IntegerField())
    duplicates = serializers.ListField(child=serializers.IntegerField())
    skipped = serializers.ListField(child=serializers.IntegerField())
    outcome = serializers.CharField()


class MatchAdviceSerializer(serializers.Serializer):
    card_id = serializers.IntegerField()
    advice_tags = serializers.ListField(child=serializers.CharField())
    feedback_count = serializers.IntegerField()


class DispatchResultSerializer(serializers.Serializer):
    match_id = serializers.IntegerField()
    outcome = serializers.CharField()
    delivered = serializers.IntegerField()
