# cards/serializers.py
from rest_framework import serializers

from .models import ProfileCard


class ProfileCardSerializer(serializers.ModelSerializer):
    interests = serializers.ListField(child=serializers.CharField(max_length=60), required=False)
    seeking = serializers.ListField(child=serializers.CharField(max_length=60), required=False)
    matcher_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ProfileCard
        fields = [
            'id', 'matcher_id', 'matcher_name',
            'friend_name', 'friend_email', 'friend_age', 'friend_gender', 'friend_postal_code',
            'education_level', 'occupation', 'bio', 'interests', 'photo_url',
            'preferred_age_min', 'preferred_age_max', 'seeking', 'preferred_gender', 'max_distance_km',
            'match_attempts', 'match_status', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'matcher_name', 'match_attempts', 'match_status', 'created_at', 'updated_at']

    def validate(self, attrs):
        age_min = attrs.get('preferred_age_min', getattr(self.instance, 'preferred_age_min', None))
        age_max = attrs.get('preferred_age_max', getattr(self.instance, 'preferred_age_max', None))
        if age_min is not None and age_max is not None and age_min > age_max:
            raise serializers.ValidationError({
                'preferred_age_max': 'The maximum age must not be below the minimum age.'
            })
        return attrs


class CardBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProfileCard
        fields = ['id', 'friend_name', 'matcher_name', 'photo_url', 'match_status']
