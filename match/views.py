# match/views.py
import logging

from asgiref.sync import async_to_sync
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    DispatchResultSerializer,
    FriendDecisionSerializer,
    IntroductionEmailSerializer,
    MatcherDecisionSerializer,
    PotentialMatchSerializer,
)
from .services import get_engine

logger = logging.getLogger(__name__)


class PotentialMatchListView(APIView):
    """Potential matches where I am matcher A or B, optionally ``?stage=``."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        stage = request.query_params.get('stage') or None
        matches = async_to_sync(get_engine().matches_for_matcher)(request.user.id, stage=stage)
        return Response(PotentialMatchSerializer(matches, many=True, context={'request': request}).data)


class MutualMatchListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        matches = async_to_sync(get_engine().mutual_matches_for_matcher)(request.user.id)
        return Response(PotentialMatchSerializer(matches, many=True, context={'request': request}).data)


class PotentialMatchDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        match = async_to_sync(get_engine().get_match)(pk, request.user.id)
        return Response(PotentialMatchSerializer(match, context={'request': request}).data)


class MatcherDecisionView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        serializer = MatcherDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        match = async_to_sync(get_engine().submit_matcher_decision)(
            pk,
            request.user.id,
            serializer.validated_data['decision'],
            role=serializer.validated_data.get('role'),
        )
        return Response(PotentialMatchSerializer(match, context={'request': request}).data)


class IntroductionPreviewView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        email = async_to_sync(get_engine().introduction_preview)(pk, request.user.id)
        return Response(IntroductionEmailSerializer(email).data)


class DispatchIntroductionView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        engine = get_engine()
        result = async_to_sync(engine.dispatch_introduction)(pk, acting_matcher_id=request.user.id)
        match = async_to_sync(engine.get_match)(pk, request.user.id)
        return Response({
            **DispatchResultSerializer(result).data,
            'match': PotentialMatchSerializer(match, context={'request': request}).data,
        }, status=status.HTTP_200_OK)


class FriendDecisionView(APIView):
    """A matcher records the answer of the friend on their own side."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        serializer = FriendDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        match = async_to_sync(get_engine().submit_friend_decision)(
            pk,
            serializer.validated_data['friend_role'],
            serializer.validated_data['decision'],
            acting_matcher_id=request.user.id,
        )
        return Response(PotentialMatchSerializer(match, context={'request': request}).data)
