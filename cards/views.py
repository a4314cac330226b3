# cards/views.py
import logging

from asgiref.sync import async_to_sync
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from match.serializers import MatchAdviceSerializer, MatchSearchResultSerializer, PotentialMatchSerializer
from match.services import OUTCOME_CREATED, get_engine
from match.store import PotentialMatchStore
from .models import ProfileCard
from .serializers import ProfileCardSerializer
from .store import ProfileCardStore

logger = logging.getLogger(__name__)


class ProfileCardListCreateView(generics.ListCreateAPIView):
    """My cards, or every card with ``?scope=all``."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ProfileCardSerializer

    def get_queryset(self):
        queryset = ProfileCard.objects.all()
        if self.request.query_params.get('scope') != 'all':
            queryset = queryset.filter(matcher=self.request.user)
        return queryset

    def perform_create(self, serializer):
        serializer.instance = ProfileCardStore().create(
            serializer.validated_data,
            owner_id=self.request.user.id,
            owner_name=self.request.user.matcher_name,
        )


class ProfileCardDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ProfileCardSerializer
    queryset = ProfileCard.objects.all()

    def perform_update(self, serializer):
        serializer.instance = ProfileCardStore().update(
            serializer.instance.id,
            serializer.validated_data,
            acting_matcher_id=self.request.user.id,
        )

    def perform_destroy(self, instance):
        ProfileCardStore().delete(instance.id, acting_matcher_id=self.request.user.id)


class FindMatchesView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        engine = get_engine()
        result = async_to_sync(engine.request_matches)(pk, request.user.id)

        store = PotentialMatchStore()
        created = [store.get(match_id) for match_id in result.created_ids]
        data = MatchSearchResultSerializer(result).data
        data['matches'] = PotentialMatchSerializer(created, many=True, context={'request': request}).data

        code = status.HTTP_201_CREATED if result.outcome == OUTCOME_CREATED else status.HTTP_200_OK
        return Response(data, status=code)


class MatchAdviceView(APIView):
    """Advice tags for improving future suggestions, drawn from the card's past matches."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        result = async_to_sync(get_engine().match_advice)(pk, request.user.id)
        return Response(MatchAdviceSerializer(result).data)
