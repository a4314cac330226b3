# match/urls.py
from django.urls import path

from .views import (
    DispatchIntroductionView,
    FriendDecisionView,
    IntroductionPreviewView,
    MatcherDecisionView,
    MutualMatchListView,
    PotentialMatchDetailView,
    PotentialMatchListView,
)

urlpatterns = [
    path('', PotentialMatchListView.as_view(), name='match-list'),
    path('mutual/', MutualMatchListView.as_view(), name='match-mutual'),
    path('<int:pk>/', PotentialMatchDetailView.as_view(), name='match-detail'),
    path('<int:pk>/decision/', MatcherDecisionView.as_view(), name='match-decision'),
    path('<int:pk>/introduction/', IntroductionPreviewView.as_view(), name='match-introduction'),
    path('<int:pk>/dispatch/', DispatchIntroductionView.as_view(), name='match-dispatch'),
    path('<int:pk>/friend-decision/', FriendDecisionView.as_view(), name='match-friend-decision'),
]
