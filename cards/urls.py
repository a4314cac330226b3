# cards/urls.py
from django.urls import path

from .views import FindMatchesView, MatchAdviceView, ProfileCardDetailView, ProfileCardListCreateView

urlpatterns = [
    path('', ProfileCardListCreateView.as_view(), name='card-list'),
    path('<int:pk>/', ProfileCardDetailView.as_view(), name='card-detail'),
    path('<int:pk>/find-matches/', FindMatchesView.as_view(), name='card-find-matches'),
    path('<int:pk>/advice/', MatchAdviceView.as_view(), name='card-advice'),
]
