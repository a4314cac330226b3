from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/accounts/', include('accounts.urls')),
    path('api/cards/', include('cards.urls')),
    path('api/matches/', include('match.urls')),
]
