from django.contrib import admin

from .models import PotentialMatch


@admin.register(PotentialMatch)
class PotentialMatchAdmin(admin.ModelAdmin):
    list_display = ('id', 'profile_card_a', 'profile_card_b', 'compatibility_score', 'friend_email_sent', 'created_at')
    list_filter = ('friend_email_sent', 'status_matcher_a', 'status_matcher_b')
    # audit trail: read-only in the admin
    readonly_fields = [f.name for f in PotentialMatch._meta.fields]

    def has_delete_permission(self, request, obj=None):
        return False
