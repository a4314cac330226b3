from django.contrib import admin

from .models import ProfileCard


@admin.register(ProfileCard)
class ProfileCardAdmin(admin.ModelAdmin):
    list_display = ('id', 'friend_name', 'matcher_name', 'match_status', 'match_attempts', 'created_at')
    list_filter = ('match_status',)
    search_fields = ('friend_name', 'matcher_name')
    readonly_fields = ('match_attempts', 'match_status', 'created_at', 'updated_at')
