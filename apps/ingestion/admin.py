from django.contrib import admin
from .models import FailedNotification


@admin.register(FailedNotification)
class FailedNotificationAdmin(admin.ModelAdmin):
    list_display = ['object_key', 'container', 'error_code', 'failed_step', 'attempts', 'status', 'created_at']
    list_filter = ['error_code', 'status']
    search_fields = ['object_key', 'container']
    readonly_fields = ['id', 'created_at', 'replayed_at', 'replay_outcome']
