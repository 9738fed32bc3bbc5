from django.contrib import admin
from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['task_id', 'owner', 'title', 'upload', 'created_at']
    list_filter = ['created_at']
    search_fields = ['owner', 'task_id', 'title']
    readonly_fields = ['id', 'created_at', 'upload', 'labels']
