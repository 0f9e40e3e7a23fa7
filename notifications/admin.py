from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display  = ['recipient', 'sender', 'message', 'is_read', 'created_at']
    list_filter   = ['is_read']
    search_fields = ['recipient__username', 'message']
    ordering      = ['-created_at']
