from django.contrib import admin

from .models import DonorApplication, DonorResponse


@admin.register(DonorApplication)
class DonorApplicationAdmin(admin.ModelAdmin):
    list_display   = ['user', 'status', 'last_donation_date', 'ready_for_urgent_donation', 'created_at']
    list_filter    = ['status', 'ready_for_urgent_donation', 'has_donated_before']
    search_fields  = ['user__username', 'user__email', 'user__name']
    ordering       = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Applicant', {
            'fields': ('user', 'status', 'date_of_birth')
        }),
        ('Donation History', {
            'fields': ('has_donated_before', 'last_donation_date', 'medical_conditions')
        }),
        ('Preferences', {
            'fields': ('ready_for_urgent_donation', 'consent_to_share_phone')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(DonorResponse)
class DonorResponseAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'blood_request', 'status', 'accepted_at', 'created_at']
    list_filter   = ['status']
    search_fields = ['donor__username', 'donor__name', 'blood_request__patient_name']
    ordering      = ['-created_at']
    readonly_fields = ['created_at', 'updated_at', 'accepted_at']
