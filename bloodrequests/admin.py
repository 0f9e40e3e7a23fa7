from django.contrib import admin

from .models import BloodRequest, BloodRequestUpvote


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display  = ['id', 'patient_name', 'blood_group', 'urgency_status', 'status',
                     'donors_assigned', 'amount_needed', 'upvote_count', 'created_at']
    list_filter   = ['status', 'urgency_status', 'blood_group']
    search_fields = ['patient_name', 'hospital_name', 'location', 'user__username']
    ordering      = ['-id']
    # Derived from responses and upvotes
    readonly_fields = ['donors_assigned', 'upvote_count', 'created_at', 'updated_at']


@admin.register(BloodRequestUpvote)
class BloodRequestUpvoteAdmin(admin.ModelAdmin):
    list_display  = ['user', 'blood_request', 'created_at']
    search_fields = ['user__username']
