from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, District, Division, Upazila


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'name', 'blood_group', 'email_verified', 'is_staff')
    search_fields = ('username', 'email', 'name', 'phone')
    list_filter = ('blood_group', 'email_verified', 'is_staff')
    fieldsets = UserAdmin.fieldsets + (
        ('Donor profile', {
            'fields': ('name', 'phone', 'blood_group', 'email_verified',
                       'address', 'division', 'district', 'upazila'),
        }),
    )


@admin.register(Division)
class DivisionAdmin(admin.ModelAdmin):
    list_display = ('name', 'latitude', 'longitude')
    search_fields = ('name',)


@admin.register(District)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ('name', 'division', 'latitude', 'longitude')
    search_fields = ('name',)
    list_filter = ('division',)


@admin.register(Upazila)
class UpazilaAdmin(admin.ModelAdmin):
    list_display = ('name', 'district', 'latitude', 'longitude')
    search_fields = ('name',)
    list_filter = ('district__division',)
