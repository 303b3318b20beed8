from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User, TransporterProfile

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'company_name', 'is_staff')
    list_filter = ('role', 'is_staff', 'is_active')
    fieldsets = UserAdmin.fieldsets + (
        ('Custom Fields', {
            'fields': ('role', 'company_name', 'phone')
        }),
    )

@admin.register(TransporterProfile)
class TransporterProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'vehicle_type', 'vehicle_number', 'is_available', 'rating', 'updated_at')
    list_filter = ('is_available', 'vehicle_type')
    search_fields = ('user__username', 'vehicle_number')
