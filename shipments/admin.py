from django.contrib import admin
from .models import Shipment, TrackingEvent


class TrackingEventInline(admin.TabularInline):
    model = TrackingEvent
    extra = 0
    can_delete = False
    readonly_fields = ('timestamp', 'event_type', 'status', 'latitude', 'longitude', 'note', 'actor')
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ('tracking_number', 'customer', 'driver', 'status', 'tier', 'estimated_cost', 'created_at')
    list_filter = ('status', 'tier', 'created_at')
    search_fields = ('tracking_number', 'customer__username', 'driver__username')
    # Status and the pricing basis only change through ShipmentService.
    readonly_fields = (
        'id', 'tracking_number', 'status', 'driver', 'estimated_cost', 'currency',
        'pickup_latitude', 'pickup_longitude', 'delivery_latitude', 'delivery_longitude',
        'package_weight', 'package_value', 'tier',
        'created_at', 'updated_at', 'picked_up_at', 'delivered_at',
    )
    inlines = [TrackingEventInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(TrackingEvent)
class TrackingEventAdmin(admin.ModelAdmin):
    list_display = ('shipment', 'event_type', 'status', 'actor', 'timestamp')
    list_filter = ('event_type', 'status')
    search_fields = ('shipment__tracking_number',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
