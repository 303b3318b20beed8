import django_filters

from .models import Shipment, ShipmentStatus, ShipmentTier


class ShipmentFilter(django_filters.FilterSet):
    """Query parameters accepted by the shipment listing (camelCase as sent by the mobile client)."""
    customerId = django_filters.NumberFilter(field_name='customer_id')
    businessId = django_filters.NumberFilter(field_name='business_id')
    driverId = django_filters.NumberFilter(field_name='driver_id')
    status = django_filters.MultipleChoiceFilter(choices=ShipmentStatus.choices)
    tier = django_filters.ChoiceFilter(choices=ShipmentTier.choices)
    unassigned = django_filters.BooleanFilter(method='filter_unassigned')
    created_after = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    created_before = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Shipment
        fields = ['customerId', 'businessId', 'driverId', 'status', 'tier', 'unassigned']

    def filter_unassigned(self, queryset, name, value):
        if value:
            return queryset.filter(driver__isnull=True)
        return queryset.filter(driver__isnull=False)
