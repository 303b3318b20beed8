import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from .geo import Coordinate


class ShipmentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ASSIGNED = 'assigned', 'Assigned'
    PICKED_UP = 'picked_up', 'Picked Up'
    IN_TRANSIT = 'in_transit', 'In Transit'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


class ShipmentTier(models.TextChoices):
    REGULAR = 'regular', 'Regular'
    EXPRESS = 'express', 'Express'
    FRAGILE = 'fragile', 'Fragile'


def generate_tracking_number():
    prefix = settings.SHIPMENTS.get('TRACKING_NUMBER_PREFIX', 'TRK')
    return f"{prefix}{uuid.uuid4().hex[:12].upper()}"


class Shipment(models.Model):
    Status = ShipmentStatus
    Tier = ShipmentTier

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tracking_number = models.CharField(max_length=100, unique=True, blank=True)

    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='shipments')
    business = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
        null=True, blank=True, related_name='booked_shipments',
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
        null=True, blank=True, related_name='driven_shipments',
    )

    pickup_address = models.TextField()
    pickup_latitude = models.FloatField()
    pickup_longitude = models.FloatField()
    delivery_address = models.TextField()
    delivery_latitude = models.FloatField()
    delivery_longitude = models.FloatField()
    current_latitude = models.FloatField(null=True, blank=True)
    current_longitude = models.FloatField(null=True, blank=True)

    package_description = models.TextField()
    package_weight = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    package_value = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    package_dimensions = models.CharField(max_length=100, blank=True)
    tier = models.CharField(max_length=20, choices=ShipmentTier.choices, default=ShipmentTier.REGULAR)

    receiver_name = models.CharField(max_length=255, blank=True)
    receiver_phone = models.CharField(max_length=20, blank=True)
    special_instructions = models.TextField(blank=True)

    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=10, default='USD')

    status = models.CharField(max_length=20, choices=ShipmentStatus.choices, default=ShipmentStatus.PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'shipments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='shipments_status_idx'),
            models.Index(fields=['customer', 'status'], name='shipments_customer_idx'),
            models.Index(fields=['driver', 'status'], name='shipments_driver_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.tracking_number:
            self.tracking_number = generate_tracking_number()
        super().save(*args, **kwargs)

    @property
    def pickup_coordinate(self):
        return Coordinate(self.pickup_latitude, self.pickup_longitude)

    @property
    def delivery_coordinate(self):
        return Coordinate(self.delivery_latitude, self.delivery_longitude)

    @property
    def current_coordinate(self):
        if self.current_latitude is None or self.current_longitude is None:
            return None
        return Coordinate(self.current_latitude, self.current_longitude)

    def is_party(self, user):
        """Customer or booking business of this shipment."""
        return user.pk is not None and user.pk in (self.customer_id, self.business_id)

    def __str__(self):
        return f"{self.tracking_number} - {self.status}"


class TrackingEventQuerySet(models.QuerySet):
    """Bulk paths honour the same append-only rule as single events."""

    def update(self, **kwargs):
        raise ValueError("Tracking events are append-only and cannot be modified")

    def delete(self):
        raise ValueError("Tracking events are append-only and cannot be deleted")


class TrackingEvent(models.Model):
    """Immutable, timestamped record of a shipment's status."""

    class EventType(models.TextChoices):
        STATUS_CHANGE = 'status_change', 'Status Change'
        LOCATION_UPDATE = 'location_update', 'Location Update'

    shipment = models.ForeignKey(Shipment, on_delete=models.PROTECT, related_name='tracking_events')
    event_type = models.CharField(max_length=20, choices=EventType.choices, default=EventType.STATUS_CHANGE)
    status = models.CharField(max_length=20, choices=ShipmentStatus.choices)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True)
    note = models.TextField(blank=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='tracking_events',
    )
    timestamp = models.DateTimeField(default=timezone.now)

    objects = TrackingEventQuerySet.as_manager()

    class Meta:
        db_table = 'tracking_events'
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['shipment', 'timestamp', 'id'], name='tracking_events_order_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Tracking events are append-only and cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Tracking events are append-only and cannot be deleted")

    @property
    def coordinate(self):
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(self.latitude, self.longitude)

    def __str__(self):
        return f"{self.shipment_id} - {self.status} @ {self.timestamp:%Y-%m-%d %H:%M:%S}"
