from rest_framework import serializers
from django.contrib.auth import get_user_model

from .geo import Coordinate, distance_km
from .models import Shipment, ShipmentStatus, ShipmentTier, TrackingEvent

User = get_user_model()


class ShipmentCreateSerializer(serializers.Serializer):
    """
    Input for booking a shipment.

    Only shape is checked here; coordinate ranges and package attributes are
    validated by the service so they surface as tagged shipment errors.
    """
    customer = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True),
        required=False,
        allow_null=True,
        help_text="Customer the shipment is booked for (business and admin callers)",
    )
    pickup_address = serializers.CharField(max_length=500)
    pickup_latitude = serializers.FloatField()
    pickup_longitude = serializers.FloatField()
    delivery_address = serializers.CharField(max_length=500)
    delivery_latitude = serializers.FloatField()
    delivery_longitude = serializers.FloatField()
    package_description = serializers.CharField()
    package_weight = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    package_value = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    package_dimensions = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    tier = serializers.ChoiceField(choices=ShipmentTier.choices, required=False, default=ShipmentTier.REGULAR)
    receiver_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    receiver_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    special_instructions = serializers.CharField(required=False, allow_blank=True, default='')


class QuoteRequestSerializer(serializers.Serializer):
    pickup_latitude = serializers.FloatField()
    pickup_longitude = serializers.FloatField()
    delivery_latitude = serializers.FloatField()
    delivery_longitude = serializers.FloatField()
    package_weight = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    package_value = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    tier = serializers.ChoiceField(choices=ShipmentTier.choices, required=False, default=ShipmentTier.REGULAR)

    def coordinates(self):
        data = self.validated_data
        return (
            Coordinate.of(data['pickup_latitude'], data['pickup_longitude']),
            Coordinate.of(data['delivery_latitude'], data['delivery_longitude']),
        )


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    note = serializers.CharField(required=False, allow_blank=True, default='')

    def coordinate(self):
        return Coordinate.optional(self.validated_data['latitude'], self.validated_data['longitude'])


class AcceptJobSerializer(serializers.Serializer):
    driverId = serializers.IntegerField(required=False, allow_null=True, default=None)
    latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    note = serializers.CharField(required=False, allow_blank=True, default='')

    def coordinate(self):
        return Coordinate.optional(self.validated_data['latitude'], self.validated_data['longitude'])


class CancelSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default='')


class TrackingEventCreateSerializer(serializers.Serializer):
    shipmentId = serializers.UUIDField()
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    status = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def coordinate(self):
        return Coordinate.of(self.validated_data['latitude'], self.validated_data['longitude'])


class PartySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'role']
        read_only_fields = fields


class TrackingEventSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    shipment_id = serializers.UUIDField(read_only=True)
    tracking_number = serializers.CharField(source='shipment.tracking_number', read_only=True)
    actor = serializers.SerializerMethodField()
    formatted_timestamp = serializers.SerializerMethodField()

    class Meta:
        model = TrackingEvent
        fields = [
            'id', 'shipment_id', 'tracking_number', 'event_type', 'status', 'status_display',
            'latitude', 'longitude', 'location', 'note', 'actor',
            'timestamp', 'formatted_timestamp',
        ]
        read_only_fields = fields

    def get_actor(self, obj):
        return obj.actor.username if obj.actor_id else None

    def get_formatted_timestamp(self, obj):
        return obj.timestamp.strftime('%Y-%m-%d %H:%M:%S') if obj.timestamp else None


class ShipmentSerializer(serializers.ModelSerializer):
    """Complete read representation of a shipment."""
    customer = PartySerializer(read_only=True)
    business = PartySerializer(read_only=True)
    driver = PartySerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    tier_display = serializers.CharField(source='get_tier_display', read_only=True)
    distance_km = serializers.SerializerMethodField()
    is_terminal = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = [
            'id', 'tracking_number',

            # Parties
            'customer', 'business', 'driver',

            # Geography
            'pickup_address', 'pickup_latitude', 'pickup_longitude',
            'delivery_address', 'delivery_latitude', 'delivery_longitude',
            'current_latitude', 'current_longitude', 'distance_km',

            # Package
            'package_description', 'package_weight', 'package_value',
            'package_dimensions', 'tier', 'tier_display',

            # Receiver
            'receiver_name', 'receiver_phone', 'special_instructions',

            # Commercial
            'estimated_cost', 'currency',

            # Status
            'status', 'status_display', 'is_terminal',

            # Dates
            'created_at', 'updated_at', 'picked_up_at', 'delivered_at',
        ]
        read_only_fields = fields

    def get_distance_km(self, obj):
        return round(distance_km(obj.pickup_coordinate, obj.delivery_coordinate), 1)

    def get_is_terminal(self, obj):
        return obj.status in (ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED)


class ShipmentTrackingSerializer(serializers.Serializer):
    shipment = ShipmentSerializer()
    tracking_events = TrackingEventSerializer(many=True)


class DriverCandidateSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()
    latitude = serializers.FloatField(source='coordinate.latitude')
    longitude = serializers.FloatField(source='coordinate.longitude')
    vehicle = serializers.CharField()
    rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    distance_km = serializers.SerializerMethodField()

    def get_distance_km(self, candidate):
        distances = self.context.get('distances', {})
        distance = distances.get(candidate.driver_id)
        return round(distance, 2) if distance is not None else None
