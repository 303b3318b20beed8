import math

from rest_framework import generics, permissions, status, filters
from rest_framework.response import Response
from rest_framework.exceptions import ValidationError
from rest_framework.views import APIView
from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend

from .exceptions import NotFound
from .filters import ShipmentFilter
from .models import ShipmentStatus
from .serializers import (
    ShipmentSerializer, ShipmentCreateSerializer, QuoteRequestSerializer,
    StatusUpdateSerializer, AcceptJobSerializer, CancelSerializer,
    TrackingEventSerializer, TrackingEventCreateSerializer,
    ShipmentTrackingSerializer, DriverCandidateSerializer,
)
from .services import ShipmentService


class ShipmentServiceMixin:
    service_class = ShipmentService

    @property
    def service(self):
        if not hasattr(self, '_service'):
            self._service = self.service_class()
        return self._service


def _query_number(request, name, cast=float):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return None
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: f"must be a number, got {raw!r}"})
    if not math.isfinite(value):
        raise ValidationError({name: f"must be finite, got {raw!r}"})
    return value


# ========== SHIPMENTS ==========

class ShipmentListCreateView(ShipmentServiceMixin, generics.ListCreateAPIView):
    """
    List the shipments visible to the caller or book a new one
    """
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ShipmentFilter
    search_fields = ['tracking_number', 'pickup_address', 'delivery_address', 'receiver_name']
    ordering_fields = ['created_at', 'updated_at', 'estimated_cost', 'status']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ShipmentCreateSerializer
        return ShipmentSerializer

    def get_queryset(self):
        return self.service.visible_to(self.request.user).order_by('-created_at')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if serializer.is_valid():
            shipment = self.service.create_shipment(request.user, serializer.validated_data)
            return Response(
                ShipmentSerializer(shipment).data,
                status=status.HTTP_201_CREATED
            )

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class ShipmentQuoteView(ShipmentServiceMixin, APIView):
    """
    Price a trip without booking it
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        pickup, delivery = serializer.coordinates()
        quote = self.service.quote(
            pickup, delivery, data['package_weight'], data['package_value'], data['tier'],
        )
        return Response({
            'estimated_cost': str(quote.cost),
            'currency': quote.currency,
            'distance_km': round(quote.distance_km, 2),
            'tier': data['tier'],
        })


class ShipmentStatsView(ShipmentServiceMixin, APIView):
    """
    Counts per status and revenue over the caller's shipments
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        stats = self.service.stats(self.service.visible_to(request.user))
        stats['total_estimated_cost'] = str(stats['total_estimated_cost'])
        stats['delivered_revenue'] = str(stats['delivered_revenue'])
        stats['currency'] = settings.SHIPMENTS.get('CURRENCY', 'USD')
        return Response(stats)


class ShipmentDetailView(ShipmentServiceMixin, APIView):
    """
    Retrieve a shipment, or move it to another status
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        shipment = self.service.get_shipment(pk)
        if not self.service.can_view(shipment, request.user):
            raise NotFound(f"Shipment {pk} not found")
        return Response(ShipmentSerializer(shipment).data)

    def put(self, request, pk):
        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        shipment = self.service.advance_status(
            pk,
            request.user,
            serializer.validated_data['status'],
            coordinate=serializer.coordinate(),
            note=serializer.validated_data['note'],
        )
        return Response(ShipmentSerializer(shipment).data)

    def patch(self, request, pk):
        return self.put(request, pk)


class ShipmentAcceptView(ShipmentServiceMixin, APIView):
    """
    Accept a pending job; admins may name the driver
    """
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, pk):
        serializer = AcceptJobSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        driver_id = serializer.validated_data['driverId'] or request.user.pk
        shipment = self.service.accept_job(
            pk,
            driver_id,
            actor=request.user,
            coordinate=serializer.coordinate(),
            note=serializer.validated_data['note'],
        )
        return Response(ShipmentSerializer(shipment).data)


class ShipmentCancelView(ShipmentServiceMixin, APIView):
    """
    Cancel a shipment
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        serializer = CancelSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        shipment = self.service.cancel(pk, request.user, note=serializer.validated_data['note'])
        return Response({
            'message': 'Shipment cancelled successfully',
            'shipment': ShipmentSerializer(shipment).data,
        })


class ShipmentRequoteView(ShipmentServiceMixin, APIView):
    """
    Recompute the estimated cost with the current rates
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        shipment = self.service.requote(pk, request.user)
        return Response(ShipmentSerializer(shipment).data)


class ShipmentTrackingView(ShipmentServiceMixin, APIView):
    """
    Shipment together with its full tracking history
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        shipment, events = self.service.get_tracking(pk, actor=request.user)
        data = ShipmentTrackingSerializer({'shipment': shipment, 'tracking_events': events}).data
        data['tracking_summary'] = {
            'total_events': len(events),
            'current_status': shipment.status,
            'current_latitude': shipment.current_latitude,
            'current_longitude': shipment.current_longitude,
            'is_delivered': shipment.status == ShipmentStatus.DELIVERED,
        }
        return Response(data)


class ShipmentCandidatesView(ShipmentServiceMixin, APIView):
    """
    Available transporters ranked by distance to the pickup point
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        max_distance = _query_number(request, 'maxDistanceKm')
        limit = _query_number(request, 'limit', int)
        if limit is not None and limit < 0:
            raise ValidationError({'limit': 'cannot be negative'})

        ranked = self.service.rank_candidates(
            pk, max_distance_km=max_distance, limit=limit, actor=request.user,
        )
        shipment = self.service.get_shipment(pk)
        distances = {
            candidate.driver_id: self.service.matcher.distance_to_pickup(shipment, candidate)
            for candidate in ranked
        }
        serializer = DriverCandidateSerializer(ranked, many=True, context={'distances': distances})
        return Response({
            'shipment_id': str(shipment.pk),
            'count': len(ranked),
            'candidates': serializer.data,
        })


# ========== TRACKING ==========

class TrackingView(ShipmentServiceMixin, APIView):
    """
    Tracking history of a shipment or a driver, and driver location pings
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        shipment_id = request.query_params.get('shipmentId')
        driver_id = request.query_params.get('driverId')

        if shipment_id:
            _, events = self.service.get_tracking(shipment_id, actor=request.user)
            return Response(TrackingEventSerializer(events, many=True).data)

        if driver_id:
            driver = self.service.get_user(driver_id, 'Driver')
            if driver.pk != request.user.pk and not request.user.is_admin:
                raise NotFound(f"Driver {driver_id} not found")
            events = self.service.driver_feed(driver.pk)
            return Response(TrackingEventSerializer(events, many=True).data)

        if request.user.is_admin:
            events = self.service.recent_activity()
            return Response(TrackingEventSerializer(events, many=True).data)

        return Response({
            'error': 'shipmentId or driverId is required'
        }, status=status.HTTP_400_BAD_REQUEST)

    def post(self, request):
        serializer = TrackingEventCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        coordinate = serializer.coordinate()

        shipment = self.service.get_shipment(data['shipmentId'])
        target = data['status']
        if target and target != shipment.status:
            self.service.advance_status(
                shipment.pk, request.user, target, coordinate=coordinate, note=data['notes'],
            )
            event = self.service.ledger.latest(shipment.pk)
        else:
            event = self.service.record_location(
                shipment.pk, request.user, coordinate, note=data['notes'],
            )

        return Response(
            TrackingEventSerializer(event).data,
            status=status.HTTP_201_CREATED
        )
