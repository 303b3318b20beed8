import logging

from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from shipments.exceptions import Unauthorized
from shipments.geo import Coordinate
from .models import TransporterProfile, User
from .serializers import (
    UserProfileSerializer, TransporterProfileSerializer, PresenceUpdateSerializer
)

logger = logging.getLogger(__name__)


class UserProfileView(generics.RetrieveAPIView):
    """
    Get current user profile
    """
    serializer_class = UserProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class TransporterPresenceView(APIView):
    """
    Transporter reports where they are and whether they take jobs
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        profile = TransporterProfile.objects.filter(user=request.user).first()
        if profile is None:
            return Response({
                'error': 'No presence recorded yet'
            }, status=status.HTTP_404_NOT_FOUND)
        return Response(TransporterProfileSerializer(profile).data)

    def put(self, request):
        if not request.user.is_transporter:
            raise Unauthorized("Only transporters report presence")

        serializer = PresenceUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        coordinate = Coordinate.of(data['latitude'], data['longitude'])

        profile, created = TransporterProfile.objects.get_or_create(user=request.user)
        profile.current_latitude = coordinate.latitude
        profile.current_longitude = coordinate.longitude
        if data['isAvailable'] is not None:
            profile.is_available = data['isAvailable']
        if 'vehicleType' in data:
            profile.vehicle_type = data['vehicleType']
        if 'vehicleNumber' in data:
            profile.vehicle_number = data['vehicleNumber']
        profile.save()

        logger.info(
            "Presence of %s: (%.5f, %.5f) %s",
            request.user.username, coordinate.latitude, coordinate.longitude,
            'available' if profile.is_available else 'busy',
        )
        return Response(
            TransporterProfileSerializer(profile).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class AvailableDriverListView(generics.ListAPIView):
    """
    Presence feed of transporters, optionally only the available ones
    """
    serializer_class = TransporterProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = TransporterProfile.objects.filter(
            user__is_active=True, user__role=User.Role.TRANSPORTER
        ).select_related('user').order_by('user__username')

        available = self.request.query_params.get('available')
        if available is not None:
            queryset = queryset.filter(is_available=available.lower() in ('1', 'true', 'yes'))
        return queryset
