from rest_framework import serializers
from .models import User, TransporterProfile


class TransporterProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source='user.username', read_only=True)
    vehicle = serializers.CharField(read_only=True)

    class Meta:
        model = TransporterProfile
        fields = [
            'user_id', 'username', 'vehicle_type', 'vehicle_number', 'vehicle',
            'current_latitude', 'current_longitude', 'is_available', 'rating', 'updated_at'
        ]
        read_only_fields = ['rating', 'updated_at']


class UserProfileSerializer(serializers.ModelSerializer):
    effective_role = serializers.CharField(read_only=True)
    transporter_profile = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'first_name', 'last_name',
            'role', 'effective_role', 'company_name', 'phone',
            'date_joined', 'last_login', 'transporter_profile'
        ]
        read_only_fields = fields

    def get_transporter_profile(self, obj):
        profile = TransporterProfile.objects.filter(user=obj).first()
        if profile is None:
            return None
        return TransporterProfileSerializer(profile).data


class PresenceUpdateSerializer(serializers.Serializer):
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    isAvailable = serializers.BooleanField(required=False, allow_null=True, default=None)
    vehicleType = serializers.CharField(max_length=50, required=False, allow_blank=True)
    vehicleNumber = serializers.CharField(max_length=30, required=False, allow_blank=True)
