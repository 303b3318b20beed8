from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator


class User(AbstractUser):
    class Role(models.TextChoices):
        CUSTOMER = 'customer', 'Customer'
        BUSINESS = 'business', 'Business'
        TRANSPORTER = 'transporter', 'Transporter'
        ADMIN = 'admin', 'Admin'

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER)
    company_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'users'

    @property
    def effective_role(self):
        """Superusers act as admins whatever role they were created with."""
        if self.is_superuser:
            return self.Role.ADMIN
        return self.role

    @property
    def is_admin(self):
        return self.effective_role == self.Role.ADMIN

    @property
    def is_transporter(self):
        return self.effective_role == self.Role.TRANSPORTER

    def __str__(self):
        return f"{self.username} ({self.role})"


class TransporterProfile(models.Model):
    """Driver presence: where a transporter is and whether they take jobs."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='transporter_profile')
    vehicle_type = models.CharField(max_length=50, blank=True)
    vehicle_number = models.CharField(max_length=30, blank=True)
    current_latitude = models.FloatField(null=True, blank=True)
    current_longitude = models.FloatField(null=True, blank=True)
    is_available = models.BooleanField(default=True)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transporter_profiles'

    @property
    def vehicle(self):
        return ' '.join(part for part in (self.vehicle_type, self.vehicle_number) if part)

    @property
    def has_location(self):
        return self.current_latitude is not None and self.current_longitude is not None

    def __str__(self):
        state = 'available' if self.is_available else 'busy'
        return f"{self.user.username} - {state}"
