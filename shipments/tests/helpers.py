from decimal import Decimal

from users.models import TransporterProfile, User

from shipments.geo import Coordinate

BANGALORE = Coordinate(12.9716, 77.5946)
CHENNAI = Coordinate(13.0827, 80.2707)


def make_user(username, role=User.Role.CUSTOMER, **extra):
    return User.objects.create_user(username=username, password='secret-pass-123', role=role, **extra)


def make_driver(username, latitude=None, longitude=None, available=True, rating='4.50', vehicle_type='van'):
    driver = make_user(username, User.Role.TRANSPORTER)
    TransporterProfile.objects.create(
        user=driver,
        vehicle_type=vehicle_type,
        vehicle_number=f"KA-{driver.pk:04d}",
        current_latitude=latitude,
        current_longitude=longitude,
        is_available=available,
        rating=Decimal(rating),
    )
    return driver


def booking_data(pickup=BANGALORE, delivery=CHENNAI, weight=5, value=1000, tier='regular', **extra):
    data = {
        'pickup_address': 'MG Road, Bangalore',
        'pickup_latitude': pickup.latitude,
        'pickup_longitude': pickup.longitude,
        'delivery_address': 'Anna Salai, Chennai',
        'delivery_latitude': delivery.latitude,
        'delivery_longitude': delivery.longitude,
        'package_description': 'Books',
        'package_weight': weight,
        'package_value': value,
        'tier': tier,
    }
    data.update(extra)
    return data
