"""
Shipment orchestration.

``ShipmentService`` is the only writer of ``Shipment.status``. Every mutating
operation is one unit of work: the transition check, the conditional status
update and the ledger append commit together or not at all.
"""

import functools
import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from users.models import TransporterProfile, User

from .dispatch import DispatchMatcher, candidates_from_profiles
from .exceptions import (
    AlreadyAssigned, InvalidCoordinate, InvalidTransition, NotFound, ShipmentError, Unauthorized,
)
from .geo import Coordinate, validate_coordinate
from .ledger import TrackingLedger
from .models import Shipment, ShipmentStatus, TrackingEvent
from .pricing import CostEstimator
from .state_machine import ACTIVE_STATUSES, TERMINAL_STATUSES, StatusStateMachine

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
REQUOTABLE_STATUSES = frozenset({ShipmentStatus.PENDING, ShipmentStatus.ASSIGNED})


def audited(operation):
    """Log rejected operations before the error reaches the caller."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ShipmentError as exc:
                logger.warning("%s rejected: %s (%s)", operation, exc.kind, exc.message)
                raise
        return wrapper
    return decorator


class ShipmentService:
    def __init__(self, estimator=None, state_machine=None, ledger=None, matcher=None):
        self.estimator = estimator or CostEstimator.from_settings()
        self.state_machine = state_machine or StatusStateMachine()
        self.ledger = ledger or TrackingLedger()
        self.matcher = matcher or DispatchMatcher()

    # ========== LOOKUPS ==========

    def get_shipment(self, shipment_id, lock=False):
        queryset = Shipment.objects.select_for_update() if lock else Shipment.objects.all()
        try:
            return queryset.get(pk=shipment_id)
        except (Shipment.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Shipment {shipment_id} not found")

    def get_user(self, user_id, label='User'):
        if isinstance(user_id, User):
            return user_id
        try:
            return User.objects.get(pk=user_id, is_active=True)
        except (User.DoesNotExist, ValidationError, ValueError, TypeError):
            raise NotFound(f"{label} {user_id} not found")

    def visible_to(self, actor):
        """Shipments an actor may see; transporters also see the open job board."""
        queryset = Shipment.objects.select_related('customer', 'business', 'driver')
        role = actor.effective_role
        if role == User.Role.ADMIN:
            return queryset
        if role == User.Role.TRANSPORTER:
            return queryset.filter(Q(driver=actor) | Q(driver__isnull=True, status=ShipmentStatus.PENDING))
        return queryset.filter(Q(customer=actor) | Q(business=actor))

    def can_view(self, shipment, actor):
        if actor.is_admin or shipment.is_party(actor) or shipment.driver_id == actor.pk:
            return True
        return (
            actor.is_transporter
            and shipment.driver_id is None
            and shipment.status == ShipmentStatus.PENDING
        )

    # ========== BOOKING & PRICING ==========

    def quote(self, pickup, delivery, weight_kg, declared_value, tier='regular'):
        return self.estimator.estimate(pickup, delivery, weight_kg, declared_value, tier)

    @audited('create_shipment')
    @transaction.atomic
    def create_shipment(self, actor, data):
        role = actor.effective_role
        if role == User.Role.TRANSPORTER:
            raise Unauthorized("Transporters cannot book shipments")

        customer, business = actor, None
        if role == User.Role.BUSINESS:
            business = actor
            if data.get('customer') is not None:
                customer = self.get_user(data['customer'], 'Customer')
        elif role == User.Role.ADMIN and data.get('customer') is not None:
            customer = self.get_user(data['customer'], 'Customer')

        pickup = Coordinate.of(data.get('pickup_latitude'), data.get('pickup_longitude'))
        delivery = Coordinate.of(data.get('delivery_latitude'), data.get('delivery_longitude'))
        tier = data.get('tier') or Shipment.Tier.REGULAR
        weight, value = self.estimator.validate_package(
            data.get('package_weight') or 0, data.get('package_value') or 0, tier,
        )
        # Price exactly what gets stored.
        weight, value = weight.quantize(CENTS), value.quantize(CENTS)
        quote = self.estimator.estimate(pickup, delivery, weight, value, tier)

        shipment = Shipment.objects.create(
            customer=customer,
            business=business,
            pickup_address=data.get('pickup_address', ''),
            pickup_latitude=pickup.latitude,
            pickup_longitude=pickup.longitude,
            delivery_address=data.get('delivery_address', ''),
            delivery_latitude=delivery.latitude,
            delivery_longitude=delivery.longitude,
            package_description=data.get('package_description', ''),
            package_weight=weight,
            package_value=value,
            package_dimensions=data.get('package_dimensions', ''),
            tier=tier,
            receiver_name=data.get('receiver_name', ''),
            receiver_phone=data.get('receiver_phone', ''),
            special_instructions=data.get('special_instructions', ''),
            estimated_cost=quote.cost,
            currency=quote.currency,
            status=ShipmentStatus.PENDING,
        )
        logger.info(
            "Shipment %s booked by %s: %.1f km, %s %s",
            shipment.tracking_number, actor.username, quote.distance_km, quote.cost, quote.currency,
        )
        return shipment

    @audited('requote')
    @transaction.atomic
    def requote(self, shipment_id, actor):
        shipment = self.get_shipment(shipment_id, lock=True)
        if not (actor.is_admin or shipment.is_party(actor)):
            raise Unauthorized("Only the shipment's customer, business or an admin can re-quote it")
        if shipment.status not in REQUOTABLE_STATUSES:
            raise InvalidTransition(f"A {shipment.status} shipment can no longer be re-quoted")

        quote = self.estimator.estimate(
            shipment.pickup_coordinate, shipment.delivery_coordinate,
            shipment.package_weight, shipment.package_value, shipment.tier,
        )
        previous = shipment.estimated_cost
        Shipment.objects.filter(pk=shipment.pk).update(
            estimated_cost=quote.cost, currency=quote.currency, updated_at=timezone.now(),
        )
        shipment.refresh_from_db()
        logger.info(
            "Shipment %s re-quoted by %s: %s -> %s %s",
            shipment.tracking_number, actor.username, previous, quote.cost, quote.currency,
        )
        return shipment

    # ========== STATUS TRANSITIONS ==========

    @audited('accept_job')
    def accept_job(self, shipment_id, driver_id, actor=None, coordinate=None, note=''):
        return self._accept(shipment_id, driver_id, actor, coordinate, note)

    @audited('advance_status')
    def advance_status(self, shipment_id, actor, target_status, coordinate=None, note=''):
        if target_status == ShipmentStatus.ASSIGNED:
            return self._accept(shipment_id, actor, actor, coordinate, note)
        return self._transition(shipment_id, actor, target_status, coordinate, note)

    @audited('cancel')
    def cancel(self, shipment_id, actor, note='', coordinate=None):
        return self._transition(shipment_id, actor, ShipmentStatus.CANCELLED, coordinate, note)

    @transaction.atomic
    def _accept(self, shipment_id, driver_id, actor, coordinate, note):
        driver = self.get_user(driver_id, 'Driver')
        actor = actor or driver
        shipment = self.get_shipment(shipment_id, lock=True)

        if actor.pk != driver.pk and not actor.is_admin:
            raise Unauthorized("Only an admin can assign a shipment to another driver")
        if not driver.is_transporter:
            raise Unauthorized(f"{driver.username} is not a transporter")
        self.state_machine.validate(shipment, ShipmentStatus.ASSIGNED, actor)

        if coordinate is None:
            coordinate = self._driver_position(driver)
        else:
            validate_coordinate(coordinate)

        # Compare-and-swap: exactly one concurrent accept can match this row.
        claimed = Shipment.objects.filter(
            pk=shipment.pk, status=ShipmentStatus.PENDING, driver__isnull=True,
        ).update(driver=driver, status=ShipmentStatus.ASSIGNED, updated_at=timezone.now())
        if not claimed:
            raise AlreadyAssigned(f"Shipment {shipment.tracking_number} was accepted by another driver")

        self.ledger.append(
            shipment.pk, ShipmentStatus.ASSIGNED, coordinate=coordinate,
            note=note or f"Accepted by {driver.username}", actor=actor,
        )
        TransporterProfile.objects.filter(user=driver).update(is_available=False)

        shipment.refresh_from_db()
        logger.info(
            "Shipment %s %s -> %s by %s (driver %s)",
            shipment.tracking_number, ShipmentStatus.PENDING, ShipmentStatus.ASSIGNED,
            actor.username, driver.username,
        )
        return shipment

    @transaction.atomic
    def _transition(self, shipment_id, actor, target_status, coordinate, note):
        shipment = self.get_shipment(shipment_id, lock=True)
        previous = shipment.status
        self.state_machine.validate(shipment, target_status, actor)
        if coordinate is not None:
            validate_coordinate(coordinate)

        now = timezone.now()
        changes = {'status': target_status, 'updated_at': now}
        if coordinate is not None:
            changes['current_latitude'] = coordinate.latitude
            changes['current_longitude'] = coordinate.longitude
        if target_status == ShipmentStatus.PICKED_UP:
            changes['picked_up_at'] = now
        elif target_status == ShipmentStatus.DELIVERED:
            changes['delivered_at'] = now

        updated = Shipment.objects.filter(pk=shipment.pk, status=previous).update(**changes)
        if not updated:
            raise InvalidTransition(f"Shipment {shipment.tracking_number} changed while being updated")

        self.ledger.append(shipment.pk, target_status, coordinate=coordinate, note=note, actor=actor)
        if target_status in TERMINAL_STATUSES and shipment.driver_id is not None:
            self._release_driver(shipment.driver_id, shipment.pk)

        shipment.refresh_from_db()
        logger.info(
            "Shipment %s %s -> %s by %s", shipment.tracking_number, previous, target_status, actor.username,
        )
        return shipment

    # ========== TRACKING ==========

    @audited('record_location')
    @transaction.atomic
    def record_location(self, shipment_id, actor, coordinate, note=''):
        """Geotag the shipment's current status without changing it."""
        if coordinate is None:
            raise InvalidCoordinate("latitude and longitude are required")
        validate_coordinate(coordinate)
        shipment = self.get_shipment(shipment_id, lock=True)
        if not self.state_machine.is_active(shipment.status):
            raise InvalidTransition(f"Cannot record a location for a {shipment.status} shipment")
        if shipment.driver_id != actor.pk:
            raise Unauthorized("Only the assigned driver can report the shipment's location")

        updated = Shipment.objects.filter(pk=shipment.pk, status=shipment.status).update(
            current_latitude=coordinate.latitude,
            current_longitude=coordinate.longitude,
            updated_at=timezone.now(),
        )
        if not updated:
            raise InvalidTransition(f"Shipment {shipment.tracking_number} changed while being updated")

        event = self.ledger.append(
            shipment.pk, shipment.status, coordinate=coordinate, note=note or 'Location updated',
            actor=actor, event_type=TrackingEvent.EventType.LOCATION_UPDATE,
        )
        TransporterProfile.objects.filter(user=actor).update(
            current_latitude=coordinate.latitude, current_longitude=coordinate.longitude,
        )
        return event

    def get_tracking(self, shipment_id, actor=None):
        shipment = self.get_shipment(shipment_id)
        if actor is not None and not self.can_view(shipment, actor):
            raise NotFound(f"Shipment {shipment_id} not found")
        return shipment, self.ledger.history(shipment.pk)

    def is_consistent(self, shipment):
        """The stored status must match the status replayed from the ledger."""
        return self.ledger.current_status(shipment.pk) == shipment.status

    def driver_feed(self, driver_id, limit=None):
        limit = limit or settings.SHIPMENTS.get('DRIVER_TRACKING_LIMIT', 50)
        return self.ledger.for_driver(driver_id, limit=limit)

    def recent_activity(self, limit=None):
        limit = limit or settings.SHIPMENTS.get('RECENT_TRACKING_LIMIT', 100)
        return self.ledger.recent(limit=limit)

    # ========== DISPATCH ==========

    def rank_candidates(self, shipment_id, candidates=None, max_distance_km=None, limit=None, actor=None):
        shipment = self.get_shipment(shipment_id)
        if actor is not None and not (actor.is_admin or shipment.is_party(actor)):
            raise Unauthorized("Only the shipment's customer, business or an admin can view candidates")
        if shipment.status != ShipmentStatus.PENDING or shipment.driver_id is not None:
            raise InvalidTransition(f"Shipment {shipment.tracking_number} is no longer waiting for a driver")

        if candidates is None:
            profiles = TransporterProfile.objects.filter(
                is_available=True, user__is_active=True, user__role=User.Role.TRANSPORTER,
            ).select_related('user')
            candidates = candidates_from_profiles(profiles)
        if max_distance_km is None:
            max_distance_km = settings.SHIPMENTS.get('DISPATCH_MAX_DISTANCE_KM')
        return self.matcher.rank(shipment, candidates, max_distance_km=max_distance_km, limit=limit)

    # ========== REPORTING ==========

    def stats(self, queryset):
        queryset = queryset.order_by()
        counts = {
            row['status']: row['count']
            for row in queryset.values('status').annotate(count=Count('id'))
        }
        total = queryset.aggregate(total=Sum('estimated_cost'))['total'] or 0
        delivered = queryset.filter(status=ShipmentStatus.DELIVERED).aggregate(
            total=Sum('estimated_cost'),
        )['total'] or 0
        return {
            'total_shipments': sum(counts.values()),
            'by_status': {status: counts.get(status, 0) for status in ShipmentStatus.values},
            'unassigned': queryset.filter(status=ShipmentStatus.PENDING, driver__isnull=True).count(),
            'active': queryset.filter(status__in=ACTIVE_STATUSES).count(),
            'total_estimated_cost': total,
            'delivered_revenue': delivered,
        }

    # ========== HELPERS ==========

    def _driver_position(self, driver):
        profile = TransporterProfile.objects.filter(user=driver).first()
        if profile is None or not profile.has_location:
            return None
        return Coordinate(profile.current_latitude, profile.current_longitude)

    def _release_driver(self, driver_id, finished_shipment_id):
        still_busy = Shipment.objects.filter(
            driver_id=driver_id, status__in=ACTIVE_STATUSES,
        ).exclude(pk=finished_shipment_id).exists()
        if not still_busy:
            TransporterProfile.objects.filter(user_id=driver_id).update(is_available=True)
