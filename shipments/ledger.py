"""
Append-only tracking log.

The ledger records; it does not judge. Callers validate the transition with
the state machine first and append inside the same transaction as the
shipment update.
"""

import logging

from django.utils import timezone

from .exceptions import InvalidTransition
from .geo import validate_coordinate
from .models import ShipmentStatus, TrackingEvent

logger = logging.getLogger(__name__)


class TrackingLedger:
    def append(self, shipment_id, status, coordinate=None, note='', actor=None,
               event_type=TrackingEvent.EventType.STATUS_CHANGE, location=''):
        if status not in ShipmentStatus.values:
            raise InvalidTransition(f"Cannot record unknown status {status!r}")
        if coordinate is not None:
            validate_coordinate(coordinate)

        # Never sort before the previous event, even if the clock steps back.
        timestamp = timezone.now()
        previous = self.latest(shipment_id)
        if previous is not None and previous.timestamp > timestamp:
            timestamp = previous.timestamp

        event = TrackingEvent.objects.create(
            shipment_id=shipment_id,
            status=status,
            event_type=event_type,
            latitude=coordinate.latitude if coordinate else None,
            longitude=coordinate.longitude if coordinate else None,
            location=location or '',
            note=note or '',
            actor=actor,
            timestamp=timestamp,
        )
        logger.debug("Recorded %s event %s for shipment %s", status, event.pk, shipment_id)
        return event

    def history(self, shipment_id):
        """Events of one shipment, oldest first."""
        return list(TrackingEvent.objects.filter(shipment_id=shipment_id).order_by('timestamp', 'id'))

    def latest(self, shipment_id):
        return TrackingEvent.objects.filter(shipment_id=shipment_id).order_by('-timestamp', '-id').first()

    def current_status(self, shipment_id):
        event = self.latest(shipment_id)
        return event.status if event else ShipmentStatus.PENDING

    @staticmethod
    def replay(events):
        """Derive the current status from any sequence of events."""
        latest = None
        for event in events:
            if latest is None or (event.timestamp, event.pk) >= (latest.timestamp, latest.pk):
                latest = event
        return latest.status if latest else ShipmentStatus.PENDING

    def for_driver(self, driver_id, limit=50):
        """Most recent events across a driver's shipments, newest first."""
        return list(
            TrackingEvent.objects
            .filter(shipment__driver_id=driver_id)
            .select_related('shipment')
            .order_by('-timestamp', '-id')[:limit]
        )

    def recent(self, limit=100):
        return list(TrackingEvent.objects.select_related('shipment').order_by('-timestamp', '-id')[:limit])
