from decimal import Decimal

from django.test import SimpleTestCase

from users.models import TransporterProfile

from shipments.dispatch import DispatchMatcher, DriverCandidate, candidates_from_profiles
from shipments.geo import Coordinate
from shipments.models import Shipment

from .helpers import BANGALORE


def candidate(driver_id, dlat, available=True, rating='4.00'):
    return DriverCandidate(
        driver_id=driver_id,
        coordinate=Coordinate(BANGALORE.latitude + dlat, BANGALORE.longitude),
        available=available,
        rating=Decimal(rating),
    )


class DispatchMatcherTests(SimpleTestCase):
    def setUp(self):
        self.matcher = DispatchMatcher()
        self.shipment = Shipment(
            pickup_latitude=BANGALORE.latitude, pickup_longitude=BANGALORE.longitude,
            delivery_latitude=13.0827, delivery_longitude=80.2707,
        )

    def test_nearest_first(self):
        ranked = self.matcher.rank(self.shipment, [candidate(1, 0.3), candidate(2, 0.01), candidate(3, 0.1)])
        self.assertEqual([c.driver_id for c in ranked], [2, 3, 1])

    def test_unavailable_are_dropped(self):
        ranked = self.matcher.rank(self.shipment, [candidate(1, 0.01, available=False), candidate(2, 0.5)])
        self.assertEqual([c.driver_id for c in ranked], [2])

    def test_no_candidates_is_empty_not_error(self):
        self.assertEqual(self.matcher.rank(self.shipment, []), [])
        self.assertEqual(self.matcher.rank(self.shipment, [candidate(1, 0.1, available=False)]), [])

    def test_rating_breaks_distance_ties(self):
        ranked = self.matcher.rank(
            self.shipment, [candidate(1, 0.1, rating='3.20'), candidate(2, 0.1, rating='4.90')],
        )
        self.assertEqual([c.driver_id for c in ranked], [2, 1])

    def test_radius_and_limit(self):
        pool = [candidate(1, 0.01), candidate(2, 0.05), candidate(3, 1.0)]
        within = self.matcher.rank(self.shipment, pool, max_distance_km=20)
        self.assertEqual([c.driver_id for c in within], [1, 2])
        self.assertEqual([c.driver_id for c in self.matcher.rank(self.shipment, pool, limit=1)], [1])

    def test_distance_to_pickup(self):
        self.assertEqual(self.matcher.distance_to_pickup(self.shipment, candidate(1, 0)), 0.0)


class PresenceAdapterTests(SimpleTestCase):
    def test_profiles_without_location_are_skipped(self):
        profiles = [
            TransporterProfile(user_id=7, vehicle_type='bike', vehicle_number='KA-1', current_latitude=12.0,
                               current_longitude=77.0, is_available=True, rating=Decimal('4.10')),
            TransporterProfile(user_id=8, vehicle_type='van', is_available=True),
        ]
        candidates = candidates_from_profiles(profiles)
        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].driver_id, 7)
        self.assertEqual(candidates[0].coordinate, Coordinate(12.0, 77.0))
        self.assertEqual(candidates[0].vehicle, 'bike KA-1')
        self.assertEqual(candidates[0].rating, Decimal('4.10'))
