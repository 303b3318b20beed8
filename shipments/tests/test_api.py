from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from users.models import User

from shipments.models import Shipment, ShipmentStatus
from shipments.services import ShipmentService

from .helpers import booking_data, make_driver, make_user


class ShipmentApiTestCase(APITestCase):
    def setUp(self):
        self.service = ShipmentService()
        self.customer = make_user('asha')
        self.admin = make_user('ops', User.Role.ADMIN)
        self.driver = make_driver('ravi', 12.98, 77.60)
        self.other_driver = make_driver('kiran', 12.90, 77.50)

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def book(self):
        return self.service.create_shipment(self.customer, booking_data())


class ShipmentEndpointTests(ShipmentApiTestCase):
    def test_requires_authentication(self):
        response = self.client.get(reverse('shipment-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create(self):
        self.as_user(self.customer)
        response = self.client.post(reverse('shipment-list'), booking_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], ShipmentStatus.PENDING)
        self.assertEqual(response.data['customer']['username'], 'asha')
        self.assertGreater(Decimal(response.data['estimated_cost']), 4300)
        self.assertAlmostEqual(response.data['distance_km'], 290.3, delta=1.0)

    def test_create_rejects_bad_coordinate(self):
        self.as_user(self.customer)
        response = self.client.post(reverse('shipment-list'), booking_data(pickup_latitude=120), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_coordinate')
        self.assertEqual(Shipment.objects.count(), 0)

    def test_create_rejects_missing_fields(self):
        self.as_user(self.customer)
        response = self.client.post(reverse('shipment-list'), {'pickup_address': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_latitude', response.data)

    def test_transporter_cannot_book(self):
        self.as_user(self.driver)
        response = self.client.post(reverse('shipment-list'), booking_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'unauthorized')

    def test_list_is_scoped_and_filtered(self):
        mine = self.book()
        self.service.create_shipment(make_user('bina'), booking_data())
        self.as_user(self.customer)

        response = self.client.get(reverse('shipment-list'))
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], str(mine.pk))

        self.as_user(self.admin)
        self.assertEqual(self.client.get(reverse('shipment-list')).data['count'], 2)
        response = self.client.get(reverse('shipment-list'), {'customerId': self.customer.pk})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get(reverse('shipment-list'), {'unassigned': 'true'})
        self.assertEqual(response.data['count'], 2)
        response = self.client.get(reverse('shipment-list'), {'status': 'delivered'})
        self.assertEqual(response.data['count'], 0)

    def test_quote(self):
        self.as_user(self.customer)
        payload = booking_data()
        response = self.client.post(reverse('shipment-quote'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['currency'], 'USD')
        self.assertEqual(Shipment.objects.count(), 0)

        response = self.client.post(reverse('shipment-quote'), dict(payload, package_weight=-1), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_package_attribute')

    def test_detail_hidden_from_strangers(self):
        shipment = self.book()
        self.as_user(make_user('mallory'))
        response = self.client.get(reverse('shipment-detail', args=[shipment.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')

    def test_accept_twice(self):
        shipment = self.book()
        self.as_user(self.driver)
        response = self.client.put(reverse('shipment-accept', args=[shipment.pk]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['driver']['username'], 'ravi')

        self.as_user(self.other_driver)
        response = self.client.put(reverse('shipment-accept', args=[shipment.pk]), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'already_assigned')

    def test_admin_assigns_driver(self):
        shipment = self.book()
        self.as_user(self.admin)
        response = self.client.put(
            reverse('shipment-accept', args=[shipment.pk]), {'driverId': self.other_driver.pk}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['driver']['id'], self.other_driver.pk)

    def test_status_update(self):
        shipment = self.book()
        self.service.accept_job(shipment.pk, self.driver.pk)
        self.as_user(self.driver)
        url = reverse('shipment-detail', args=[shipment.pk])

        response = self.client.patch(url, {'status': 'picked_up', 'latitude': 12.97, 'longitude': 77.59}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'picked_up')

        response = self.client.put(url, {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'invalid_transition')

    def test_cancel_and_requote(self):
        shipment = self.book()
        self.as_user(self.customer)
        response = self.client.post(reverse('shipment-requote', args=[shipment.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(reverse('shipment-cancel', args=[shipment.pk]), {'note': 'no longer needed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shipment']['status'], 'cancelled')

        response = self.client.post(reverse('shipment-cancel', args=[shipment.pk]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_tracking_history(self):
        shipment = self.book()
        self.service.accept_job(shipment.pk, self.driver.pk)
        self.as_user(self.customer)
        response = self.client.get(reverse('shipment-tracking', args=[shipment.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e['status'] for e in response.data['tracking_events']], ['assigned'])
        self.assertEqual(response.data['tracking_summary']['current_status'], 'assigned')

    def test_candidates(self):
        shipment = self.book()
        make_driver('busy', 12.97, 77.59, available=False)
        self.as_user(self.customer)
        response = self.client.get(reverse('shipment-candidates', args=[shipment.pk]), {'limit': 5})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['driver_id'] for c in response.data['candidates']], [self.driver.pk, self.other_driver.pk])
        self.assertLess(response.data['candidates'][0]['distance_km'], response.data['candidates'][1]['distance_km'])

        response = self.client.get(reverse('shipment-candidates', args=[shipment.pk]), {'maxDistanceKm': 'far'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        for raw in ('nan', 'inf', '-inf'):
            with self.subTest(maxDistanceKm=raw):
                response = self.client.get(reverse('shipment-candidates', args=[shipment.pk]), {'maxDistanceKm': raw})
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn('maxDistanceKm', response.data)

    def test_stats(self):
        self.book()
        self.as_user(self.customer)
        response = self.client.get(reverse('shipment-stats'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_shipments'], 1)
        self.assertEqual(response.data['by_status']['pending'], 1)


class TrackingEndpointTests(ShipmentApiTestCase):
    def setUp(self):
        super().setUp()
        self.shipment = self.book()
        self.service.accept_job(self.shipment.pk, self.driver.pk)
        self.as_user(self.driver)

    def post_ping(self, **payload):
        data = {'shipmentId': str(self.shipment.pk), 'latitude': 12.99, 'longitude': 77.7}
        data.update(payload)
        return self.client.post(reverse('tracking'), data, format='json')

    def test_status_change(self):
        response = self.post_ping(status='picked_up', notes='Collected')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'picked_up')
        self.assertEqual(response.data['event_type'], 'status_change')
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, ShipmentStatus.PICKED_UP)

    def test_location_ping(self):
        response = self.post_ping()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['event_type'], 'location_update')
        self.assertEqual(response.data['status'], 'assigned')
        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, ShipmentStatus.ASSIGNED)

    def test_invalid_jump(self):
        response = self.post_ping(status='delivered')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'invalid_transition')

    def test_invalid_coordinate(self):
        response = self.post_ping(latitude=-95)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_coordinate')

    def test_history_and_driver_feed(self):
        self.post_ping(status='picked_up')
        response = self.client.get(reverse('tracking'), {'shipmentId': str(self.shipment.pk)})
        self.assertEqual([e['status'] for e in response.data], ['assigned', 'picked_up'])

        response = self.client.get(reverse('tracking'), {'driverId': self.driver.pk})
        self.assertEqual([e['status'] for e in response.data], ['picked_up', 'assigned'])

        self.as_user(self.other_driver)
        response = self.client.get(reverse('tracking'), {'driverId': self.driver.pk})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_a_query(self):
        response = self.client.get(reverse('tracking'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_recent_feed(self):
        self.post_ping(status='picked_up')
        self.as_user(self.admin)
        response = self.client.get(reverse('tracking'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e['status'] for e in response.data], ['picked_up', 'assigned'])
