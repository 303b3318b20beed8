from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from .models import TransporterProfile, User


class UserModelTests(APITestCase):
    def test_superuser_is_admin(self):
        root = User.objects.create_superuser('root', 'root@example.com', 'secret-pass-123')
        self.assertEqual(root.effective_role, User.Role.ADMIN)
        self.assertTrue(root.is_admin)

    def test_vehicle_label(self):
        driver = User.objects.create_user('ravi', password='secret-pass-123', role=User.Role.TRANSPORTER)
        profile = TransporterProfile.objects.create(user=driver, vehicle_type='van', vehicle_number='KA-01')
        self.assertEqual(profile.vehicle, 'van KA-01')
        self.assertFalse(profile.has_location)


class ProfileApiTests(APITestCase):
    def setUp(self):
        self.customer = User.objects.create_user('asha', password='secret-pass-123')
        self.driver = User.objects.create_user('ravi', password='secret-pass-123', role=User.Role.TRANSPORTER)

    def test_profile(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse('user-profile'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'customer')
        self.assertIsNone(response.data['transporter_profile'])

    def test_token_login(self):
        response = self.client.post(
            reverse('token-obtain'), {'username': 'asha', 'password': 'secret-pass-123'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        self.assertEqual(self.client.get(reverse('user-profile')).data['username'], 'asha')

    def test_presence_update(self):
        self.client.force_authenticate(user=self.driver)
        response = self.client.put(
            reverse('transporter-presence'),
            {'latitude': 12.97, 'longitude': 77.59, 'isAvailable': False, 'vehicleType': 'bike'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        profile = TransporterProfile.objects.get(user=self.driver)
        self.assertEqual((profile.current_latitude, profile.current_longitude), (12.97, 77.59))
        self.assertFalse(profile.is_available)
        self.assertEqual(profile.vehicle_type, 'bike')

        response = self.client.put(reverse('transporter-presence'), {'latitude': 12.9, 'longitude': 77.5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        profile.refresh_from_db()
        self.assertFalse(profile.is_available)

    def test_presence_rules(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.put(reverse('transporter-presence'), {'latitude': 1, 'longitude': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'unauthorized')

        self.client.force_authenticate(user=self.driver)
        response = self.client.put(reverse('transporter-presence'), {'latitude': 91, 'longitude': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_coordinate')
        self.assertFalse(TransporterProfile.objects.filter(user=self.driver).exists())

    def test_driver_list(self):
        TransporterProfile.objects.create(user=self.driver, is_available=True, rating=Decimal('4.20'))
        busy = User.objects.create_user('kiran', password='secret-pass-123', role=User.Role.TRANSPORTER)
        TransporterProfile.objects.create(user=busy, is_available=False)
        self.client.force_authenticate(user=self.customer)

        response = self.client.get(reverse('driver-list'))
        self.assertEqual(response.data['count'], 2)
        response = self.client.get(reverse('driver-list'), {'available': 'true'})
        self.assertEqual([d['username'] for d in response.data['results']], ['ravi'])
