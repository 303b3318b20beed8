from django.test import SimpleTestCase

from users.models import User

from shipments.exceptions import AlreadyAssigned, InvalidTransition, Unauthorized
from shipments.models import Shipment, ShipmentStatus
from shipments.state_machine import StatusStateMachine, TRANSITIONS

S = ShipmentStatus


def person(pk, role):
    return User(pk=pk, username=f"user{pk}", role=role)


class StateMachineTests(SimpleTestCase):
    def setUp(self):
        self.machine = StatusStateMachine()
        self.customer = person(1, User.Role.CUSTOMER)
        self.business = person(2, User.Role.BUSINESS)
        self.driver = person(3, User.Role.TRANSPORTER)
        self.other_driver = person(4, User.Role.TRANSPORTER)
        self.admin = person(5, User.Role.ADMIN)
        self.stranger = person(6, User.Role.CUSTOMER)

    def shipment(self, status, driver=None):
        return Shipment(
            tracking_number='TRKTEST',
            status=status,
            customer_id=self.customer.pk,
            business_id=self.business.pk,
            driver_id=driver.pk if driver else None,
        )

    def test_transition_table(self):
        self.assertEqual(set(TRANSITIONS), {
            (S.PENDING, S.ASSIGNED),
            (S.PENDING, S.CANCELLED),
            (S.ASSIGNED, S.PICKED_UP),
            (S.ASSIGNED, S.CANCELLED),
            (S.PICKED_UP, S.IN_TRANSIT),
            (S.IN_TRANSIT, S.DELIVERED),
        })

    def test_happy_path(self):
        self.machine.validate(self.shipment(S.PENDING), S.ASSIGNED, self.driver)
        self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.PICKED_UP, self.driver)
        self.machine.validate(self.shipment(S.PICKED_UP, self.driver), S.IN_TRANSIT, self.driver)
        self.machine.validate(self.shipment(S.IN_TRANSIT, self.driver), S.DELIVERED, self.driver)

    def test_skipping_in_transit_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            self.machine.validate(self.shipment(S.PICKED_UP, self.driver), S.DELIVERED, self.driver)

    def test_terminal_statuses_have_no_exits(self):
        for terminal in (S.DELIVERED, S.CANCELLED):
            self.assertTrue(self.machine.is_terminal(terminal))
            self.assertEqual(self.machine.allowed_targets(terminal), [])
            for target in S.values:
                with self.subTest(source=terminal, target=target):
                    with self.assertRaises(InvalidTransition):
                        self.machine.validate(self.shipment(terminal, self.driver), target, self.admin)

    def test_cancel_delivered_is_invalid(self):
        with self.assertRaises(InvalidTransition):
            self.machine.validate(self.shipment(S.DELIVERED, self.driver), S.CANCELLED, self.customer)

    def test_unknown_status(self):
        with self.assertRaises(InvalidTransition):
            self.machine.validate(self.shipment(S.PENDING), 'lost', self.admin)

    def test_assigned_to_shipment_with_driver(self):
        with self.assertRaises(AlreadyAssigned):
            self.machine.validate(self.shipment(S.PENDING, self.driver), S.ASSIGNED, self.other_driver)

    def test_reassigning_a_moving_shipment_is_invalid(self):
        for source in (S.PICKED_UP, S.IN_TRANSIT):
            with self.subTest(source=source):
                with self.assertRaises(InvalidTransition):
                    self.machine.validate(self.shipment(source, self.driver), S.ASSIGNED, self.other_driver)

    def test_second_claim_on_assigned_job(self):
        with self.assertRaises(AlreadyAssigned):
            self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.ASSIGNED, self.other_driver)

    def test_customer_cannot_accept(self):
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.PENDING), S.ASSIGNED, self.customer)

    def test_only_assigned_driver_moves_the_parcel(self):
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.PICKED_UP, self.other_driver)
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.PICKED_UP, self.customer)

    def test_admin_does_not_drive(self):
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.IN_TRANSIT, self.driver), S.DELIVERED, self.admin)

    def test_cancellation_rights(self):
        for actor in (self.customer, self.business, self.admin):
            with self.subTest(actor=actor.username):
                self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.CANCELLED, actor)
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.PENDING), S.CANCELLED, self.stranger)
        with self.assertRaises(Unauthorized):
            self.machine.validate(self.shipment(S.ASSIGNED, self.driver), S.CANCELLED, self.driver)

    def test_superuser_acts_as_admin(self):
        root = User(pk=9, username='root', role=User.Role.CUSTOMER, is_superuser=True)
        self.machine.validate(self.shipment(S.PENDING), S.ASSIGNED, root)

    def test_validate_does_not_modify(self):
        shipment = self.shipment(S.PENDING)
        self.machine.validate(shipment, S.ASSIGNED, self.driver)
        self.assertEqual(shipment.status, S.PENDING)
        self.assertIsNone(shipment.driver_id)
