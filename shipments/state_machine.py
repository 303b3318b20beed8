"""Shipment status transitions and who may trigger them."""

from typing import FrozenSet, NamedTuple

from users.models import User

from .exceptions import AlreadyAssigned, InvalidTransition, Unauthorized
from .models import ShipmentStatus

Role = User.Role


class TransitionRule(NamedTuple):
    roles: FrozenSet[str]
    # Only the driver assigned to the shipment may trigger it.
    assigned_driver_only: bool = False
    # Customers and businesses must be a party to the shipment.
    parties_only: bool = False


CANCELLERS = TransitionRule(frozenset({Role.CUSTOMER, Role.BUSINESS, Role.ADMIN}), parties_only=True)
ASSIGNED_DRIVER = TransitionRule(frozenset({Role.TRANSPORTER}), assigned_driver_only=True)

TRANSITIONS = {
    (ShipmentStatus.PENDING, ShipmentStatus.ASSIGNED): TransitionRule(frozenset({Role.TRANSPORTER, Role.ADMIN})),
    (ShipmentStatus.PENDING, ShipmentStatus.CANCELLED): CANCELLERS,
    (ShipmentStatus.ASSIGNED, ShipmentStatus.PICKED_UP): ASSIGNED_DRIVER,
    (ShipmentStatus.ASSIGNED, ShipmentStatus.CANCELLED): CANCELLERS,
    (ShipmentStatus.PICKED_UP, ShipmentStatus.IN_TRANSIT): ASSIGNED_DRIVER,
    (ShipmentStatus.IN_TRANSIT, ShipmentStatus.DELIVERED): ASSIGNED_DRIVER,
}

TERMINAL_STATUSES = frozenset({ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({ShipmentStatus.ASSIGNED, ShipmentStatus.PICKED_UP, ShipmentStatus.IN_TRANSIT})


class StatusStateMachine:
    def __init__(self, transitions=None):
        self.transitions = dict(transitions or TRANSITIONS)

    def allowed_targets(self, status):
        return [target for (source, target) in self.transitions if source == status]

    def is_terminal(self, status):
        return status in TERMINAL_STATUSES

    def is_active(self, status):
        return status in ACTIVE_STATUSES

    def validate(self, shipment, target, actor):
        """
        Check that ``actor`` may move ``shipment`` to ``target``.

        Raises AlreadyAssigned, InvalidTransition or Unauthorized; returns the
        matching rule otherwise. The shipment is never modified here.
        """
        # Only a job not yet picked up can be "already assigned".
        if (target == ShipmentStatus.ASSIGNED and shipment.driver_id is not None
                and shipment.status in (ShipmentStatus.PENDING, ShipmentStatus.ASSIGNED)):
            raise AlreadyAssigned(f"Shipment {shipment.tracking_number} already has a driver")

        rule = self.transitions.get((shipment.status, target))
        if rule is None:
            if target not in ShipmentStatus.values:
                raise InvalidTransition(f"Unknown status {target!r}")
            if self.is_terminal(shipment.status):
                raise InvalidTransition(
                    f"Shipment {shipment.tracking_number} is {shipment.status}; no further transitions allowed"
                )
            raise InvalidTransition(f"Cannot move shipment from {shipment.status} to {target}")

        role = actor.effective_role
        if role not in rule.roles:
            raise Unauthorized(f"Role {role!r} cannot move a shipment from {shipment.status} to {target}")
        if rule.assigned_driver_only and shipment.driver_id != actor.pk:
            raise Unauthorized("Only the assigned driver can update this shipment")
        if rule.parties_only and role != Role.ADMIN and not shipment.is_party(actor):
            raise Unauthorized("Only the shipment's customer, business or an admin can cancel it")
        return rule
