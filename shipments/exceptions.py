"""
Error kinds raised by the shipment engine.

Every error carries a stable ``kind`` tag that API clients switch on, and the
HTTP status it maps to. The service raises these synchronously; the API layer
renders them through ``shipments.handlers.api_exception_handler``.
"""

from rest_framework import status


class ShipmentError(Exception):
    kind = 'shipment_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Shipment operation failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {'error': self.kind, 'detail': self.message}


class InvalidCoordinate(ShipmentError):
    kind = 'invalid_coordinate'
    default_message = 'Latitude must be within [-90, 90] and longitude within [-180, 180]'


class InvalidPackageAttribute(ShipmentError):
    kind = 'invalid_package_attribute'
    default_message = 'Invalid package attribute'


class InvalidTransition(ShipmentError):
    kind = 'invalid_transition'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Status transition is not allowed'


class Unauthorized(ShipmentError):
    kind = 'unauthorized'
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You are not allowed to perform this action'


class AlreadyAssigned(ShipmentError):
    kind = 'already_assigned'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Shipment already has a driver'


class NotFound(ShipmentError):
    kind = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Shipment not found'

