from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import ShipmentError


def api_exception_handler(exc, context):
    """DRF exception handler that renders shipment errors as tagged results."""
    if isinstance(exc, ShipmentError):
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
