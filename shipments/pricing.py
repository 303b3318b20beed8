"""
Shipment cost estimation.

The estimate is computed once when a shipment is booked and frozen on it;
``ShipmentService.requote`` is the only path that recomputes it.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import NamedTuple

from django.conf import settings

from .exceptions import InvalidPackageAttribute
from .geo import distance_km


class Quote(NamedTuple):
    cost: Decimal
    currency: str
    distance_km: float


def _decimal(value, name):
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so floats keep their printed value
            result = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidPackageAttribute(f"{name} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidPackageAttribute(f"{name} must be finite")
    return result


class CostEstimator:
    def __init__(self, rate_per_km='15', heavy_threshold_kg='10', heavy_multiplier='1.5',
                 tier_multipliers=None, insurance_rate='0.02', currency='USD', decimal_places=0):
        self.rate_per_km = Decimal(str(rate_per_km))
        self.heavy_threshold_kg = Decimal(str(heavy_threshold_kg))
        self.heavy_multiplier = Decimal(str(heavy_multiplier))
        tier_multipliers = tier_multipliers or {'regular': '1', 'express': '1.8', 'fragile': '1.3'}
        self.tier_multipliers = {tier: Decimal(str(m)) for tier, m in tier_multipliers.items()}
        self.insurance_rate = Decimal(str(insurance_rate))
        self.currency = currency
        self.quantum = Decimal(1).scaleb(-int(decimal_places))

    @classmethod
    def from_settings(cls, **overrides):
        config = dict(getattr(settings, 'SHIPMENTS', {}))
        options = {
            'rate_per_km': config.get('RATE_PER_KM', '15'),
            'heavy_threshold_kg': config.get('HEAVY_PARCEL_THRESHOLD_KG', '10'),
            'heavy_multiplier': config.get('HEAVY_PARCEL_MULTIPLIER', '1.5'),
            'tier_multipliers': config.get('TIER_MULTIPLIERS'),
            'insurance_rate': config.get('INSURANCE_RATE', '0.02'),
            'currency': config.get('CURRENCY', 'USD'),
            'decimal_places': config.get('CURRENCY_DECIMAL_PLACES', 0),
        }
        options.update(overrides)
        return cls(**options)

    def validate_package(self, weight_kg, declared_value, tier):
        weight = _decimal(weight_kg, 'weight')
        value = _decimal(declared_value, 'declared value')
        if weight < 0:
            raise InvalidPackageAttribute(f"weight must be >= 0, got {weight}")
        if value < 0:
            raise InvalidPackageAttribute(f"declared value must be >= 0, got {value}")
        if tier not in self.tier_multipliers:
            raise InvalidPackageAttribute(
                f"unknown tier {tier!r}; expected one of {', '.join(sorted(self.tier_multipliers))}"
            )
        return weight, value

    def estimate(self, pickup, delivery, weight_kg, declared_value, tier='regular'):
        """
        Price a shipment:

        distance * rate, x1.5 for parcels heavier than the threshold, the tier
        multiplier, plus 2% of the declared value as insurance, rounded half-up
        to the currency's minor unit.
        """
        weight, value = self.validate_package(weight_kg, declared_value, tier)
        distance = distance_km(pickup, delivery)

        base = Decimal(str(distance)) * self.rate_per_km
        if weight > self.heavy_threshold_kg:
            base *= self.heavy_multiplier
        base *= self.tier_multipliers[tier]
        base += value * self.insurance_rate

        cost = base.quantize(self.quantum, rounding=ROUND_HALF_UP)
        return Quote(cost=cost, currency=self.currency, distance_km=distance)
