"""Ranking transporters for a pending shipment."""

from dataclasses import dataclass
from decimal import Decimal

from .geo import Coordinate, distance_km


@dataclass(frozen=True)
class DriverCandidate:
    driver_id: int
    coordinate: Coordinate
    vehicle: str = ''
    available: bool = True
    rating: Decimal = Decimal('0')


def candidates_from_profiles(profiles):
    """Adapt transporter presence rows to candidates, skipping drivers with no known position."""
    candidates = []
    for profile in profiles:
        if not profile.has_location:
            continue
        candidates.append(DriverCandidate(
            driver_id=profile.user_id,
            coordinate=Coordinate(profile.current_latitude, profile.current_longitude),
            vehicle=profile.vehicle,
            available=profile.is_available,
            rating=Decimal(profile.rating),
        ))
    return candidates


class DispatchMatcher:
    def distance_to_pickup(self, shipment, candidate):
        return distance_km(candidate.coordinate, shipment.pickup_coordinate)

    def rank(self, shipment, candidates, max_distance_km=None, limit=None):
        """
        Available candidates nearest the pickup first, better rating first on
        equal distance. No eligible candidate gives an empty list.
        """
        scored = []
        for candidate in candidates:
            if not candidate.available:
                continue
            distance = self.distance_to_pickup(shipment, candidate)
            if max_distance_km is not None and distance > max_distance_km:
                continue
            scored.append((distance, -candidate.rating, candidate))

        scored.sort(key=lambda item: (item[0], item[1]))
        ranked = [candidate for _, _, candidate in scored]
        if limit is not None:
            ranked = ranked[:limit]
        return ranked
