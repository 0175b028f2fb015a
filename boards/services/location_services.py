from typing import Any, List, Optional, Union
from math import radians, sin, cos, sqrt, atan2
import logging

logger = logging.getLogger(__name__)

# Constants
EARTH_RADIUS_KM = 6371.0
DEFAULT_LISTING_RADIUS_KM = 10.0


def haversine_distance(
    lat1: Optional[float],
    lng1: Optional[float],
    lat2: Optional[float],
    lng2: Optional[float]
) -> Optional[float]:
    """
    Great-circle distance in kilometers using the haversine formula.

    Returns None when any coordinate is missing; the caller decides what an
    unknown distance means.
    """
    if lat1 is None or lng1 is None or lat2 is None or lng2 is None:
        return None

    d_lat = radians(lat2 - lat1)
    d_lng = radians(lng2 - lng1)
    a = (
        sin(d_lat / 2) ** 2 +
        cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lng / 2) ** 2
    )
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


class LocationService:
    """Service for location-based filtering and sorting of event listings."""

    def _get_event_coordinates(self, event: Union[dict, Any]):
        """Extract (lat, lng) from an event model or dictionary."""
        if isinstance(event, dict):
            return event.get("latitude"), event.get("longitude")
        return getattr(event, "latitude", None), getattr(event, "longitude", None)

    def calculate_distance(self, lat: float, lng: float, event: Union[dict, Any]) -> Optional[float]:
        """Distance in kilometers from a point to an event venue, or None if unknown."""
        event_lat, event_lng = self._get_event_coordinates(event)
        return haversine_distance(lat, lng, event_lat, event_lng)

    def filter_by_distance(
        self,
        events: List[Union[dict, Any]],
        lat: float,
        lng: float,
        max_distance_km: float = DEFAULT_LISTING_RADIUS_KM
    ) -> List[Union[dict, Any]]:
        """
        Filter events by distance from a location.

        Events without coordinates cannot be located and are dropped. Kept
        events are annotated with ``distance_km``.

        Args:
            events: Events with venue coordinates
            lat: Latitude of the reference point
            lng: Longitude of the reference point
            max_distance_km: Maximum distance in kilometers

        Returns:
            Filtered list of events
        """
        filtered_events = []

        for event in events:
            distance = self.calculate_distance(lat, lng, event)
            if distance is None or distance > max_distance_km:
                continue

            if isinstance(event, dict):
                event["distance_km"] = distance
            else:
                setattr(event, "distance_km", distance)
            filtered_events.append(event)

        logger.debug(
            "Filtered events by distance",
            extra={'kept': len(filtered_events), 'total': len(events), 'radius_km': max_distance_km}
        )
        return filtered_events

    def sort_by_distance(
        self,
        events: List[Union[dict, Any]],
        lat: float,
        lng: float
    ) -> List[Union[dict, Any]]:
        """Sort events by distance from a location; unlocatable events go last."""
        def get_distance(event: Union[dict, Any]) -> float:
            distance = self.calculate_distance(lat, lng, event)
            return float("inf") if distance is None else distance

        return sorted(events, key=get_distance)

    def nearby(
        self,
        events: List[Union[dict, Any]],
        lat: float,
        lng: float,
        max_distance_km: Optional[float] = None
    ) -> List[Union[dict, Any]]:
        """Filter to the radius then sort closest first."""
        radius = max_distance_km if max_distance_km is not None else DEFAULT_LISTING_RADIUS_KM
        return self.sort_by_distance(self.filter_by_distance(events, lat, lng, radius), lat, lng)
