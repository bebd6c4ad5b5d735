"""Nearest-partner selection policy.

Candidates are ranked by great-circle distance from the vendor's store to
the partner's self-reported home location. Ties go to the partner who
registered first, which keeps selection deterministic.
"""

import math
from dataclasses import dataclass
from datetime import datetime

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Candidate:
    partner_id: str
    latitude: float
    longitude: float
    created_at: datetime


@dataclass(frozen=True)
class Selection:
    partner_id: str
    distance_km: float


def great_circle_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, in kilometres."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def select_nearest(
    origin: tuple[float, float],
    candidates: list[Candidate],
    excluded: set[str] | frozenset[str] = frozenset(),
    max_radius_km: float = 0,
) -> Selection | None:
    """Pick the closest candidate not in ``excluded``.

    ``max_radius_km`` of 0 means unlimited. Returns None when nobody qualifies.
    """
    ranked = []
    for candidate in candidates:
        if candidate.partner_id in excluded:
            continue
        distance = great_circle_km(origin[0], origin[1], candidate.latitude, candidate.longitude)
        if max_radius_km and distance > max_radius_km:
            continue
        ranked.append((distance, candidate.created_at, candidate.partner_id))

    if not ranked:
        return None

    distance, _, partner_id = min(ranked)
    return Selection(partner_id=partner_id, distance_km=round(distance, 3))
