from __future__ import annotations

from src.domain.algorithms.geo_utils import haversine_distance_m, initial_bearing_deg
from src.domain.models.vehicle import VehicleObservation, VehicleState

# Displacements at or below this are treated as GPS jitter.
MIN_HEADING_DISPLACEMENT_M = 10.0


def next_heading(
    previous: VehicleState | None,
    observation: VehicleObservation,
    *,
    min_displacement_m: float = MIN_HEADING_DISPLACEMENT_M,
) -> float | None:
    """Decide the heading to store for `observation`.

    - First sighting: unknown (a single point has no direction).
    - Same coordinates as before: keep the previous heading.
    - Moved more than `min_displacement_m`: bearing from old to new position.
    - Moved less than that: keep the previous heading.
    """

    if previous is None:
        return None

    if (
        previous.latitude == observation.latitude
        and previous.longitude == observation.longitude
    ):
        return previous.heading

    moved_m = haversine_distance_m(
        previous.latitude,
        previous.longitude,
        observation.latitude,
        observation.longitude,
    )
    if moved_m > min_displacement_m:
        return initial_bearing_deg(
            previous.latitude,
            previous.longitude,
            observation.latitude,
            observation.longitude,
        )
    return previous.heading
