from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class VehicleObservation:
    """One validated GPS report, as produced by the record normalizer."""

    vehicle_id: str
    line: str | None
    timestamp: int
    latitude: float
    longitude: float
    speed: int
    direction_tag: str | None = None
    trajectory_tag: str | None = None


@dataclass(frozen=True, slots=True)
class VehicleState:
    vehicle_id: str
    line: str | None
    timestamp: int
    latitude: float
    longitude: float
    speed: int
    heading: float | None = None
    direction_tag: str | None = None
    trajectory_tag: str | None = None

    @staticmethod
    def from_observation(
        observation: VehicleObservation, *, heading: float | None
    ) -> "VehicleState":
        return VehicleState(
            vehicle_id=observation.vehicle_id,
            line=observation.line,
            timestamp=observation.timestamp,
            latitude=observation.latitude,
            longitude=observation.longitude,
            speed=observation.speed,
            heading=heading,
            direction_tag=observation.direction_tag,
            trajectory_tag=observation.trajectory_tag,
        )


class RejectionReason(str, Enum):
    NOT_A_RECORD = "not_a_record"
    MISSING_IDENTIFIER = "missing_identifier"
    MISSING_TIMESTAMP = "missing_timestamp"
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_COORDINATES = "invalid_coordinates"
    ZERO_COORDINATES = "zero_coordinates"
    INVALID_SPEED = "invalid_speed"


@dataclass(frozen=True, slots=True)
class Rejection:
    """A raw feed record the pipeline refused to accept."""

    reason: RejectionReason
    detail: str = ""
