"""In-memory store holding the latest known state of every vehicle.

The store is the only writer of vehicle state. Each write builds a new mapping
and publishes it with a single attribute swap, so a reader holding a snapshot
never sees a half-applied merge cycle.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

from src.domain.algorithms.heading import MIN_HEADING_DISPLACEMENT_M, next_heading
from src.domain.models.vehicle import VehicleObservation, VehicleState


@dataclass(slots=True)
class VehicleStateStore:
    min_heading_displacement_m: float = MIN_HEADING_DISPLACEMENT_M

    _write_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )
    _states: dict[str, VehicleState] = field(
        default_factory=dict, init=False, repr=False
    )

    def __len__(self) -> int:
        return len(self._states)

    def get(self, vehicle_id: str) -> VehicleState | None:
        return self._states.get(vehicle_id)

    def snapshot(self) -> tuple[VehicleState, ...]:
        """Current states, in no particular order."""

        return tuple(self._states.values())

    def merge(self, observation: VehicleObservation) -> None:
        self.merge_all((observation,))

    def merge_all(self, observations: Iterable[VehicleObservation]) -> int:
        """Merge observations in order and publish them together.

        Returns the number of vehicles in the store afterwards.
        """

        with self._write_lock:
            states = dict(self._states)
            for obs in observations:
                heading = next_heading(
                    states.get(obs.vehicle_id),
                    obs,
                    min_displacement_m=self.min_heading_displacement_m,
                )
                states[obs.vehicle_id] = VehicleState.from_observation(
                    obs, heading=heading
                )
            self._states = states
            return len(states)
