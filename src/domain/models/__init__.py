from .feed import FetchWindow, RawRecord
from .vehicle import Rejection, RejectionReason, VehicleObservation, VehicleState

__all__ = [
    "FetchWindow",
    "RawRecord",
    "Rejection",
    "RejectionReason",
    "VehicleObservation",
    "VehicleState",
]
