from .vehicle_feed import IVehicleFeed

__all__ = ["IVehicleFeed"]
