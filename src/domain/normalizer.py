"""Turns raw BRT/SPPO feed records into validated vehicle observations.

The two feeds disagree on field names (``ordem`` vs ``codigo``, ``datahora``
vs ``dataHora``) and encode coordinates as strings with a comma decimal
separator. Anything that cannot be read unambiguously is rejected; a
rejection is a returned value, never an exception.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from src.domain.models.vehicle import Rejection, RejectionReason, VehicleObservation

IDENTIFIER_FIELDS = ("ordem", "codigo")
TIMESTAMP_FIELDS = ("datahora", "dataHora")

_INT_RE = re.compile(r"^[+-]?\d+$")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first_present(raw: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    for name in fields:
        value = raw.get(name)
        if not _is_blank(value):
            return value
    return None


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if _INT_RE.match(text):
            return int(text, 10)
    return None


def _parse_speed(value: Any) -> int | None:
    # Decimal speeds ("12,5") truncate toward zero.
    speed = _parse_int(value)
    if speed is not None:
        return speed
    number = _parse_decimal(value)
    return int(number) if number is not None else None


def _parse_decimal(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".", 1)
        if not _DECIMAL_RE.match(text):
            return None
        number = float(text)
    return number if math.isfinite(number) else None


def _optional_text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return value if isinstance(value, str) else str(value)


def normalize_record(raw: Any) -> VehicleObservation | Rejection:
    if not isinstance(raw, Mapping):
        return Rejection(RejectionReason.NOT_A_RECORD, type(raw).__name__)

    vehicle_id = _first_present(raw, IDENTIFIER_FIELDS)
    if vehicle_id is None:
        return Rejection(RejectionReason.MISSING_IDENTIFIER)
    vehicle_id = str(vehicle_id).strip()

    raw_timestamp = _first_present(raw, TIMESTAMP_FIELDS)
    if raw_timestamp is None:
        return Rejection(RejectionReason.MISSING_TIMESTAMP, vehicle_id)
    timestamp = _parse_int(raw_timestamp)
    if timestamp is None:
        return Rejection(
            RejectionReason.INVALID_TIMESTAMP, f"{vehicle_id}: {raw_timestamp!r}"
        )

    latitude = _parse_decimal(raw.get("latitude"))
    longitude = _parse_decimal(raw.get("longitude"))
    if latitude is None or longitude is None:
        return Rejection(
            RejectionReason.INVALID_COORDINATES,
            f"{vehicle_id}: {raw.get('latitude')!r}, {raw.get('longitude')!r}",
        )
    # 0 means "no fix" upstream, not a real position.
    if latitude == 0.0 or longitude == 0.0:
        return Rejection(RejectionReason.ZERO_COORDINATES, vehicle_id)

    speed = _parse_speed(raw.get("velocidade"))
    if speed is None:
        return Rejection(
            RejectionReason.INVALID_SPEED, f"{vehicle_id}: {raw.get('velocidade')!r}"
        )

    return VehicleObservation(
        vehicle_id=vehicle_id,
        line=_optional_text(raw.get("linha")),
        timestamp=timestamp,
        latitude=latitude,
        longitude=longitude,
        speed=speed,
        direction_tag=_optional_text(raw.get("sentido")),
        trajectory_tag=_optional_text(raw.get("trajeto")),
    )
