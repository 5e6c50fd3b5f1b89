from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from .errors import MalformedPacket, MissingExpectedField

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MM_PER_INCH = 25.4
NO_PRECIPITATION = "None"

PRECIPITATION_TYPES: Mapping[int, str] = {
    0: NO_PRECIPITATION,
    1: "Rain",
    2: "Hail",
    3: "Rain+Hail",
}

REQUIRED_FIELDS = (
    "time_epoch_s",
    "air_temperature_c",
    "relative_humidity_pct",
    "uv_index",
    "solar_radiation_wpm2",
    "precipitation_accumulated_mm",
    "precipitation_type",
    "battery_volts",
)


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH


def precipitation_label(code: int) -> str:
    return PRECIPITATION_TYPES.get(code, f"Unknown({code})")


def format_timestamp(epoch_s: int) -> str:
    return datetime.fromtimestamp(epoch_s).strftime(TIMESTAMP_FORMAT)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


@dataclass(frozen=True, slots=True)
class Reading:
    time_epoch_s: int
    timestamp: str
    temperature_f: float
    humidity_pct: float
    uv_index: int | float
    solar_radiation_wpm2: int | float
    precipitation_in: float
    precipitation_type: str
    battery_volts: float

    def row(self) -> tuple[str, ...]:
        return (
            self.timestamp,
            f"{self.temperature_f:.1f}",
            f"{self.humidity_pct:.1f}",
            str(self.uv_index),
            str(self.solar_radiation_wpm2),
            f"{self.precipitation_in:.1f}",
            self.precipitation_type,
            f"{self.battery_volts:.2f}",
        )

    def snapshot_state(self) -> dict[str, Any]:
        state: dict[str, Any] = {
            "last_updated": self.time_epoch_s,
            "temperature": self.temperature_f,
            "humidity": self.humidity_pct,
            "uv_index": self.uv_index,
            "solar_radiation": self.solar_radiation_wpm2,
            "precipitation": self.precipitation_in,
            "battery_voltage": self.battery_volts,
        }
        if self.precipitation_type != NO_PRECIPITATION:
            state["precipitation_type"] = self.precipitation_type
        return state


def distill(record: Mapping[str, Any]) -> Reading:
    """Reduce a normalized obs_st record to the persisted, unit-converted subset."""
    missing = [name for name in REQUIRED_FIELDS if not _is_number(record.get(name))]
    if missing:
        raise MissingExpectedField(str(record.get("type")), missing)
    epoch_s = int(record["time_epoch_s"])
    try:
        timestamp = format_timestamp(epoch_s)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedPacket(f"{record.get('type')} time_epoch_s out of range: {epoch_s}") from exc
    precip_code = record["precipitation_type"]
    if isinstance(precip_code, float) and precip_code.is_integer():
        precip_code = int(precip_code)
    return Reading(
        time_epoch_s=epoch_s,
        timestamp=timestamp,
        temperature_f=round(celsius_to_fahrenheit(record["air_temperature_c"]), 1),
        humidity_pct=round(float(record["relative_humidity_pct"]), 1),
        uv_index=record["uv_index"],
        solar_radiation_wpm2=record["solar_radiation_wpm2"],
        precipitation_in=round(mm_to_inches(record["precipitation_accumulated_mm"]), 1),
        precipitation_type=precipitation_label(precip_code),
        battery_volts=round(float(record["battery_volts"]), 2),
    )
