from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .errors import UnknownEventType

TEMPERATURE_EVENT_TYPE = "obs_st"


@dataclass(frozen=True, slots=True)
class SchemaEntry:
    """Decode rules for one event type.

    ``field_names[i]`` names slot ``i`` of the array held in
    ``observation_field``. Some observation kinds wrap that array in a
    one-element array; ``double_array`` unwraps it. Status events have no
    fixed layout, so ``passthrough_all`` copies every raw key instead.
    """

    description: str
    observation_field: str | None = None
    double_array: bool = False
    field_names: tuple[str, ...] = ()
    passthrough_all: bool = False


# Field layouts follow the Tempest UDP API v143.
SCHEMA_REGISTRY: Mapping[str, SchemaEntry] = MappingProxyType(
    {
        "evt_precip": SchemaEntry(
            description="Rain Start",
            observation_field="evt",
            field_names=("time_epoch_s",),
        ),
        "evt_strike": SchemaEntry(
            description="Lightning Strike",
            observation_field="evt",
            field_names=("time_epoch_s", "distance_km", "energy"),
        ),
        "rapid_wind": SchemaEntry(
            description="Rapid Wind",
            observation_field="ob",
            field_names=("time_epoch_s", "wind_speed_mps", "wind_direction_degrees"),
        ),
        "obs_air": SchemaEntry(
            description="Observation (Air)",
            observation_field="obs",
            field_names=(
                "time_epoch_s",
                "station_pressure_mb",
                "air_temperature_c",
                "relative_humidity_pct",
                "lightning_strike_count",
                "lightning_strike_avg_distance_km",
                "battery_volts",
                "report_interval_min",
            ),
        ),
        "obs_sky": SchemaEntry(
            description="Observation (Sky)",
            observation_field="obs",
            field_names=(
                "time_epoch_s",
                "illuminance_lux",
                "uv_index",
                "rain_accumulated_mm",
                "wind_lull_mps",
                "wind_avg_mps",
                "wind_gust_mps",
                "wind_direction_degrees",
                "battery_volts",
                "report_interval_min",
                "solar_radiation_wpm2",
                "local_day_rain_accumulation_mm",
                "precipitation_type",
                "wind_sample_interval_s",
            ),
        ),
        "obs_st": SchemaEntry(
            description="Observation (Tempest)",
            observation_field="obs",
            double_array=True,
            field_names=(
                "time_epoch_s",
                "wind_lull_mps",
                "wind_avg_mps",
                "wind_gust_mps",
                "wind_direction_degrees",
                "wind_sample_interval_s",
                "station_pressure_mb",
                "air_temperature_c",
                "relative_humidity_pct",
                "illuminance_lux",
                "uv_index",
                "solar_radiation_wpm2",
                "precipitation_accumulated_mm",
                "precipitation_type",
                "lightning_strike_avg_distance_km",
                "lightning_strike_count",
                "battery_volts",
                "report_interval_min",
            ),
        ),
        "device_status": SchemaEntry(
            description="Status (device)",
            passthrough_all=True,
        ),
        "hub_status": SchemaEntry(
            description="Status (hub)",
            passthrough_all=True,
        ),
    }
)


def lookup(event_type: object, registry: Mapping[str, SchemaEntry] = SCHEMA_REGISTRY) -> SchemaEntry:
    if not isinstance(event_type, str):
        raise UnknownEventType(event_type)
    entry = registry.get(event_type)
    if entry is None:
        raise UnknownEventType(event_type)
    return entry
