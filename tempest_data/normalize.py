from __future__ import annotations

from typing import Any, Mapping

from .errors import MalformedPacket
from .log import get_logger
from .schema import SCHEMA_REGISTRY, TEMPERATURE_EVENT_TYPE, SchemaEntry, lookup

logger = get_logger(__name__)


def _observations(event_type: str, entry: SchemaEntry, value: Any) -> list[Any]:
    if entry.double_array:
        value = value[0] if isinstance(value, list) and value else None
    if not isinstance(value, list):
        logger.warning(
            "%s: unexpected %s shape, ignoring observation data",
            event_type,
            entry.observation_field,
            extra={"event_type": event_type, "anomaly": "observation_shape"},
        )
        return []
    return value


def normalize(
    raw_event: Mapping[str, Any],
    registry: Mapping[str, SchemaEntry] = SCHEMA_REGISTRY,
) -> dict[str, Any]:
    """Translate a raw event into a record keyed by observation name.

    Raises UnknownEventType when ``type`` is missing or unregistered, and
    MalformedPacket when the event is not a JSON object.
    """
    if not isinstance(raw_event, Mapping):
        raise MalformedPacket(f"expected event object, got {type(raw_event).__name__}")
    event_type = raw_event.get("type")
    entry = lookup(event_type, registry)

    record: dict[str, Any] = {"type": event_type, "description": entry.description}
    field = entry.observation_field
    if field is not None and raw_event.get(field) is not None:
        values = _observations(event_type, entry, raw_event[field])
        for name, value in zip(entry.field_names, values):
            record[name] = value
    if entry.passthrough_all:
        # first write wins: type/description and mapped fields are kept
        for key, value in raw_event.items():
            record.setdefault(key, value)

    if event_type == TEMPERATURE_EVENT_TYPE and "air_temperature_c" not in record:
        logger.warning(
            "%s event without air_temperature_c: %s",
            event_type,
            dict(raw_event),
            extra={"event_type": event_type, "anomaly": "missing_temperature"},
        )
    return record
