from __future__ import annotations

from typing import Iterable


class TempestDataError(Exception):
    pass


class PacketError(TempestDataError):
    """An anomaly confined to one datagram; the collector drops it and keeps going."""


class MalformedPacket(PacketError, ValueError):
    pass


class UnknownEventType(PacketError, ValueError):
    def __init__(self, event_type: object) -> None:
        self.event_type = event_type
        if event_type is None:
            message = "event has no type"
        else:
            message = f"unknown event type: {event_type!r}"
        super().__init__(message)


class MissingExpectedField(PacketError, ValueError):
    def __init__(self, event_type: str, fields: Iterable[str]) -> None:
        self.event_type = event_type
        self.fields = tuple(fields)
        super().__init__(f"{event_type} event missing fields: {', '.join(self.fields)}")


class PublishFailed(PacketError):
    pass


class SocketFatal(TempestDataError):
    pass
