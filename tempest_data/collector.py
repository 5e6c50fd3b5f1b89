from __future__ import annotations

import contextlib
import os
import signal
import socket
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from .config import Config
from .decode import decode_datagram
from .distill import distill
from .errors import MalformedPacket, MissingExpectedField, PublishFailed, SocketFatal, UnknownEventType
from .log import get_logger
from .normalize import normalize
from .schema import SCHEMA_REGISTRY, TEMPERATURE_EVENT_TYPE, SchemaEntry
from .snapshot import publish
from .timeseries import TimeseriesWriter

logger = get_logger(__name__)


class CollectorState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    EXITING_CLEAN = "exiting_clean"
    EXITING_ERROR = "exiting_error"


@dataclass(slots=True)
class CollectorStats:
    datagrams: int = 0
    decode_errors: int = 0
    unknown_types: int = 0
    missing_fields: int = 0
    rows_appended: int = 0
    snapshots_published: int = 0
    publish_failures: int = 0

    def summary(self) -> dict[str, int]:
        return asdict(self)


class _StopRequested(Exception):
    pass


def open_udp_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if hasattr(socket, "SO_REUSEPORT"):
        with contextlib.suppress(OSError):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
    return sock


class Collector:
    """Receive loop: datagram -> normalized event -> timeseries row and snapshot.

    Only obs_st events carry the temperature reading that is persisted; every
    other registered event is normalized and logged at debug level.
    """

    def __init__(
        self,
        config: Config,
        writer: TimeseriesWriter,
        *,
        registry: Mapping[str, SchemaEntry] = SCHEMA_REGISTRY,
        socket_factory: Callable[[], socket.socket] = open_udp_socket,
    ) -> None:
        self.config = config
        self.writer = writer
        self.registry = registry
        self.statefile = Path(os.path.abspath(config.statefile)) if config.statefile else None
        self.state = CollectorState.STARTING
        self.stats = CollectorStats()
        self.stop_reason: str | None = None
        self._socket_factory = socket_factory
        self._sock: socket.socket | None = None
        self._receiving = False

    @property
    def address(self) -> tuple[str, int]:
        if self._sock is not None:
            host, port = self._sock.getsockname()[:2]
            return host, port
        return self.config.bind_host, self.config.port

    def bind(self) -> None:
        address = (self.config.bind_host, self.config.port)
        try:
            sock = self._socket_factory()
        except OSError as exc:
            raise SocketFatal(f"cannot create udp socket: {exc}") from exc
        try:
            sock.bind(address)
        except OSError as exc:
            sock.close()
            raise SocketFatal(f"cannot bind udp {address[0] or '*'}:{address[1]}: {exc}") from exc
        self._sock = sock

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def request_stop(self, reason: str) -> None:
        if self.stop_reason is None:
            self.stop_reason = reason
        # only a loop idle in recvfrom is interrupted; a packet in progress finishes its writes
        if self._receiving:
            raise _StopRequested(reason)

    def receive(self) -> tuple[bytes, Any]:
        if self._sock is None:
            raise RuntimeError("collector socket is not bound")
        self._receiving = True
        try:
            if self.stop_reason is not None:
                # stop arrived between the loop check and entering recvfrom
                raise _StopRequested(self.stop_reason)
            return self._sock.recvfrom(self.config.max_datagram_bytes)
        finally:
            self._receiving = False

    def handle_datagram(self, data: bytes, sender: Any = None) -> dict[str, Any] | None:
        self.stats.datagrams += 1
        decoded = decode_datagram(data)
        if not decoded.ok:
            self.stats.decode_errors += 1
            logger.warning(
                "dropping datagram from %s: %s (sample=%r)",
                sender,
                decoded.error,
                decoded.error_sample,
            )
            return None
        try:
            record = normalize(decoded.payload, self.registry)
        except UnknownEventType as exc:
            self.stats.unknown_types += 1
            logger.warning("dropping datagram from %s: %s", sender, exc)
            return None
        except MalformedPacket as exc:
            self.stats.decode_errors += 1
            logger.warning("dropping datagram from %s: %s", sender, exc)
            return None
        logger.debug("%s from %s: %s", record["type"], sender, record)
        if record["type"] == TEMPERATURE_EVENT_TYPE:
            self._record_observation(record)
        return record

    def _record_observation(self, record: dict[str, Any]) -> None:
        try:
            reading = distill(record)
        except MissingExpectedField as exc:
            self.stats.missing_fields += 1
            logger.error("%s; dropping event: %s", exc, record)
            return
        except MalformedPacket as exc:
            self.stats.decode_errors += 1
            logger.error("%s; dropping event: %s", exc, record)
            return
        self.writer.write_row(reading.row())
        self.stats.rows_appended += 1
        if self.statefile is None:
            return
        try:
            publish(self.statefile, reading.snapshot_state(), fsync=self.config.statefile_fsync)
        except PublishFailed as exc:
            self.stats.publish_failures += 1
            logger.error("%s", exc)
        else:
            self.stats.snapshots_published += 1

    def run(self) -> int:
        try:
            self.bind()
        except SocketFatal as exc:
            self.state = CollectorState.EXITING_ERROR
            logger.error("%s", exc)
            return 1
        self.state = CollectorState.RUNNING
        host, port = self.address
        logger.info("listening for station events on %s:%d", host or "*", port)
        previous_handlers = _install_signal_handlers(self)
        try:
            while self.stop_reason is None:
                data, sender = self.receive()
                self.handle_datagram(data, sender)
            self.state = CollectorState.EXITING_CLEAN
        except _StopRequested:
            self.state = CollectorState.EXITING_CLEAN
        except KeyboardInterrupt:
            self.stop_reason = self.stop_reason or "SIGINT"
            self.state = CollectorState.EXITING_CLEAN
        except Exception:
            self.state = CollectorState.EXITING_ERROR
            logger.exception(
                "uncaught exception in collector loop (stats=%s)",
                self.stats.summary(),
            )
        finally:
            _restore_signal_handlers(previous_handlers)
            self.close()
        if self.state is CollectorState.EXITING_CLEAN:
            logger.info("exiting cleanly on %s", self.stop_reason)
        logger.info("collector stats: %s", self.stats.summary())
        return 0 if self.state is CollectorState.EXITING_CLEAN else 1


def _install_signal_handlers(collector: Collector) -> dict[signal.Signals, Any]:
    previous: dict[signal.Signals, Any] = {}

    def _request_stop(signum: int, _frame: object) -> None:
        collector.request_stop(signal.Signals(signum).name)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[sig] = signal.signal(sig, _request_stop)
        except (ValueError, AttributeError):
            # not the main thread
            continue
    return previous


def _restore_signal_handlers(previous: dict[signal.Signals, Any]) -> None:
    for sig, handler in previous.items():
        with contextlib.suppress(ValueError, TypeError):
            signal.signal(sig, handler)


def run_collector(config: Config, *, registry: Mapping[str, SchemaEntry] = SCHEMA_REGISTRY) -> int:
    try:
        writer = TimeseriesWriter.open(config.datafile, fsync=config.datafile_fsync)
    except OSError as exc:
        logger.error("cannot open datafile %s: %s", config.datafile, exc)
        return 1
    with writer:
        logger.info("writing timeseries to %s", writer.name)
        if config.statefile:
            logger.info("publishing snapshots to %s", os.path.abspath(config.statefile))
        return Collector(config, writer, registry=registry).run()
