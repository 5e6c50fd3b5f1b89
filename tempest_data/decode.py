from __future__ import annotations

import orjson
from dataclasses import dataclass
from typing import Any

_SAMPLE_BYTES = 50


@dataclass(slots=True)
class DatagramDecodeResult:
    payload: dict[str, Any] | None
    error: str | None = None
    error_sample: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _sample(raw: bytes) -> str:
    return raw[:_SAMPLE_BYTES].decode("utf-8", errors="replace")


def decode_datagram(raw: bytes) -> DatagramDecodeResult:
    """Decode one datagram; bad JSON and non-object payloads come back as errors."""
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        return DatagramDecodeResult(
            payload=None,
            error=f"invalid json: {exc}",
            error_sample=_sample(raw),
        )
    if not isinstance(payload, dict):
        return DatagramDecodeResult(
            payload=None,
            error=f"expected json object, got {type(payload).__name__}",
            error_sample=_sample(raw),
        )
    return DatagramDecodeResult(payload=payload)
