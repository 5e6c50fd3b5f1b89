from __future__ import annotations

from dataclasses import dataclass, fields
import types
import typing
from typing import Any, get_args, get_origin, get_type_hints

ENV_PREFIX = "TEMPEST_DATA_"
DEFAULT_PORT = 50222
MAX_DATAGRAM_BYTES = 65536

_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off"})


def parse_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_scalar(value: str, target_type: Any) -> Any:
    if target_type is bool:
        return parse_bool(value)
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def _unwrap_optional(field_type: Any) -> tuple[Any, bool]:
    if get_origin(field_type) not in (typing.Union, types.UnionType):
        return field_type, False
    members = [arg for arg in get_args(field_type) if arg is not type(None)]
    if len(members) == 1:
        return members[0], True
    return field_type, False


def _parse_optional(raw: str, target_type: Any) -> Any:
    text = str(raw).strip()
    if text == "" or text.lower() in {"none", "null"}:
        return None
    return _parse_scalar(text, target_type)


def field_types(cls: type) -> dict[str, tuple[Any, bool]]:
    """Resolved ``(base type, optional)`` for each dataclass field."""
    hints = get_type_hints(cls)
    return {field.name: _unwrap_optional(hints[field.name]) for field in fields(cls)}


@dataclass
class Config:
    bind_host: str = ""
    port: int = DEFAULT_PORT
    max_datagram_bytes: int = MAX_DATAGRAM_BYTES
    datafile: str | None = None
    statefile: str | None = None
    logfile: str | None = None
    verbose: bool = False
    datafile_fsync: bool = False
    statefile_fsync: bool = True

    def apply_overrides(self, overrides: dict[str, Any]) -> "Config":
        for field in fields(self):
            name = field.name
            if name in overrides:
                value = overrides[name]
                if value is None:
                    continue
                setattr(self, name, value)
        return self

    def validate(self) -> "Config":
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if self.max_datagram_bytes <= 0:
            raise ValueError(f"max_datagram_bytes must be positive: {self.max_datagram_bytes}")
        return self

    @classmethod
    def from_env_and_cli(cls, cli_overrides: dict[str, Any], env: typing.Mapping[str, str]) -> "Config":
        cfg = cls()
        for name, (base_type, is_optional) in field_types(cls).items():
            env_key = ENV_PREFIX + name.upper()
            if env_key not in env:
                continue
            raw = env[env_key]
            if is_optional:
                value = _parse_optional(raw, base_type)
            else:
                value = _parse_scalar(raw, base_type)
            setattr(cfg, name, value)
        # command line wins over the environment
        return cfg.apply_overrides(cli_overrides)
