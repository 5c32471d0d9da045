# tems/config.py
import math
import os
import re
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = os.getenv("TEMS_CONFIG", "config.yaml")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "\u00b5s": 1e-6,  # micro sign
    "\u03bcs": 1e-6,  # greek mu
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigError(ValueError):
    pass


def parse_duration(value) -> float:
    """Seconds from a number or a Go-style duration string like "1m30s"."""
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


class BasicAuth(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: str = ""
    password: str = Field("", alias="pass")

    @property
    def enabled(self) -> bool:
        return bool(self.user or self.password)


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    tems_name: str
    listen_addr: str = ":8080"
    teps_url: str
    interval: float
    forward_timeout: float = 10.0
    basic: BasicAuth = Field(default_factory=BasicAuth)
    web_dir: Optional[str] = None

    @field_validator("interval", "forward_timeout", mode="before")
    @classmethod
    def _duration(cls, v):
        return parse_duration(v)

    @field_validator("interval", "forward_timeout")
    @classmethod
    def _positive(cls, v):
        if not math.isfinite(v) or v <= 0:
            raise ValueError("duration must be positive and finite")
        return v

    @field_validator("basic", mode="before")
    @classmethod
    def _empty_basic(cls, v):
        return {} if v is None else v

    @field_validator("listen_addr")
    @classmethod
    def _has_port(cls, v):
        split_listen_addr(v)
        return v

    def bind(self) -> Tuple[str, int]:
        return split_listen_addr(self.listen_addr)


def split_listen_addr(addr: str) -> Tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen_addr needs a port: {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"parse config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config {path} must be a mapping")
    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e
