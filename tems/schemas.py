# tems/schemas.py
import json
import math
from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class Metric(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    hostname: str = ""
    ip: str = ""
    cpu_percent: float = 0.0
    mem_percent: float = 0.0
    disk_percent: float = 0.0
    network: Optional[Dict[str, Any]] = None
    processes: Optional[List[Any]] = None
    last_seen: int = 0  # epoch seconds, always set by the server


class ForwardEnvelope(BaseModel):
    tems_name: str
    timestamp: int
    agents: List[Metric]


def _reject_constant(name):
    raise ValueError(f"non-standard JSON constant: {name}")


def _finite_float(text):
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def parse_metric(body: bytes) -> Metric:
    """
    Decode a strict JSON Metric from a raw request body.
    NaN/Infinity literals and overflowing numbers are rejected anywhere in
    the document, including inside network and processes.
    Raises ValueError (pydantic's ValidationError included) on any failure.
    """
    raw = json.loads(body, parse_constant=_reject_constant, parse_float=_finite_float)
    return Metric.model_validate(raw)
