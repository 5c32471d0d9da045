"""TEMS: in-memory telemetry aggregation endpoint."""

__version__ = "0.1.0"
