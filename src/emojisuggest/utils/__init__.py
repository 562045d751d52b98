"""Shared utilities (logging, telemetry)."""
