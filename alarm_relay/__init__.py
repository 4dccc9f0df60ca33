"""Alarm control relay: arming state machine, remote device relay and telemetry storage."""

__version__ = "1.0.0"
