"""Telemetry and observability helpers.

This package emits structured synthesis and playback events through loguru.
"""

from .logger import EventLogger, configure_logging

__all__ = ["EventLogger", "configure_logging"]
