"""Resilience patterns for aggregating unreliable event sources."""

from .cascade import ExtractionCascade
from .health import HealthMonitor

__all__ = [
    "ExtractionCascade",
    "HealthMonitor",
]
