"""Reliability scoring: pure label engine plus the service that stores verdicts."""

from .reliability_engine import (
    RULES,
    ReliabilityEngine,
    ReliabilityInputs,
    ReliabilityLabel,
    ReliabilityThresholds,
    ReliabilityVerdict,
)
from .service import ReliabilityAnnotator

__all__ = [
    "RULES",
    "ReliabilityAnnotator",
    "ReliabilityEngine",
    "ReliabilityInputs",
    "ReliabilityLabel",
    "ReliabilityThresholds",
    "ReliabilityVerdict",
]
