"""Configuration helpers for controller defaults."""

from .defaults import (  # noqa: F401
    ALARM_TIMEOUT_S,
    REFERENCE_MASS_G,
    SAMPLE_COUNT,
    WEIGHT_LIMIT_G,
)

__all__ = ["WEIGHT_LIMIT_G", "ALARM_TIMEOUT_S", "REFERENCE_MASS_G", "SAMPLE_COUNT"]
