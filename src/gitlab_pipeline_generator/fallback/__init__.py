"""Graceful degradation for when GitLab is unavailable."""

from .coordinator import (
    MANUAL_MODE_SUGGESTION,
    FallbackCoordinator,
    FallbackResult,
    UserGuidance,
)
from .degraded import DegradedAnalysisProvider

__all__ = [
    "DegradedAnalysisProvider",
    "FallbackCoordinator",
    "FallbackResult",
    "MANUAL_MODE_SUGGESTION",
    "UserGuidance",
]
