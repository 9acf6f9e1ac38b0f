"""GitLab Pipeline Generator.

Generates GitLab CI/CD pipeline configurations, optionally driven by live
analysis of a remote GitLab project, behind a resilient access layer that
keeps the tool usable when GitLab is not.
"""

from __future__ import annotations

from .analysis import AnalysisConfidence, AnalysisMode, AnalysisResult, ProjectType
from .fallback import DegradedAnalysisProvider, FallbackCoordinator
from .pipeline import PipelineConfiguration, PipelineGenerator
from .resilience import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    ErrorKind,
    ErrorTranslator,
    Failure,
    OperationOutcome,
    ResilientOperationFacade,
    RetryExecutor,
    Success,
)
from .resilience_config import (
    CircuitBreakerConfig,
    CircuitState,
    ResilienceConfig,
    RetryPolicy,
)
from .workflow import PipelineWorkflow, WorkflowResult

__all__ = [
    # Analysis
    "AnalysisConfidence",
    "AnalysisMode",
    "AnalysisResult",
    "ProjectType",
    # Resilience
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "ErrorKind",
    "ErrorTranslator",
    "Failure",
    "OperationOutcome",
    "ResilienceConfig",
    "ResilientOperationFacade",
    "RetryExecutor",
    "RetryPolicy",
    "Success",
    # Fallback
    "DegradedAnalysisProvider",
    "FallbackCoordinator",
    # Generation
    "PipelineConfiguration",
    "PipelineGenerator",
    "PipelineWorkflow",
    "WorkflowResult",
]
