"""
Domain DTOs (Data Transfer Objects) shared across layers.

Rules for DTO modules:
- Import only stdlib and typing (no tabage.* imports except other DTO modules)
- Contain ONLY dataclass/type definitions and simple type aliases
- No I/O, no host calls, no business logic
"""

from .buckets_dto import BucketDefinition, ContainerAction, EntrySummary, ReconcilePlan, ReconcileResult
from .config_dto import EngineSettings
from .host_dto import Container, Resource
from .lifecycle_dto import EngineStatus, PassReport
from .tracking_dto import Fingerprint, Resolution, SweepResult, TrackedEntry

__all__ = [
    "BucketDefinition",
    "Container",
    "ContainerAction",
    "EngineSettings",
    "EngineStatus",
    "EntrySummary",
    "Fingerprint",
    "PassReport",
    "ReconcilePlan",
    "ReconcileResult",
    "Resolution",
    "Resource",
    "SweepResult",
    "TrackedEntry",
]
