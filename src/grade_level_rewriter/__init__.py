"""
grade_level_rewriter package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .config import EngineConfig, config_from_dict, config_from_yaml, load_config
from .convergence import converge
from .errors import (
    InvalidGradeLevel,
    RateLimited,
    RetryExhausted,
    RewriteEngineError,
    RewriteFailed,
)
from .models import Priority, ReadabilityMetrics, RewriteResult, TargetProfile
from .pipeline import EngineContext, process_retry_queue, rewrite_for_grade_level
from .profiles import resolve_profile
from .readability import count_syllables, score
from .service import RewriteService

__all__ = [
    "EngineConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "converge",
    "InvalidGradeLevel",
    "RateLimited",
    "RetryExhausted",
    "RewriteEngineError",
    "RewriteFailed",
    "Priority",
    "ReadabilityMetrics",
    "RewriteResult",
    "TargetProfile",
    "EngineContext",
    "process_retry_queue",
    "rewrite_for_grade_level",
    "resolve_profile",
    "count_syllables",
    "score",
    "RewriteService",
]

__version__ = "0.1.0"
