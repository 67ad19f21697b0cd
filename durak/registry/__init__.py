"""
Registry of live Durak matches.
"""

from durak.registry.ids import RegistryConfig as RegistryConfig, generate_match_id as generate_match_id
from durak.registry.manager import MatchRegistry as MatchRegistry
from durak.registry.results import (
    ActionResult as ActionResult,
    ActionStatus as ActionStatus,
    MatchSummary as MatchSummary,
    RegistryErrorKind as RegistryErrorKind,
    RegistryResult as RegistryResult,
    RegistryStats as RegistryStats,
)

__all__ = [
    "RegistryConfig",
    "generate_match_id",
    "MatchRegistry",
    "ActionResult",
    "ActionStatus",
    "MatchSummary",
    "RegistryErrorKind",
    "RegistryResult",
    "RegistryStats",
]
