"""
Durak API module.

This module provides the transport-facing service for creating, joining and
playing Durak matches.
"""

from durak.api.service import DurakService

__all__ = ["DurakService"]
