"""
Pytest configuration for API tests.

This module contains pytest fixtures for testing the service facade.
"""

import random

import pytest

from durak.api import DurakService
from durak.events import EventEmitter
from durak.registry import MatchRegistry


@pytest.fixture
def registry():
    return MatchRegistry(rng=random.Random(7), emitter=EventEmitter())


@pytest.fixture
def service(registry):
    """A service over a private registry; tests call initialize themselves."""
    return DurakService(registry=registry)
