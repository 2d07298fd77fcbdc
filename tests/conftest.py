# tests/conftest.py
"""Shared fixtures for keyreg tests."""

import tempfile
from pathlib import Path

import pytest

from keyreg import RegistryConfig, RegistryService


class ScriptedRandom:
    """
    Stand-in for random.Random that spells out the given keys.

    Each call to choice() returns the next character of the
    concatenated keys, so candidate N is keys[N] when lengths match.
    """

    def __init__(self, keys):
        self._chars = iter("".join(keys))

    def choice(self, seq):
        return next(self._chars)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir):
    """Registry config rooted in the temp directory."""
    return RegistryConfig(base_dir=temp_dir, registry_name="gensp")


@pytest.fixture
def make_service(config):
    """Build a service whose generator spells out the given keys."""
    def factory(*keys, **overrides):
        cfg = config.with_overrides(**overrides) if overrides else config
        rng = ScriptedRandom(keys) if keys else None
        return RegistryService(cfg, rng=rng)
    return factory


@pytest.fixture
def scripted():
    """The ScriptedRandom class, for tests that drive KeyGenerator directly."""
    return ScriptedRandom
