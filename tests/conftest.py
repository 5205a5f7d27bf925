"""Pytest configuration and shared fixtures."""

import pytest

from keyhub_seed.config import Config, FactoryConfig
from keyhub_seed.store import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    """Provide an empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def config() -> Config:
    """
    Provide a configuration tuned for fast tests.

    bcrypt uses its minimum cost factor so password hashing stays cheap.
    """
    return Config(factory=FactoryConfig(bcrypt_rounds=4))


@pytest.fixture
def sleeps() -> list[float]:
    """Collects backoff delays instead of sleeping."""
    return []


@pytest.fixture
def no_sleep(sleeps):
    return sleeps.append
