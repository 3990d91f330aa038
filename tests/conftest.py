"""
Shared test fixtures for seneca-promisified tests.

This module provides:
- The callback-based fake framework from tests._fakes
- A wrapped context with entity support installed
- Isolation of global settings and SENECA_* environment variables
"""

from __future__ import annotations

import os

import pytest

from seneca_promisified import SenecaPromisified, Settings
from seneca_promisified.config import reset_settings
from seneca_promisified.entity import install as install_entities
from seneca_promisified.extensions import ExtensionRegistry
from seneca_promisified.logging import reset_logging

from tests._fakes import FakeSeneca

# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep SENECA_* variables, global settings and the package logger from leaking between tests."""
    for key in list(os.environ):
        if key.startswith("SENECA_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def raw_seneca():
    """Fixture providing the callback-based fake framework."""
    return FakeSeneca()


@pytest.fixture
def extensions():
    """Fixture providing a registry with entity support installed."""
    return ExtensionRegistry().use(install_entities)


@pytest.fixture
def seneca(raw_seneca, extensions):
    """Fixture providing the wrapped fake framework."""
    return SenecaPromisified(raw_seneca, extensions=extensions, settings=Settings())
