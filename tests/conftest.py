"""
Shared pytest fixtures and configuration for shipwright tests.

This module provides:
- Settings cache cleanup for test isolation
- Pre-wired registries, dispatchers and containers
- A sample dataflow

Usage:
    Fixtures are auto-discovered by pytest; use them as function arguments.
    Fakes live in ``tests._support.fakes``.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from shipwright.container import ShipwrightContainer
from shipwright.core.cancellation import CancellationToken
from shipwright.core.settings import ShipwrightSettings, clear_settings_cache
from shipwright.dataflows.dataflow import Dataflow
from shipwright.validation.adapter import ValidatorRegistry
from tests._support.fakes import (
    AlwaysValid,
    FakeSource,
    FakeSourceHandler,
    FakeTransformation,
    RecordingFactory,
    make_dataflow,
)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings() -> Generator[None, None, None]:
    """Reset the settings cache around each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Wiring
# =============================================================================


@pytest.fixture
def settings() -> ShipwrightSettings:
    return ShipwrightSettings(_env_file=None)


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken.none()


@pytest.fixture
def validators() -> ValidatorRegistry:
    return ValidatorRegistry()


@pytest.fixture
def fake_source_handler() -> FakeSourceHandler:
    return FakeSourceHandler()


@pytest.fixture
def recording_factory() -> RecordingFactory:
    return RecordingFactory()


@pytest.fixture
def container(
    settings: ShipwrightSettings,
    fake_source_handler: FakeSourceHandler,
    recording_factory: RecordingFactory,
) -> ShipwrightContainer:
    """Container with the fake source and transformation registered."""
    c = ShipwrightContainer(settings)
    c.validators.register(FakeSource, AlwaysValid())
    c.validators.register(FakeTransformation, AlwaysValid())
    c.sources.register(FakeSource, fake_source_handler)
    c.transformations.register(FakeTransformation, recording_factory)
    return c


@pytest.fixture
def dataflow() -> Dataflow:
    return make_dataflow()
