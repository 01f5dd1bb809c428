"""Tests for ShipwrightContainer wiring."""

import pytest

from shipwright import ShipwrightContainer, __version__
from shipwright.core.settings import ShipwrightSettings
from shipwright.dataflows.sources import AggregateSource, CsvSource, DbSource
from shipwright.dataflows.transformations import (
    AggregateTransformation,
    Code,
    Conversion,
    DbLookup,
    DefaultValue,
    RequiredValue,
)
from tests._support.fakes import FakeSource, FakeTransformation


class TestLazyWiring:
    def test_properties_are_cached(self, settings):
        container = ShipwrightContainer(settings)
        assert container.validators is container.validators
        assert container.commands is container.commands
        assert container.sources is container.sources
        assert container.transformations is container.transformations

    @pytest.mark.parametrize("first", ["sources", "transformations", "commands"])
    def test_any_access_order_wires_everything(self, settings, first):
        container = ShipwrightContainer(settings)
        getattr(container, first)

        assert container.commands.list_handlers() == [
            "CommandHandler[BuildConnectionFactory, DbConnectionFactory]",
            "CommandHandler[Dataflow, None]",
        ]
        for source_type in (AggregateSource, CsvSource, DbSource):
            assert container.sources.has(source_type)
        for transformation_type in (
            AggregateTransformation, Code, Conversion, DbLookup, DefaultValue, RequiredValue,
        ):
            assert container.transformations.has(transformation_type)

    def test_built_in_validators_registered(self, settings):
        container = ShipwrightContainer(settings)
        registered = container.validators.list_registered()
        assert "CsvSource" in registered
        assert "SqliteConnectionInfo" in registered
        assert "Dataflow" in registered

    def test_settings_default_to_cached_settings(self, monkeypatch):
        monkeypatch.setenv("SHIPWRIGHT_BUFFER_SIZE", "9")
        assert ShipwrightContainer().settings.buffer_size == 9


class TestDataflowFactory:
    def test_defaults_come_from_settings(self):
        settings = ShipwrightSettings(
            _env_file=None, max_degree_of_parallelism=3, buffer_size=10, case_sensitive_fields=True
        )
        container = ShipwrightContainer(settings)

        dataflow = container.dataflow(
            "orders", sources=[FakeSource.of("a")], transformations=[FakeTransformation()]
        )

        assert dataflow.name == "orders"
        assert dataflow.sources == (FakeSource.of("a"),)
        assert dataflow.max_degree_of_parallelism == 3
        assert dataflow.buffer_size == 10
        assert dataflow.case_sensitive_fields is True

    def test_explicit_options_win(self, settings):
        dataflow = ShipwrightContainer(settings).dataflow(
            "orders", sources=(), transformations=(), buffer_size=5
        )
        assert dataflow.buffer_size == 5


def test_version():
    assert __version__ == "0.3.0"
