"""
Tests for source dispatch and the aggregate source.

Covers:
- Aggregate sources read children strictly in order
- Failures mid-stream propagate after the records already yielded
- Eager argument and handler checks
- Cancellation before reading and between records
- Validation before reading
"""

import pytest

from shipwright.core.cancellation import CancellationTokenSource, CancellationToken
from shipwright.core.errors import (
    InvalidArgumentError,
    MissingHandlerError,
    OperationCancelledError,
    ValidationFailedError,
)
from shipwright.dataflows.sources import AggregateSource, SourceDispatcher
from shipwright.validation.results import ValidationFailure
from tests._support.fakes import FakeSource, FakeSourceHandler


class RejectEmpty:
    def validate(self, source):
        return [] if source.rows else [ValidationFailure("rows", "must contain at least one item")]


async def _collect(stream):
    return [record async for record in stream]


@pytest.fixture
def handler() -> FakeSourceHandler:
    return FakeSourceHandler()


@pytest.fixture
def dispatcher(container, handler) -> SourceDispatcher:
    dispatcher = container.sources
    dispatcher.register(FakeSource, handler)
    return dispatcher


class TestAggregateSource:
    @pytest.mark.asyncio
    async def test_children_are_concatenated_in_order(self, dispatcher, dataflow):
        source = AggregateSource(
            (
                FakeSource.of("a", {"n": 1}, {"n": 2}),
                FakeSource.of("b", {"n": 1}),
                FakeSource.of("c", {"n": 1}, {"n": 2}, {"n": 3}),
            )
        )

        records = await _collect(dispatcher.read(source, dataflow))

        assert [(r.source.name, r.position) for r in records] == [
            ("a", 1),
            ("a", 2),
            ("b", 1),
            ("c", 1),
            ("c", 2),
            ("c", 3),
        ]

    @pytest.mark.asyncio
    async def test_empty_child_is_skipped(self, dispatcher, dataflow):
        source = AggregateSource((FakeSource.of("a"), FakeSource.of("b", {"n": 1})))
        records = await _collect(dispatcher.read(source, dataflow))
        assert [r.source.name for r in records] == ["b"]

    @pytest.mark.asyncio
    async def test_failure_propagates_after_yielded_records(self, container, dataflow):
        handler = FakeSourceHandler(fail_after=1)
        container.sources.register(FakeSource, handler)
        source = AggregateSource(
            (FakeSource.of("a", {"n": 1}, {"n": 2}), FakeSource.of("b", {"n": 1}))
        )

        seen = []
        with pytest.raises(RuntimeError, match="a failed at 2"):
            async for record in container.sources.read(source, dataflow):
                seen.append(record.position)

        assert seen == [1]
        assert handler.reads == ["a"]

    @pytest.mark.asyncio
    async def test_aggregate_must_have_children(self, dispatcher, dataflow):
        with pytest.raises(ValidationFailedError) as exc_info:
            await _collect(dispatcher.read(AggregateSource(()), dataflow))
        assert "sources" in [f.field for f in exc_info.value.failures]


class TestSourceDispatcher:
    def test_none_arguments_fail_eagerly(self, dispatcher, dataflow):
        with pytest.raises(InvalidArgumentError):
            dispatcher.read(None, dataflow)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            dispatcher.read(FakeSource.of("a"), None)  # type: ignore[arg-type]

    def test_missing_handler_fails_eagerly(self, validators, dataflow):
        dispatcher = SourceDispatcher(validators)
        with pytest.raises(MissingHandlerError) as exc_info:
            dispatcher.read(FakeSource.of("a"), dataflow)
        assert exc_info.value.contract == "SourceHandler[FakeSource]"

    @pytest.mark.asyncio
    async def test_missing_validator(self, validators, dataflow, handler):
        dispatcher = SourceDispatcher(validators)
        dispatcher.register(FakeSource, handler)
        with pytest.raises(MissingHandlerError) as exc_info:
            await _collect(dispatcher.read(FakeSource.of("a", {"n": 1}), dataflow))
        assert exc_info.value.contract == "Validator[FakeSource]"
        assert handler.reads == []

    @pytest.mark.asyncio
    async def test_validated_before_reading(self, validators, dataflow, handler):
        validators.register(FakeSource, RejectEmpty())
        dispatcher = SourceDispatcher(validators)
        dispatcher.register(FakeSource, handler)

        with pytest.raises(ValidationFailedError):
            await _collect(dispatcher.read(FakeSource.of("a"), dataflow))
        assert handler.reads == []

    @pytest.mark.asyncio
    async def test_cancelled_before_reading(self, dispatcher, dataflow, handler):
        stream = dispatcher.read(
            FakeSource.of("a", {"n": 1}), dataflow, CancellationToken.cancelled()
        )
        with pytest.raises(OperationCancelledError):
            await _collect(stream)
        assert handler.reads == []

    @pytest.mark.asyncio
    async def test_cancelled_between_records(self, dispatcher, dataflow):
        cancellation = CancellationTokenSource()
        stream = dispatcher.read(
            FakeSource.of("a", {"n": 1}, {"n": 2}, {"n": 3}), dataflow, cancellation.token
        )

        seen = []
        with pytest.raises(OperationCancelledError):
            async for record in stream:
                seen.append(record.position)
                cancellation.cancel()

        assert seen == [1]

    def test_registration_helpers(self, dispatcher):
        assert dispatcher.has(FakeSource)
        assert "SourceHandler[FakeSource]" in dispatcher.list_handlers()
        assert "SourceHandler[CsvSource]" in dispatcher.list_handlers()
