"""
Tests for transformation dispatch, decorators and the aggregate transformation.

Covers:
- Aggregate build order and cleanup of already-built children on failure
- Ordered transform and teardown, with close errors collected
- Skipping records that carry a fatal event
- Concurrency limits
- Cancellation and validation before build
"""

import asyncio

import pytest

from shipwright.core.cancellation import CancellationToken, CancellationTokenSource
from shipwright.core.errors import (
    InvalidArgumentError,
    MissingHandlerError,
    OperationCancelledError,
    ValidationFailedError,
)
from shipwright.dataflows.record import LogEvent, Record
from shipwright.dataflows.transformations import (
    AggregateTransformation,
    Code,
    TransformationDispatcher,
)
from shipwright.dataflows.transformations.decorators import (
    ThrottleFactoryDecorator,
    ThrottleHandlerDecorator,
)
from tests._support.fakes import FakeSource, FakeTransformation, RecordingHandler


def _record(dataflow, **data) -> Record:
    return Record(dataflow, FakeSource.of("a"), data, 1)


def _chain(*names, **flags):
    return AggregateTransformation(
        tuple(FakeTransformation(name=n, **flags.get(n, {})) for n in names)
    )


class TestAggregateBuild:
    @pytest.mark.asyncio
    async def test_children_built_in_order(self, container, recording_factory):
        await container.transformations.create(_chain("t1", "t2", "t3"))
        assert recording_factory.journal == ["build:t1", "build:t2", "build:t3"]

    @pytest.mark.asyncio
    async def test_failed_build_closes_built_children(self, container, recording_factory):
        transformation = _chain("t1", "t2", "t3", t3={"fail_build": True})

        with pytest.raises(RuntimeError, match="t3 failed to build"):
            await container.transformations.create(transformation)

        assert recording_factory.journal == [
            "build:t1",
            "build:t2",
            "build:t3",
            "close:t1",
            "close:t2",
        ]
        assert recording_factory.handlers["t1"].closed == 1
        assert recording_factory.handlers["t2"].closed == 1

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_attached_to_original_error(
        self, container, recording_factory
    ):
        transformation = _chain("t1", "t2", t1={"fail_close": True}, t2={"fail_build": True})

        with pytest.raises(RuntimeError, match="t2 failed to build") as exc_info:
            await container.transformations.create(transformation)

        notes = getattr(exc_info.value, "__notes__", [])
        assert len(notes) == 1
        assert "t1 failed to close" in notes[0]

    @pytest.mark.asyncio
    async def test_cancellation_during_build(self, container, recording_factory):
        cancellation = CancellationTokenSource()

        class CancellingFactory:
            def __init__(self, inner):
                self.inner = inner

            async def create(self, transformation, token):
                handler = await self.inner.create(transformation, token)
                cancellation.cancel()
                return handler

        container.transformations.register(FakeTransformation, CancellingFactory(recording_factory))

        with pytest.raises(OperationCancelledError):
            await container.transformations.create(_chain("t1", "t2"), cancellation.token)

        assert recording_factory.journal == ["build:t1", "close:t1"]

    @pytest.mark.asyncio
    async def test_invalid_child_fails_build(self, container):
        transformation = AggregateTransformation((Code(func=None),))
        with pytest.raises(ValidationFailedError) as exc_info:
            await container.transformations.create(transformation)
        assert exc_info.value.result.fields() == ["func"]

    @pytest.mark.asyncio
    async def test_empty_aggregate_is_invalid(self, container):
        with pytest.raises(ValidationFailedError):
            await container.transformations.create(AggregateTransformation(()))


class TestAggregateRun:
    @pytest.mark.asyncio
    async def test_transform_runs_children_in_order(self, container, dataflow):
        handler = await container.transformations.create(_chain("t1", "t2"))
        record = _record(dataflow)

        await handler.transform(record, CancellationToken.none())

        assert record.data["trail"] == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_no_state_leaks_between_records(self, container, dataflow):
        handler = await container.transformations.create(_chain("t1", "t2"))
        first, second = _record(dataflow), _record(dataflow)

        await handler.transform(first, CancellationToken.none())
        await handler.transform(second, CancellationToken.none())

        assert first.data["trail"] == ["t1", "t2"]
        assert second.data["trail"] == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_close_tears_down_every_child_once(self, container, recording_factory):
        async with await container.transformations.create(_chain("t1", "t2", "t3")):
            pass

        assert [e for e in recording_factory.journal if e.startswith("close")] == [
            "close:t1",
            "close:t2",
            "close:t3",
        ]

    @pytest.mark.asyncio
    async def test_single_close_error_is_raised_after_all_closes(
        self, container, recording_factory
    ):
        handler = await container.transformations.create(
            _chain("t1", "t2", t1={"fail_close": True})
        )

        with pytest.raises(RuntimeError, match="t1 failed to close"):
            await handler.aclose()
        assert recording_factory.handlers["t2"].closed == 1

    @pytest.mark.asyncio
    async def test_multiple_close_errors_are_grouped(self, container):
        handler = await container.transformations.create(
            _chain("t1", "t2", t1={"fail_close": True}, t2={"fail_close": True})
        )

        with pytest.raises(ExceptionGroup) as exc_info:
            await handler.aclose()
        assert len(exc_info.value.exceptions) == 2


class TestDecorators:
    @pytest.mark.asyncio
    async def test_fatal_event_skips_later_transformations(self, container, dataflow):
        async def poison(record, token):
            record.events.append(LogEvent("poisoned", is_fatal=True))

        transformation = AggregateTransformation(
            (FakeTransformation(name="t1"), Code(func=poison), FakeTransformation(name="t2"))
        )
        handler = await container.transformations.create(transformation)
        record = _record(dataflow)

        await handler.transform(record, CancellationToken.none())

        assert record.data["trail"] == ["t1"]

    @pytest.mark.asyncio
    async def test_non_fatal_event_does_not_skip(self, container, dataflow):
        def warn(record, token):
            record.events.append(LogEvent("note", is_fatal=False))

        handler = await container.transformations.create(
            AggregateTransformation((Code(func=warn), FakeTransformation(name="t1")))
        )
        record = _record(dataflow)

        await handler.transform(record, CancellationToken.none())

        assert record.data["trail"] == ["t1"]

    @pytest.mark.asyncio
    async def test_cancelled_before_each_record(self, container, dataflow):
        handler = await container.transformations.create(FakeTransformation(name="t1"))
        record = _record(dataflow)

        with pytest.raises(OperationCancelledError):
            await handler.transform(record, CancellationToken.cancelled())
        assert "trail" not in record.data

    @pytest.mark.asyncio
    async def test_cancelled_before_build(self, container, recording_factory):
        with pytest.raises(OperationCancelledError):
            await container.transformations.create(
                FakeTransformation(name="t1"), CancellationToken.cancelled()
            )
        assert recording_factory.journal == []

    @pytest.mark.asyncio
    async def test_throttle_limits_concurrency(self, container, dataflow):
        active = 0
        peak = 0

        async def slow(record, token):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        handler = await container.transformations.create(
            Code(func=slow, max_degree_of_parallelism=2)
        )
        await asyncio.gather(
            *(handler.transform(_record(dataflow), CancellationToken.none()) for _ in range(6))
        )

        assert peak == 2

    def test_throttle_rejects_non_positive_limit(self):
        with pytest.raises(InvalidArgumentError):
            ThrottleHandlerDecorator(0, RecordingHandler("t", []))

    @pytest.mark.asyncio
    async def test_limit_is_validated_for_every_type_before_build(
        self, container, recording_factory
    ):
        transformation = _chain("t1", "t2", t2={"max_degree_of_parallelism": 0})

        with pytest.raises(ValidationFailedError) as exc_info:
            await container.transformations.create(transformation)

        assert exc_info.value.result.fields() == ["max_degree_of_parallelism"]
        assert recording_factory.journal == ["build:t1", "close:t1"]
        assert "t2" not in recording_factory.handlers

    @pytest.mark.asyncio
    async def test_throttle_closes_handler_it_cannot_wrap(self, recording_factory):
        factory = ThrottleFactoryDecorator(recording_factory)

        with pytest.raises(InvalidArgumentError):
            await factory.create(
                FakeTransformation(name="t1", max_degree_of_parallelism=0),
                CancellationToken.none(),
            )

        assert recording_factory.handlers["t1"].closed == 1

    @pytest.mark.asyncio
    async def test_close_is_forwarded_through_decorators(self, container, recording_factory):
        handler = await container.transformations.create(
            FakeTransformation(name="t1", max_degree_of_parallelism=1)
        )
        await handler.aclose()
        assert recording_factory.handlers["t1"].closed == 1


class TestTransformationDispatcher:
    @pytest.mark.asyncio
    async def test_missing_factory(self, validators):
        dispatcher = TransformationDispatcher(validators)
        with pytest.raises(MissingHandlerError) as exc_info:
            await dispatcher.create(FakeTransformation())
        assert exc_info.value.contract == "TransformationFactory[FakeTransformation]"

    @pytest.mark.asyncio
    async def test_missing_validator(self, validators, recording_factory):
        dispatcher = TransformationDispatcher(validators)
        dispatcher.register(FakeTransformation, recording_factory)
        with pytest.raises(MissingHandlerError) as exc_info:
            await dispatcher.create(FakeTransformation())
        assert exc_info.value.contract == "Validator[FakeTransformation]"
        assert recording_factory.journal == []

    @pytest.mark.asyncio
    async def test_none_transformation(self, container):
        with pytest.raises(InvalidArgumentError):
            await container.transformations.create(None)  # type: ignore[arg-type]

    def test_list_factories(self, container):
        factories = container.transformations.list_factories()
        assert "TransformationFactory[FakeTransformation]" in factories
        assert "TransformationFactory[DbLookup]" in factories
