"""FizzBuzz demonstration dataflow.

A counting source and a transformation that labels each number, used by
``shipwright fizzbuzz`` to exercise the whole pipeline end to end::

    container = ShipwrightContainer()
    register_fizzbuzz(container)
    await container.run(fizzbuzz_dataflow(records=15))
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shipwright.core.cancellation import CancellationToken
from shipwright.dataflows.dataflow import Dataflow
from shipwright.dataflows.notifications import NotificationReceiver
from shipwright.dataflows.record import Record
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

if TYPE_CHECKING:
    from shipwright.container import ShipwrightContainer


@dataclass(frozen=True)
class CountingSource(Source):
    """Yields ``records`` records whose ``value`` field counts up from 1."""

    records: int = 0


class CountingSourceValidator:
    def validate(self, source: CountingSource) -> list[ValidationFailure]:
        return rules.at_least("records", source.records, 1)


class CountingSourceHandler(SourceHandler[CountingSource]):
    async def read(
        self, source: CountingSource, dataflow: Dataflow, token: CancellationToken
    ) -> AsyncIterator[Record]:
        for position in range(1, source.records + 1):
            yield Record(dataflow, source, {"value": position}, position)


@dataclass(frozen=True)
class FizzBuzz(Transformation):
    """Sets ``output`` to fizz, buzz, fizzbuzz or the value itself."""

    fizz: int = 3
    buzz: int = 5


class FizzBuzzValidator:
    def validate(self, transformation: FizzBuzz) -> list[ValidationFailure]:
        failures = [
            *rules.at_least("fizz", transformation.fizz, 1),
            *rules.at_least("buzz", transformation.buzz, 1),
        ]
        if not failures and transformation.fizz >= transformation.buzz:
            failures.append(ValidationFailure("fizz", "must be less than buzz"))
        return failures


class FizzBuzzHandler(TransformationHandler):
    def __init__(self, fizz: int, buzz: int):
        self.fizz = fizz
        self.buzz = buzz

    async def transform(self, record: Record, token: CancellationToken) -> None:
        value = record.data.get("value")
        if not isinstance(value, int):
            return
        if value % self.fizz == 0 and value % self.buzz == 0:
            record.data["output"] = "fizzbuzz"
        elif value % self.fizz == 0:
            record.data["output"] = "fizz"
        elif value % self.buzz == 0:
            record.data["output"] = "buzz"
        else:
            record.data["output"] = value


class FizzBuzzFactory(TransformationFactory[FizzBuzz]):
    async def create(self, transformation: FizzBuzz, token: CancellationToken) -> FizzBuzzHandler:
        return FizzBuzzHandler(transformation.fizz, transformation.buzz)


def register_fizzbuzz(container: ShipwrightContainer) -> None:
    """Register the counting source and FizzBuzz transformation."""
    container.validators.register(CountingSource, CountingSourceValidator())
    container.validators.register(FizzBuzz, FizzBuzzValidator())
    container.sources.register(CountingSource, CountingSourceHandler())
    container.transformations.register(FizzBuzz, FizzBuzzFactory())


def fizzbuzz_dataflow(
    records: int = 100,
    fizz: int = 3,
    buzz: int = 5,
    receivers: tuple[NotificationReceiver, ...] = (),
) -> Dataflow:
    return Dataflow(
        name="FizzBuzz",
        sources=(CountingSource(records=records),),
        transformations=(FizzBuzz(fizz=fizz, buzz=buzz),),
        notification_receivers=receivers,
    )


__all__ = [
    "CountingSource",
    "CountingSourceHandler",
    "FizzBuzz",
    "FizzBuzzFactory",
    "fizzbuzz_dataflow",
    "register_fizzbuzz",
]
