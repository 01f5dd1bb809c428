"""
Dataflow - the command that runs an extract-transform pipeline.

WHY
───
A dataflow run ties everything together: it reads all of its sources as
one ordered stream, pushes each record through one chain of
transformations, and tells the registered receivers about progress. It is
itself a command, so it is validated and checked for cancellation like any
other before any handler is built.

ARCHITECTURE
────────────
::

    DataflowHandler.execute(dataflow, token)
      │
      ├── build AggregateTransformation(dataflow.transformations)   (once)
      ├── notify dataflow_starting
      │
      │   producer                         workers × max_degree_of_parallelism
      │   read AggregateSource(sources) →  asyncio.Queue(buffer_size) →
      │                                      handler.transform(record)
      │                                      notify record_completed
      │
      ├── notify dataflow_completed
      └── handler.aclose()

    The first failure in the producer or any worker cancels the rest of
    the run and propagates unchanged.

Examples:
    >>> dataflow = Dataflow(
    ...     name="orders",
    ...     sources=(CsvSource(path="orders.csv"),),
    ...     transformations=(RequiredValue(fields=("order_id",)),),
    ... )
    >>> await container.commands.execute(dataflow, token)

Tags:
    dataflows, pipeline, asyncio, concurrency, commands
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from shipwright.commands.command import Command
from shipwright.commands.handler import CommandHandler
from shipwright.core.cancellation import CancellationToken
from shipwright.core.errors import InvalidArgumentError
from shipwright.core.logging import LogContext, get_logger
from shipwright.dataflows.notifications import NotificationReceiver
from shipwright.dataflows.record import (
    FieldKey,
    FieldMap,
    LogEvent,
    Record,
    case_insensitive,
    case_sensitive,
)
from shipwright.dataflows.sources.aggregate import AggregateSource
from shipwright.dataflows.sources.base import Source
from shipwright.dataflows.sources.dispatcher import SourceDispatcher
from shipwright.dataflows.transformations.aggregate import AggregateTransformation
from shipwright.dataflows.transformations.base import Transformation, TransformationHandler
from shipwright.dataflows.transformations.dispatcher import TransformationDispatcher
from shipwright.validation import rules
from shipwright.validation.results import ValidationFailure

log = get_logger(__name__)

_END_OF_STREAM = object()


def _new_run_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Dataflow(Command[None]):
    """Command that executes an extract-transform dataflow.

    ``name`` is ideally unique to a pipeline and stable between runs;
    ``run_id`` identifies one execution.
    """

    name: str = ""
    sources: tuple[Source, ...] = ()
    transformations: tuple[Transformation, ...] = ()
    notification_receivers: tuple[NotificationReceiver, ...] = ()
    max_degree_of_parallelism: int = 1
    buffer_size: int = 1000
    case_sensitive_fields: bool = False
    run_id: str = field(default_factory=_new_run_id)
    events: list[LogEvent] = field(default_factory=list, compare=False, hash=False, repr=False)

    @property
    def field_name_key(self) -> FieldKey:
        return case_sensitive if self.case_sensitive_fields else case_insensitive

    def new_field_map(self) -> FieldMap:
        """Empty field map using this dataflow's name comparison."""
        return FieldMap(key=self.field_name_key)


class DataflowValidator:
    def validate(self, dataflow: Dataflow) -> list[ValidationFailure]:
        return [
            *rules.not_blank("name", dataflow.name),
            *rules.not_empty("sources", dataflow.sources),
            *rules.no_none_items("sources", dataflow.sources),
            *rules.not_empty("transformations", dataflow.transformations),
            *rules.no_none_items("transformations", dataflow.transformations),
            *rules.no_none_items("notification_receivers", dataflow.notification_receivers),
            *rules.at_least("max_degree_of_parallelism", dataflow.max_degree_of_parallelism, 1),
            *rules.at_least("buffer_size", dataflow.buffer_size, 1),
        ]


class DataflowHandler(CommandHandler[Dataflow, None]):
    """Executes dataflow commands.

    Receivers passed here are notified for every run, before the receivers
    carried by the dataflow itself.
    """

    def __init__(
        self,
        sources: SourceDispatcher,
        transformations: TransformationDispatcher,
        notification_receivers: Sequence[NotificationReceiver] = (),
    ):
        if sources is None:
            raise InvalidArgumentError("sources")
        if transformations is None:
            raise InvalidArgumentError("transformations")
        if notification_receivers is None:
            raise InvalidArgumentError("notification_receivers")
        self._sources = sources
        self._transformations = transformations
        self._receivers = tuple(notification_receivers)

    def _receivers_for(self, dataflow: Dataflow) -> tuple[NotificationReceiver, ...]:
        return self._receivers + tuple(dataflow.notification_receivers)

    async def execute(self, command: Dataflow, token: CancellationToken) -> None:
        async with LogContext(dataflow=command.name, run_id=command.run_id):
            receivers = self._receivers_for(command)
            transformation = AggregateTransformation(tuple(command.transformations))
            handler = await self._transformations.create(transformation, token)

            async with handler:
                for receiver in receivers:
                    await receiver.dataflow_starting(command, token)

                await self._run(command, handler, receivers, token)

                for receiver in receivers:
                    await receiver.dataflow_completed(command, token)

    async def _run(
        self,
        dataflow: Dataflow,
        handler: TransformationHandler,
        receivers: tuple[NotificationReceiver, ...],
        token: CancellationToken,
    ) -> None:
        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=dataflow.buffer_size)
        workers = dataflow.max_degree_of_parallelism
        source = AggregateSource(tuple(dataflow.sources))

        async def produce() -> int:
            count = 0
            async for record in self._sources.read(source, dataflow, token):
                await queue.put(record)
                count += 1
            for _ in range(workers):
                await queue.put(_END_OF_STREAM)
            return count

        async def consume() -> None:
            while True:
                record = await queue.get()
                if record is _END_OF_STREAM:
                    return
                await handler.transform(record, token)
                for receiver in receivers:
                    await receiver.record_completed(record, token)

        tasks = [asyncio.create_task(produce(), name=f"{dataflow.name}:reader")]
        tasks += [
            asyncio.create_task(consume(), name=f"{dataflow.name}:worker-{i}")
            for i in range(workers)
        ]

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in tasks:
                if task.done() and not task.cancelled() and task.exception() is not None:
                    log.debug("dataflow.failed", task=task.get_name())
                    raise task.exception()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        log.debug("dataflow.records_read", records=tasks[0].result())


__all__ = ["Dataflow", "DataflowHandler", "DataflowValidator"]
