"""Dataflow notification receivers.

Receivers are told when a run starts, when each record has been
transformed, and when the run completes. The driver calls every receiver
in order and awaits each call; a receiver that raises fails the run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from shipwright.core.cancellation import CancellationToken
from shipwright.core.logging import get_logger

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.record import Record


@runtime_checkable
class NotificationReceiver(Protocol):
    async def dataflow_starting(self, dataflow: Dataflow, token: CancellationToken) -> None: ...

    async def record_completed(self, record: Record, token: CancellationToken) -> None: ...

    async def dataflow_completed(self, dataflow: Dataflow, token: CancellationToken) -> None: ...


class LoggingNotificationReceiver:
    """Emits structured log events for the lifecycle of a run.

    Record completions are logged at debug level; records that carry events
    are logged at warning level with the events attached.
    """

    def __init__(self, logger=None):
        self.log = logger or get_logger(__name__)

    async def dataflow_starting(self, dataflow: Dataflow, token: CancellationToken) -> None:
        self.log.info(
            "dataflow.starting",
            dataflow=dataflow.name,
            run_id=dataflow.run_id,
            sources=len(dataflow.sources),
            transformations=len(dataflow.transformations),
        )

    async def record_completed(self, record: Record, token: CancellationToken) -> None:
        if record.events:
            self.log.warning(
                "record.completed_with_events",
                position=record.position,
                source_type=type(record.source).__name__,
                events=[event.to_dict() for event in record.events],
            )
        else:
            self.log.debug("record.completed", position=record.position)

    async def dataflow_completed(self, dataflow: Dataflow, token: CancellationToken) -> None:
        self.log.info(
            "dataflow.completed",
            dataflow=dataflow.name,
            run_id=dataflow.run_id,
            events=len(dataflow.events),
        )


__all__ = ["LoggingNotificationReceiver", "NotificationReceiver"]
