"""Dataflows: records, sources, transformations and the dataflow driver."""

from shipwright.dataflows.dataflow import Dataflow, DataflowHandler, DataflowValidator
from shipwright.dataflows.notifications import LoggingNotificationReceiver, NotificationReceiver
from shipwright.dataflows.record import FieldMap, LogEvent, LogLevel, Record

__all__ = [
    "Dataflow",
    "DataflowHandler",
    "DataflowValidator",
    "FieldMap",
    "LogEvent",
    "LogLevel",
    "LoggingNotificationReceiver",
    "NotificationReceiver",
    "Record",
]
