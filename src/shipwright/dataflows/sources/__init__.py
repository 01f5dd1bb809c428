"""Record sources: definitions, readers and the source dispatcher."""

from shipwright.dataflows.sources.aggregate import (
    AggregateSource,
    AggregateSourceHandler,
    AggregateSourceValidator,
)
from shipwright.dataflows.sources.base import Source, SourceHandler
from shipwright.dataflows.sources.database import DbSource, DbSourceHandler, DbSourceValidator
from shipwright.dataflows.sources.delimited import CsvSource, CsvSourceHandler, csv_source_validator
from shipwright.dataflows.sources.dispatcher import SourceDispatcher

__all__ = [
    "AggregateSource",
    "AggregateSourceHandler",
    "AggregateSourceValidator",
    "CsvSource",
    "CsvSourceHandler",
    "DbSource",
    "DbSourceHandler",
    "DbSourceValidator",
    "Source",
    "SourceDispatcher",
    "SourceHandler",
    "csv_source_validator",
]
