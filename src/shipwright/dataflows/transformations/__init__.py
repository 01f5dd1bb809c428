"""Record transformations: definitions, factories, handlers and the dispatcher."""

from shipwright.dataflows.transformations.aggregate import (
    AggregateTransformation,
    AggregateTransformationFactory,
    AggregateTransformationHandler,
    AggregateTransformationValidator,
)
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.dataflows.transformations.code import Code, CodeFactory, CodeValidator
from shipwright.dataflows.transformations.conversion import (
    Conversion,
    ConversionFactory,
    ConversionValidator,
    FailureEvent,
)
from shipwright.dataflows.transformations.dispatcher import TransformationDispatcher
from shipwright.dataflows.transformations.lookup import (
    DbLookup,
    DbLookupFactory,
    DbLookupValidator,
    MatchEvent,
)
from shipwright.dataflows.transformations.values import (
    DefaultValue,
    DefaultValueFactory,
    DefaultValueValidator,
    RequiredValue,
    RequiredValueFactory,
    RequiredValueValidator,
)

__all__ = [
    "AggregateTransformation",
    "AggregateTransformationFactory",
    "AggregateTransformationHandler",
    "AggregateTransformationValidator",
    "Code",
    "CodeFactory",
    "CodeValidator",
    "Conversion",
    "ConversionFactory",
    "ConversionValidator",
    "DbLookup",
    "DbLookupFactory",
    "DbLookupValidator",
    "DefaultValue",
    "DefaultValueFactory",
    "DefaultValueValidator",
    "FailureEvent",
    "MatchEvent",
    "RequiredValue",
    "RequiredValueFactory",
    "RequiredValueValidator",
    "Transformation",
    "TransformationDispatcher",
    "TransformationFactory",
    "TransformationHandler",
]
