"""
Transformation Dispatcher - builds handlers from transformation definitions.

Architecture:
    ::

        TransformationDispatcher
          ├── .register(transformation_type, factory)   wrap + store
          ├── .create(transformation, token)            → TransformationHandler
          ├── .has(transformation_type)
          └── .list_factories()

Guardrails:
    - Lookup is by exact transformation type.
    - A failed build leaves nothing behind; aggregate builds tear down the
      children they already built.

Tags:
    dataflows, transformations, dispatcher, shipwright-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from shipwright.core.cancellation import CancellationToken, ensure_token
from shipwright.core.errors import InvalidArgumentError, MissingHandlerError
from shipwright.core.logging import get_logger
from shipwright.dataflows.transformations.base import (
    Transformation,
    TransformationFactory,
    TransformationHandler,
)
from shipwright.dataflows.transformations.decorators import (
    CancellationFactoryDecorator,
    EventInspectionFactoryDecorator,
    ThrottleFactoryDecorator,
    ValidationFactoryDecorator,
)
from shipwright.validation.adapter import ValidatorRegistry

log = get_logger(__name__)


class TransformationDispatcher:
    """Creates handlers for any registered transformation type."""

    def __init__(self, validators: ValidatorRegistry):
        if validators is None:
            raise InvalidArgumentError("validators")
        self._validators = validators
        self._factories: dict[type, TransformationFactory] = {}

    def register(
        self, transformation_type: type[Transformation], factory: TransformationFactory
    ) -> None:
        if transformation_type is None:
            raise InvalidArgumentError("transformation_type")
        if factory is None:
            raise InvalidArgumentError("factory")
        self._factories[transformation_type] = EventInspectionFactoryDecorator(
            ThrottleFactoryDecorator(
                CancellationFactoryDecorator(
                    ValidationFactoryDecorator(factory, self._validators, transformation_type)
                )
            )
        )

    def has(self, transformation_type: type[Transformation]) -> bool:
        return transformation_type in self._factories

    def list_factories(self) -> list[str]:
        return sorted(f"TransformationFactory[{t.__qualname__}]" for t in self._factories)

    async def create(
        self, transformation: Transformation, token: CancellationToken | None = None
    ) -> TransformationHandler:
        """Build the handler for ``transformation``.

        Raises:
            InvalidArgumentError: If ``transformation`` is ``None``.
            MissingHandlerError: If no factory is registered for the type.
            OperationCancelledError: If ``token`` is cancelled.
            ValidationFailedError: If the definition fails validation.
        """
        if transformation is None:
            raise InvalidArgumentError("transformation")

        transformation_type = type(transformation)
        factory = self._factories.get(transformation_type)
        if factory is None:
            raise MissingHandlerError(f"TransformationFactory[{transformation_type.__qualname__}]")

        log.debug("transformation.create", transformation_type=transformation_type.__qualname__)
        return await factory.create(transformation, ensure_token(token))


__all__ = ["TransformationDispatcher"]
