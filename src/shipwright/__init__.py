"""
Shipwright - composable, validated record dataflows.

Sources are read as lazy record streams, records flow through ordered
chains of transformations, and infrastructure operations run through a
command dispatcher that validates commands and honours cancellation.

Quick start::

    from shipwright import ShipwrightContainer
    from shipwright.dataflows.sources import CsvSource
    from shipwright.dataflows.transformations import RequiredValue

    container = ShipwrightContainer()
    dataflow = container.dataflow(
        "orders",
        sources=(CsvSource(path="orders.csv"),),
        transformations=(RequiredValue(fields=("order_id",)),),
    )
    await container.run(dataflow)
"""

from shipwright.container import ShipwrightContainer

__version__ = "0.3.0"

__all__ = ["ShipwrightContainer", "__version__"]
