"""End-to-end tests with the FizzBuzz demonstration dataflow."""

import pytest

from shipwright import ShipwrightContainer
from shipwright.cli.utils import RecordCollector
from shipwright.core.errors import ValidationFailedError
from shipwright.fizzbuzz import fizzbuzz_dataflow, register_fizzbuzz


@pytest.fixture
def collector() -> RecordCollector:
    return RecordCollector()


@pytest.fixture
def fizzbuzz_container(settings, collector) -> ShipwrightContainer:
    container = ShipwrightContainer(settings, notification_receivers=(collector,))
    register_fizzbuzz(container)
    return container


class TestFizzBuzz:
    @pytest.mark.asyncio
    async def test_fifteen(self, fizzbuzz_container, collector):
        await fizzbuzz_container.run(fizzbuzz_dataflow(records=15))

        outputs = [r.data["output"] for r in collector.records]
        assert outputs == [
            1, 2, "fizz", 4, "buzz", "fizz", 7, 8, "fizz", "buzz",
            11, "fizz", 13, 14, "fizzbuzz",
        ]

    @pytest.mark.asyncio
    async def test_custom_divisors(self, fizzbuzz_container, collector):
        await fizzbuzz_container.run(fizzbuzz_dataflow(records=4, fizz=2, buzz=4))
        assert [r.data["output"] for r in collector.records] == [1, "fizz", 3, "fizzbuzz"]

    @pytest.mark.asyncio
    async def test_fizz_must_be_less_than_buzz(self, fizzbuzz_container):
        with pytest.raises(ValidationFailedError) as exc_info:
            await fizzbuzz_container.run(fizzbuzz_dataflow(records=3, fizz=5, buzz=3))
        assert exc_info.value.result.fields() == ["fizz"]

    @pytest.mark.asyncio
    async def test_records_must_be_positive(self, fizzbuzz_container):
        with pytest.raises(ValidationFailedError) as exc_info:
            await fizzbuzz_container.run(fizzbuzz_dataflow(records=0))
        assert exc_info.value.result.fields() == ["records"]
