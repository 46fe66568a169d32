import pytest

from bench_psu.instrumentation import PowerSupply, SimulatedSupply


@pytest.fixture
def device():
    return SimulatedSupply()


@pytest.fixture
def psu(device):
    supply = PowerSupply(serial_factory=device.as_factory())
    assert supply.open("/dev/ttyUSB0").ok
    yield supply
    supply.close()
