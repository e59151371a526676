import pytest

from fakes import FakeClock
from fakes import FakeHid


@pytest.fixture
def fake_hid(mocker):
    fake = FakeHid()
    mocker.patch("pulsarbattery.transport.hid", fake)
    yield fake


@pytest.fixture
def clock():
    yield FakeClock()
