import pytest

from tests.helpers import FakeConfigSource, FakeFetcher, FakeNotifier, FrozenClock


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def fake_config_source():
    return FakeConfigSource()
