"""
Shared fixtures for jsonboard tests.
"""

import pytest

from helpers import FakeTransport
from jsonboard.storage import JsonFileStorage
from jsonboard.store import WidgetStore


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def storage(tmp_path):
    return JsonFileStorage(tmp_path / "state")


@pytest.fixture
def store(storage):
    return WidgetStore(storage)


@pytest.fixture
def card_config():
    return {
        "type": "card",
        "title": "TCS Live Price",
        "endpoint": "https://api.example.com/stock?symbol=TCS",
        "fields": ["data.price", "data.change"],
        "refresh_interval": 0,
    }
