import os
import sys
from datetime import date

import pytest

# Add the parent directory to the path to import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.packing_controller import PackingListController
from app.services.packing_service import PackingListService
from app.services.storage_service import InMemoryStorage
from mock_llm_service import MockTextGenerator


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def generator():
    return MockTextGenerator()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(generator, storage, clock):
    return PackingListController(
        PackingListService(generator),
        storage,
        today=date(2025, 6, 1),
        clock=clock,
    )
