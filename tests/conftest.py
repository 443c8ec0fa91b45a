"""Shared fixtures for pushload tests."""

import random
from typing import Callable

import pytest

from pushload.config import LoadConfig

from .stubs import StubTransport

FIXED_NOW: int = 1700000000


@pytest.fixture(name="load_config")
def fixture_load_config() -> LoadConfig:
    """Default configuration pointing at an unused local host."""
    return LoadConfig(host="http://127.0.0.1:8034")


@pytest.fixture(name="rng")
def fixture_rng() -> random.Random:
    """Seeded random source so failures reproduce."""
    return random.Random(20231114)


@pytest.fixture(name="fixed_clock")
def fixture_fixed_clock() -> Callable[[], int]:
    """Clock frozen at 2023-11-14T22:13:20Z."""
    return lambda: FIXED_NOW


@pytest.fixture(name="ok_transport")
def fixture_ok_transport() -> StubTransport:
    """Transport answering 200 to every request."""
    return StubTransport(status_code=200, text='{"code": 0}')
