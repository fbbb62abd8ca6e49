"""Shared fixtures for the plantview tests."""

import pytest

from plantview.config import ViewConfig
from plantview.network_model import default_network


class ScriptedRng:
    """Random source that always picks the element and applies a fixed delta."""

    def __init__(self, delta: float, draw: float = 0.0):
        self.delta = delta
        self.draw = draw

    def random(self) -> float:
        return self.draw

    def uniform(self, low: float, high: float) -> float:
        return self.delta


@pytest.fixture
def model():
    return default_network()


@pytest.fixture
def config():
    return ViewConfig(seed=7)


@pytest.fixture
def scripted_rng():
    return ScriptedRng
