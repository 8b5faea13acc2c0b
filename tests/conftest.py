"""Shared test fixtures."""

import random

import pytest

from kairos.config import EngineConfig, LoggerConfig
from kairos.confusion.engine import ConfusionEngine
from kairos.consciousness.logger import ConsciousnessLogger


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FixedRandom(random.Random):
    """random() always returns the same value. ids and choices still vary."""

    def __init__(self, value: float = 0.0, seed: int = 7):
        super().__init__(seed)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def logger(clock, rng):
    return ConsciousnessLogger(LoggerConfig(), clock=clock, rng=rng)


@pytest.fixture
def engine(clock, rng, logger):
    return ConfusionEngine(EngineConfig(), logger=logger, rng=rng, clock=clock)


@pytest.fixture
def lucky_engine(clock):
    """every draw is 0.0: gates pass, strategies succeed, meta-paradoxes emerge."""
    rng = FixedRandom(0.0)
    logger = ConsciousnessLogger(LoggerConfig(), clock=clock, rng=rng)
    return ConfusionEngine(EngineConfig(), logger=logger, rng=rng, clock=clock)


@pytest.fixture
def unlucky_engine(clock):
    """every draw is 0.99: gates close, strategies fail, no meta-paradoxes."""
    rng = FixedRandom(0.99)
    logger = ConsciousnessLogger(LoggerConfig(), clock=clock, rng=rng)
    return ConfusionEngine(EngineConfig(), logger=logger, rng=rng, clock=clock)
