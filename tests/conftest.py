"""Shared fixtures: in-memory engines and seeded tile tables."""

import pandas as pd
import pytest

from ultralogi import EngineConfig, Ultralogi
from ultralogi.engine import Engine

TEST_CONFIG = EngineConfig(threads=1, memory_limit="1GB")


@pytest.fixture
def engine():
    """Fresh in-memory engine."""
    engine = Engine(TEST_CONFIG)
    yield engine
    engine.close()


@pytest.fixture
def example_tiles():
    """Three tiles, already in (y, x) order."""
    return pd.DataFrame(
        {
            "x": [0, 1, 0],
            "y": [0, 0, 1],
            "tile_type": [1, 0, 9],
            "elevation": [2.0, 1.0, 0.0],
        }
    )


@pytest.fixture
def grid_tiles():
    """8x8 grid, inserted in reverse order so only ORDER BY gives (y, x) order."""
    rows = [
        {"x": x, "y": y, "tile_type": (x + y) % 7, "elevation": x * 0.5 + y}
        for y in range(8)
        for x in range(8)
    ]
    return pd.DataFrame(rows[::-1])


@pytest.fixture
def tile_engine(engine, example_tiles):
    """Engine with the three example tiles loaded."""
    engine.load_tiles(example_tiles)
    return engine


@pytest.fixture
def grid_engine(engine, grid_tiles):
    """Engine with the 8x8 grid loaded."""
    engine.load_tiles(grid_tiles)
    return engine


@pytest.fixture
def ul():
    """Fresh Ultralogi facade."""
    instance = Ultralogi(TEST_CONFIG)
    yield instance
    instance.close()
