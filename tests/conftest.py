import logging
import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from modules.data_manager import Dataset

FEATURES = ["X1", "X2", "X3", "X4", "X5", "X6", "X7", "X8"]


def make_building_frame(n_rows: int = 48, seed: int = 0) -> pd.DataFrame:
    """Synthetic table shaped like ENB2012: 8 envelope features, 2 loads."""
    rng = np.random.default_rng(seed)
    compactness = rng.uniform(0.62, 0.98, n_rows)
    height = rng.choice([3.5, 7.0], n_rows)
    glazing = rng.choice([0.0, 0.1, 0.25, 0.4], n_rows)
    df = pd.DataFrame({
        "X1": compactness,
        "X2": 800 - 300 * compactness,
        "X3": rng.uniform(245, 416, n_rows),
        "X4": rng.uniform(110, 220, n_rows),
        "X5": height,
        "X6": np.tile([2, 3, 4, 5], n_rows // 4 + 1)[:n_rows],
        "X7": glazing,
        "X8": np.tile([0, 1, 2, 3, 4, 5], n_rows // 6 + 1)[:n_rows],
    })
    df["Y1"] = 4.0 * df["X5"] + 20 * df["X7"] + 5 * df["X1"] + rng.normal(0, 0.3, n_rows)
    df["Y2"] = 3.5 * df["X5"] + 15 * df["X7"] + 8 * df["X1"] + rng.normal(0, 0.3, n_rows)
    return df


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def building_frame():
    return make_building_frame()


@pytest.fixture
def building_dataset(building_frame):
    return Dataset(building_frame, categorical_columns=["X6", "X8"])


@pytest.fixture
def linear_dataset():
    """8 rows where the target is an exact linear function of one feature."""
    x = np.arange(8, dtype=float)
    return Dataset(pd.DataFrame({"x": x, "y": 3.0 * x + 2.0}))


@pytest.fixture
def frame_factory():
    """Build ENB-shaped frames of any size inside a test."""
    return make_building_frame
