"""Shared test fixtures for the sparsebn library.

This module provides small datasets with known structure for testing the
validators, the dispatcher and the solvers.
"""

import numpy as np
import pandas as pd
import pytest

from sparsebn.core.base import SparsebnData
from sparsebn.data.synthetic import generate_discrete_data


@pytest.fixture
def random_state():
    """Provide a consistent random state for reproducible tests."""
    return 42


@pytest.fixture
def chain_adjacency():
    """True structure X1 -> X2 -> X3."""
    return np.array([[0, 1, 0], [0, 0, 1], [0, 0, 0]])


def _orthonormal_noise(n_samples, n_vars, random_state):
    """Centered noise columns with unit variance and exactly zero sample correlation."""
    rng = np.random.RandomState(random_state)
    raw = rng.normal(size=(n_samples, n_vars))
    raw -= raw.mean(axis=0)
    q, _ = np.linalg.qr(raw)
    return q * np.sqrt(n_samples)


@pytest.fixture
def chain_data(random_state):
    """100 samples of the chain X1 -> X2 -> X3 with sample correlations 0.96, 0.96, 0.9216.

    The noise is orthogonalized so the sample statistics match the population
    ones exactly.
    """
    e = _orthonormal_noise(100, 3, random_state)
    x1 = e[:, 0]
    x2 = 0.96 * x1 + 0.28 * e[:, 1]
    x3 = 0.96 * x2 + 0.28 * e[:, 2]
    df = pd.DataFrame({"X1": x1, "X2": x2, "X3": x3})
    return SparsebnData(data=df, data_type="continuous")


@pytest.fixture
def independent_data(random_state):
    """Three uncorrelated continuous variables."""
    e = _orthonormal_noise(50, 3, random_state)
    return SparsebnData(
        data=pd.DataFrame(e, columns=["A", "B", "C"]), data_type="continuous"
    )


@pytest.fixture
def binary_chain_data(chain_adjacency, random_state):
    """Binary data from the chain X1 -> X2 -> X3 with 10% flips."""
    return generate_discrete_data(
        chain_adjacency,
        n_samples=500,
        n_levels=2,
        flip_probability=0.1,
        random_state=random_state,
    )


@pytest.fixture
def multinomial_data(random_state):
    """Three-level data with a single edge A -> B and an independent C."""
    adjacency = np.array([[0, 1, 0], [0, 0, 0], [0, 0, 0]])
    return generate_discrete_data(
        adjacency,
        n_samples=400,
        n_levels=3,
        flip_probability=0.1,
        variable_names=["A", "B", "C"],
        random_state=random_state,
    )


@pytest.fixture
def data_with_missing():
    """Continuous data with exactly three missing entries."""
    df = pd.DataFrame(
        {
            "X1": [1.0, np.nan, 3.0, 4.0, 5.0],
            "X2": [2.0, 1.0, np.nan, 0.5, 1.5],
            "X3": [0.1, 0.2, 0.3, np.nan, 0.5],
        }
    )
    with pytest.warns(UserWarning, match="missing values"):
        return SparsebnData(data=df, data_type="continuous")
