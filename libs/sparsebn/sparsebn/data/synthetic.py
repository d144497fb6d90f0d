"""Synthetic data generation from known DAGs.

These generators produce datasets with a known ground-truth structure for
examples, benchmarks and tests.
"""

from __future__ import annotations

from typing import Any, Optional

import networkx as nx
import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..core.base import DataType, SparsebnData

__all__ = [
    "random_dag",
    "generate_linear_sem_data",
    "generate_discrete_data",
]


def _topological_order(adjacency: NDArray[Any]) -> list[int]:
    G = nx.from_numpy_array(np.asarray(adjacency), create_using=nx.DiGraph)
    if not nx.is_directed_acyclic_graph(G):
        raise ValueError("Adjacency matrix contains cycles - not a valid DAG")
    return list(nx.topological_sort(G))


def _variable_names(n_vars: int, variable_names: Optional[list[str]]) -> list[str]:
    if variable_names is None:
        return [f"X{i + 1}" for i in range(n_vars)]
    if len(variable_names) != n_vars:
        raise ValueError(
            f"Got {len(variable_names)} variable names for {n_vars} variables"
        )
    return list(variable_names)


def random_dag(
    n_variables: int,
    n_edges: int,
    random_state: Optional[int] = None,
) -> NDArray[np.int_]:
    """Draw a random DAG as an upper-triangular adjacency under a random ordering.

    Args:
        n_variables: Number of nodes
        n_edges: Number of edges, at most ``p * (p - 1) / 2``
        random_state: Random seed

    Returns:
        0/1 adjacency matrix with ``[i, j] == 1`` meaning ``i -> j``
    """
    max_edges = n_variables * (n_variables - 1) // 2
    if not 0 <= n_edges <= max_edges:
        raise ValueError(f"n_edges must be between 0 and {max_edges}")

    if random_state is not None:
        np.random.seed(random_state)

    candidates = [(i, j) for i in range(n_variables) for j in range(i + 1, n_variables)]
    chosen = np.random.choice(len(candidates), size=n_edges, replace=False)
    order = np.random.permutation(n_variables)

    adjacency = np.zeros((n_variables, n_variables), dtype=int)
    for k in chosen:
        i, j = candidates[k]
        adjacency[order[i], order[j]] = 1
    return adjacency


def generate_linear_sem_data(
    adjacency: NDArray[Any],
    n_samples: int = 1000,
    noise_std: float = 1.0,
    edge_weight_range: tuple[float, float] = (0.5, 2.0),
    edge_weights: Optional[NDArray[Any]] = None,
    variable_names: Optional[list[str]] = None,
    random_state: Optional[int] = None,
) -> SparsebnData:
    """Generate continuous data from a linear Gaussian structural equation model.

    Args:
        adjacency: DAG adjacency matrix, ``[i, j] == 1`` meaning ``i -> j``
        n_samples: Number of samples to generate
        noise_std: Standard deviation of the noise terms
        edge_weight_range: Range of absolute edge weights when ``edge_weights`` is not given
        edge_weights: Explicit coefficient matrix, same shape as ``adjacency``
        variable_names: Column names, defaults to ``X1..Xp``
        random_state: Random seed

    Returns:
        Continuous SparsebnData
    """
    adjacency = np.asarray(adjacency)
    n_vars = adjacency.shape[0]
    names = _variable_names(n_vars, variable_names)
    order = _topological_order(adjacency)

    if random_state is not None:
        np.random.seed(random_state)

    if edge_weights is None:
        edge_weights = np.zeros((n_vars, n_vars))
        for i, j in zip(*np.nonzero(adjacency)):
            weight = np.random.uniform(edge_weight_range[0], edge_weight_range[1])
            if np.random.random() < 0.5:
                weight *= -1
            edge_weights[i, j] = weight
    else:
        edge_weights = np.asarray(edge_weights, dtype=float) * (adjacency != 0)

    values = np.zeros((n_samples, n_vars))
    for j in order:
        parents = np.nonzero(adjacency[:, j])[0]
        noise = np.random.normal(0, noise_std, n_samples)
        values[:, j] = values[:, parents] @ edge_weights[parents, j] + noise

    return SparsebnData(
        data=pd.DataFrame(values, columns=names),
        data_type=DataType.CONTINUOUS,
    )


def generate_discrete_data(
    adjacency: NDArray[Any],
    n_samples: int = 1000,
    n_levels: int | list[int] = 2,
    flip_probability: float = 0.1,
    variable_names: Optional[list[str]] = None,
    random_state: Optional[int] = None,
) -> SparsebnData:
    """Generate discrete data where each node copies a function of its parents.

    A node with parents takes ``sum(parent values) mod r`` and is replaced by a
    uniformly drawn level with probability ``flip_probability``. Root nodes
    are uniform over their levels.

    Args:
        adjacency: DAG adjacency matrix, ``[i, j] == 1`` meaning ``i -> j``
        n_samples: Number of samples to generate
        n_levels: Levels per variable, shared or one per variable
        flip_probability: Probability of replacing the deterministic value
        variable_names: Column names, defaults to ``X1..Xp``
        random_state: Random seed

    Returns:
        Discrete SparsebnData with levels ``0..r-1``
    """
    adjacency = np.asarray(adjacency)
    n_vars = adjacency.shape[0]
    names = _variable_names(n_vars, variable_names)
    order = _topological_order(adjacency)

    if isinstance(n_levels, int):
        n_levels = [n_levels] * n_vars
    if len(n_levels) != n_vars or min(n_levels) < 2:
        raise ValueError("n_levels must give at least 2 levels for every variable")
    if not 0 <= flip_probability <= 1:
        raise ValueError("flip_probability must be between 0 and 1")

    if random_state is not None:
        np.random.seed(random_state)

    values = np.zeros((n_samples, n_vars), dtype=int)
    for j in order:
        r = n_levels[j]
        parents = np.nonzero(adjacency[:, j])[0]
        uniform = np.random.randint(0, r, n_samples)
        if len(parents) == 0:
            values[:, j] = uniform
            continue
        deterministic = values[:, parents].sum(axis=1) % r
        flip = np.random.random(n_samples) < flip_probability
        values[:, j] = np.where(flip, uniform, deterministic)

    return SparsebnData(
        data=pd.DataFrame(values, columns=names),
        data_type=DataType.DISCRETE,
        levels=[list(range(r)) for r in n_levels],
    )
