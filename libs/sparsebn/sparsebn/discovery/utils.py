"""Utility functions shared by the DAG solvers.

This module provides regularization grids, edge-constraint parsing and the
penalty functions used inside coordinate descent.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Literal, Optional

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from ..core.base import DataValidationError

__all__ = [
    "generate_lambdas",
    "validate_lambdas",
    "normalize_edge_list",
    "check_edge_constraints",
    "mcp_penalty",
    "mcp_threshold",
    "group_soft_threshold",
]


def generate_lambdas(
    lambda_max: float,
    lambdas_ratio: float = 0.1,
    lambdas_length: int = 20,
    scale: Literal["linear", "log"] = "linear",
) -> NDArray[np.float64]:
    """Generate a decreasing grid of regularization parameters.

    Args:
        lambda_max: First (largest) value of the grid
        lambdas_ratio: Ratio of the last value to the first
        lambdas_length: Number of values
        scale: Spacing of the grid, 'linear' or 'log'

    Returns:
        Array of ``lambdas_length`` values from ``lambda_max`` down to
        ``lambda_max * lambdas_ratio``
    """
    if lambda_max <= 0:
        raise ValueError("lambda_max must be positive")
    if not 0 < lambdas_ratio < 1:
        raise ValueError("lambdas_ratio must be between 0 and 1")
    if lambdas_length < 1:
        raise ValueError("lambdas_length must be at least 1")

    lambda_min = lambda_max * lambdas_ratio
    if scale == "linear":
        return np.linspace(lambda_max, lambda_min, lambdas_length)
    if scale == "log":
        return np.exp(np.linspace(np.log(lambda_max), np.log(lambda_min), lambdas_length))
    raise ValueError(f"Unknown scale: {scale}")


def validate_lambdas(lambdas: Iterable[float]) -> NDArray[np.float64]:
    """Check a user supplied grid is positive and strictly decreasing."""
    grid = np.asarray(list(lambdas), dtype=float)
    if grid.ndim != 1 or grid.size == 0:
        raise DataValidationError("lambdas must be a non-empty sequence of numbers")
    if not np.all(np.isfinite(grid)) or np.any(grid <= 0):
        raise DataValidationError("lambdas must be positive and finite")
    if np.any(np.diff(grid) >= 0):
        raise DataValidationError("lambdas must be strictly decreasing")
    return grid


def normalize_edge_list(
    edges: Optional[Iterable[Any]],
    variable_names: list[str],
    list_name: str = "edge list",
) -> set[tuple[int, int]]:
    """Convert an edge list given by names or 0-based indices to index pairs.

    Args:
        edges: Iterable of ``(from, to)`` pairs or a ``(k, 2)`` array
        variable_names: Names of the variables in column order
        list_name: Name used in error messages

    Returns:
        Set of ``(from_index, to_index)`` tuples
    """
    if edges is None:
        return set()

    n_vars = len(variable_names)
    index_of = {name: k for k, name in enumerate(variable_names)}

    def to_index(node: Any) -> int:
        if isinstance(node, str):
            if node not in index_of:
                raise DataValidationError(
                    f"Unknown variable '{node}' in {list_name}"
                )
            return index_of[node]
        if isinstance(node, (int, np.integer)) and not isinstance(node, bool):
            if not 0 <= int(node) < n_vars:
                raise DataValidationError(
                    f"Node index {node} in {list_name} is out of range for {n_vars} variables"
                )
            return int(node)
        raise DataValidationError(
            f"Nodes in {list_name} must be names or integer indices, got {node!r}"
        )

    if not isinstance(edges, np.ndarray):
        edges = list(edges)
    rows = np.asarray(edges, dtype=object)
    if rows.size == 0:
        return set()
    if rows.ndim != 2 or rows.shape[1] != 2:
        raise DataValidationError(
            f"{list_name} must be a sequence of (from, to) pairs"
        )

    pairs = set()
    for edge in rows:
        i, j = to_index(edge[0]), to_index(edge[1])
        if i == j:
            raise DataValidationError(
                f"Self loop on '{variable_names[i]}' in {list_name}"
            )
        pairs.add((i, j))
    return pairs


def check_edge_constraints(
    whitelist: set[tuple[int, int]],
    blacklist: set[tuple[int, int]],
    variable_names: list[str],
) -> None:
    """Check whitelist and blacklist are compatible with a DAG.

    Raises:
        DataValidationError: If an edge is in both lists or the whitelist has a cycle
    """
    overlap = whitelist & blacklist
    if overlap:
        named = sorted((variable_names[i], variable_names[j]) for i, j in overlap)
        raise DataValidationError(
            f"Edges cannot be both whitelisted and blacklisted: {named}"
        )

    G = nx.DiGraph()
    G.add_nodes_from(range(len(variable_names)))
    G.add_edges_from(whitelist)
    if not nx.is_directed_acyclic_graph(G):
        raise DataValidationError("Whitelisted edges contain a cycle")


def mcp_penalty(value: float, lam: float, gamma: float) -> float:
    """Minimax concave penalty of ``|value|``; L1 when ``gamma < 0``."""
    t = abs(value)
    if gamma < 0:
        return lam * t
    if t <= gamma * lam:
        return lam * t - t * t / (2.0 * gamma)
    return 0.5 * gamma * lam * lam


def mcp_threshold(b: float, a: float, lam: float, gamma: float) -> float:
    """Minimize ``a/2 * x**2 - b * x + mcp_penalty(x, lam, gamma)`` over ``x``.

    Args:
        b: Linear coefficient (partial correlation with the residual)
        a: Quadratic coefficient, positive
        lam: Penalty level
        gamma: MCP concavity; negative selects L1

    Returns:
        The thresholded coordinate value
    """
    soft = np.sign(b) * max(abs(b) - lam, 0.0)
    if gamma < 0:
        return soft / a

    if a * gamma > 1.0:
        if abs(b) <= a * gamma * lam:
            return soft / (a - 1.0 / gamma)
        return b / a

    # Non-convex univariate problem: the minimum is at 0 or at the unpenalized value
    unpenalized = b / a
    objective = 0.5 * a * unpenalized**2 - b * unpenalized + mcp_penalty(
        unpenalized, lam, gamma
    )
    return unpenalized if objective < 0.0 else 0.0


def group_soft_threshold(u: NDArray[Any], threshold: float) -> NDArray[Any]:
    """Shrink a coefficient block towards zero by ``threshold`` in Frobenius norm."""
    norm = float(np.linalg.norm(u))
    if norm <= threshold:
        return np.zeros_like(u)
    return (1.0 - threshold / norm) * u
