"""Base classes and data structures for DAG solution paths.

This module provides the estimate and solution path containers returned by
every solver, and the abstract solver that runs a regularization path with
shared validation, edge constraints and acyclicity bookkeeping.
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

import networkx as nx
import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator

from ..core.base import (
    DataValidationError,
    SolverError,
    SparsebnData,
    SparsebnError,
)
from ..core.defaults import default_alpha, default_max_iters
from ..data.validation import check_missing_values
from .utils import (
    check_edge_constraints,
    generate_lambdas,
    normalize_edge_list,
    validate_lambdas,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SparsebnFit",
    "SparsebnPath",
    "BasePathAlgorithm",
]


class SparsebnFit(BaseModel):
    """One DAG estimate of a solution path, at a single value of lambda."""

    adjacency_matrix: NDArray[Any] = Field(
        ..., description="Adjacency matrix, [i, j] == 1 meaning i -> j"
    )
    variable_names: list[str] = Field(
        ..., description="Names of variables corresponding to matrix indices"
    )
    edge_weights: Optional[NDArray[Any]] = Field(
        default=None, description="Edge strengths on the estimation scale"
    )
    lambda_: float = Field(..., gt=0.0, description="Regularization parameter")
    n_obs: int = Field(..., ge=1, description="Number of samples used")
    time: Optional[float] = Field(default=None, description="Seconds spent on this estimate")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("adjacency_matrix")
    @classmethod
    def validate_adjacency_matrix(cls, v: NDArray[Any]) -> NDArray[Any]:
        """Validate adjacency matrix is square and contains valid values."""
        if v.ndim != 2:
            raise ValueError("Adjacency matrix must be 2-dimensional")
        if v.shape[0] != v.shape[1]:
            raise ValueError("Adjacency matrix must be square")
        if not np.all(np.isin(v, [0, 1])):
            raise ValueError("Adjacency matrix must contain only 0s and 1s")
        return v.astype(int)

    @field_validator("variable_names")
    @classmethod
    def validate_variable_names(cls, v: list[str]) -> list[str]:
        """Validate variable names are unique and non-empty."""
        if len(v) == 0:
            raise ValueError("Variable names cannot be empty")
        if len(set(v)) != len(v):
            raise ValueError("Variable names must be unique")
        return v

    def __init__(self, **data: Any) -> None:
        """Initialize the estimate with validation."""
        super().__init__(**data)

        n_vars = len(self.variable_names)
        if self.adjacency_matrix.shape != (n_vars, n_vars):
            raise ValueError(
                f"Adjacency matrix shape {self.adjacency_matrix.shape} "
                f"doesn't match number of variables {n_vars}"
            )

        if not self.is_acyclic():
            raise ValueError("Graph contains cycles - not a valid DAG")

        if self.edge_weights is not None:
            if self.edge_weights.shape != self.adjacency_matrix.shape:
                raise ValueError("Edge weights shape must match adjacency matrix")

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic (DAG property)."""
        G = nx.from_numpy_array(self.adjacency_matrix, create_using=nx.DiGraph)
        return nx.is_directed_acyclic_graph(G)

    @property
    def n_variables(self) -> int:
        """Number of variables in the DAG."""
        return len(self.variable_names)

    @property
    def n_edges(self) -> int:
        """Number of edges in the DAG."""
        return int(np.sum(self.adjacency_matrix))

    @property
    def edge_density(self) -> float:
        """Edge density of the DAG (edges / possible_edges)."""
        n = self.n_variables
        max_edges = n * (n - 1)
        return self.n_edges / max_edges if max_edges > 0 else 0.0

    def _index(self, variable: str | int) -> int:
        if isinstance(variable, str):
            if variable not in self.variable_names:
                raise ValueError(f"Variable '{variable}' not found in DAG")
            return self.variable_names.index(variable)
        return variable

    def get_parents(self, variable: str | int) -> list[str]:
        """Get parent variables of a given variable."""
        var_idx = self._index(variable)
        parent_indices = np.where(self.adjacency_matrix[:, var_idx] == 1)[0]
        return [self.variable_names[i] for i in parent_indices]

    def get_children(self, variable: str | int) -> list[str]:
        """Get child variables of a given variable."""
        var_idx = self._index(variable)
        child_indices = np.where(self.adjacency_matrix[var_idx, :] == 1)[0]
        return [self.variable_names[i] for i in child_indices]

    def has_edge(self, from_var: str | int, to_var: str | int) -> bool:
        """Check if there's an edge from one variable to another."""
        return bool(self.adjacency_matrix[self._index(from_var), self._index(to_var)])

    def edge_list(self) -> list[tuple[str, str]]:
        """Edges as ``(parent, child)`` name pairs."""
        return [
            (self.variable_names[i], self.variable_names[j])
            for i, j in zip(*np.nonzero(self.adjacency_matrix))
        ]

    def to_networkx(self) -> nx.DiGraph:
        """Convert to NetworkX directed graph."""
        G = nx.DiGraph()
        G.add_nodes_from(self.variable_names)
        for i, j in zip(*np.nonzero(self.adjacency_matrix)):
            attrs = {}
            if self.edge_weights is not None:
                attrs["weight"] = float(self.edge_weights[i, j])
            G.add_edge(self.variable_names[i], self.variable_names[j], **attrs)
        return G

    def structural_hamming_distance(self, other: SparsebnFit | NDArray[Any]) -> int:
        """Compute structural Hamming distance to another DAG."""
        other_adj = (
            other.adjacency_matrix if isinstance(other, SparsebnFit) else np.asarray(other)
        )
        if other_adj.shape != self.adjacency_matrix.shape:
            raise ValueError("DAGs must have same number of variables")

        return int(np.sum(self.adjacency_matrix != other_adj))


@dataclass(frozen=True)
class SparsebnPath:
    """Solution path: DAG estimates ordered by decreasing lambda.

    Produced wholesale by a solver and not modified afterwards.
    """

    fits: tuple[SparsebnFit, ...]
    algorithm_name: str
    algorithm_parameters: dict[str, Any] = field(default_factory=dict)
    computation_time: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate the path after initialization."""
        object.__setattr__(self, "fits", tuple(self.fits))
        if not self.fits:
            raise ValueError("A solution path needs at least one estimate")

        names = self.fits[0].variable_names
        for fit in self.fits:
            if fit.variable_names != names:
                raise ValueError("All estimates must share the same variables")

        if np.any(np.diff(self.lambdas) >= 0):
            raise ValueError("Estimates must be ordered by strictly decreasing lambda")

    def __len__(self) -> int:
        return len(self.fits)

    def __getitem__(self, index: int) -> SparsebnFit:
        return self.fits[index]

    def __iter__(self) -> Iterator[SparsebnFit]:
        return iter(self.fits)

    @property
    def lambdas(self) -> NDArray[np.float64]:
        return np.array([fit.lambda_ for fit in self.fits])

    @property
    def variable_names(self) -> list[str]:
        return self.fits[0].variable_names

    def num_edges(self) -> list[int]:
        """Number of edges of each estimate."""
        return [fit.n_edges for fit in self.fits]

    def select(
        self,
        index: Optional[int] = None,
        lambda_: Optional[float] = None,
        edges: Optional[int] = None,
    ) -> SparsebnFit:
        """Pick one estimate from the path.

        Exactly one criterion must be given:

        Args:
            index: Position in the path
            lambda_: The estimate whose lambda is closest to this value
            edges: The sparsest estimate with at least this many edges, or the
                densest estimate when none has that many

        Returns:
            The selected SparsebnFit
        """
        given = [arg is not None for arg in (index, lambda_, edges)]
        if sum(given) != 1:
            raise ValueError("Specify exactly one of index, lambda_ or edges")

        if index is not None:
            return self.fits[index]
        if lambda_ is not None:
            return self.fits[int(np.argmin(np.abs(self.lambdas - lambda_)))]

        for fit in self.fits:
            if fit.n_edges >= edges:
                return fit
        return self.fits[-1]

    @property
    def summary_stats(self) -> dict[str, Any]:
        """Get summary statistics of the path."""
        return {
            "algorithm": self.algorithm_name,
            "n_estimates": len(self.fits),
            "n_variables": self.fits[0].n_variables,
            "n_obs": self.fits[0].n_obs,
            "lambda_range": (float(self.lambdas[0]), float(self.lambdas[-1])),
            "n_edges": self.num_edges(),
            "computation_time": self.computation_time,
        }


Direction = Optional[tuple[int, int]]


class BasePathAlgorithm(abc.ABC):
    """Abstract base class for regularization-path DAG solvers.

    Subclasses fit one estimate per lambda with block coordinate descent over
    pairs of nodes. For each pair the solver proposes a fit under every
    feasible orientation and keeps the one with the lowest penalized loss.
    This class runs the path and the sweeps, owns the edge constraints and
    keeps the current graph so that no block update can close a cycle.
    """

    algorithm_name = "base"
    lambdas_ratio = 0.1
    lambdas_scale = "linear"
    tie_tolerance = 1e-10

    def __init__(
        self,
        lambdas: Optional[Iterable[float]] = None,
        lambdas_length: int = 20,
        whitelist: Optional[Iterable[Any]] = None,
        blacklist: Optional[Iterable[Any]] = None,
        error_tol: float = 1e-4,
        max_iters: Optional[int] = None,
        alpha: Optional[float] = None,
        verbose: bool = False,
    ) -> None:
        """Initialize the solver.

        Args:
            lambdas: Explicit decreasing grid of regularization parameters
            lambdas_length: Length of the default grid when ``lambdas`` is not given
            whitelist: Edges present in every estimate, by name or 0-based index
            blacklist: Edges absent from every estimate, by name or 0-based index
            error_tol: Convergence tolerance on parameter changes
            max_iters: Maximum sweeps per lambda, defaults to ``default_max_iters(p)``
            alpha: Stop the path after an estimate with more than ``alpha * p``
                edges, defaults to ``default_alpha()``; 0 stops at the first
                non-empty estimate
            verbose: Log progress at INFO instead of DEBUG
        """
        if error_tol <= 0:
            raise ValueError("error_tol must be positive")
        if lambdas_length < 1:
            raise ValueError("lambdas_length must be at least 1")
        if max_iters is not None and max_iters < 1:
            raise ValueError("max_iters must be at least 1")
        if alpha is not None and alpha < 0:
            raise ValueError("alpha must be non-negative")

        self.lambdas = lambdas
        self.lambdas_length = lambdas_length
        self.whitelist = whitelist
        self.blacklist = blacklist
        self.error_tol = error_tol
        self.max_iters = max_iters
        self.alpha = alpha
        self.verbose = verbose

        # Per-run state
        self.variable_names: list[str] = []
        self.n_vars = 0
        self.n_obs = 0
        self._whitelist: set[tuple[int, int]] = set()
        self._blacklist: set[tuple[int, int]] = set()
        self._rows_per_node: NDArray[np.int_] = np.zeros(0, dtype=int)
        self._graph = nx.DiGraph()

    @abc.abstractmethod
    def _prepare(self, data: SparsebnData) -> None:
        """Precompute sufficient statistics and reset the parameters."""
        pass

    @abc.abstractmethod
    def _lambda_max(self) -> float:
        """Largest lambda of the default grid."""
        pass

    @abc.abstractmethod
    def _propose(self, i: int, j: int, direction: Direction, lam: float) -> tuple[float, Any]:
        """Fit the block (i, j) under one orientation without committing it.

        Args:
            i: First node of the pair
            j: Second node of the pair, ``j > i``
            direction: ``(parent, child)`` allowed to carry an edge, or None
                when neither direction may
            lam: Regularization parameter

        Returns:
            Penalized loss of the two nodes and an opaque proposal for ``_accept``
        """
        pass

    @abc.abstractmethod
    def _accept(self, i: int, j: int, proposal: Any) -> tuple[float, bool, bool]:
        """Commit a proposal.

        Returns:
            Largest absolute parameter change, and whether ``i -> j`` and
            ``j -> i`` have nonzero coefficients afterwards
        """
        pass

    @abc.abstractmethod
    def _make_fit(self, lam: float) -> SparsebnFit:
        """Build the estimate for the current parameters."""
        pass

    def _before_lambda(self, index: int) -> None:
        """Hook run before fitting the ``index``-th lambda of a path."""
        pass

    def _log(self, msg: str, *args: Any) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)

    def run(self, data: SparsebnData) -> SparsebnPath:
        """Compute the solution path for a dataset.

        Args:
            data: Dataset with integer intervention indices

        Returns:
            SparsebnPath ordered by decreasing lambda

        Raises:
            DataIntegrityError: If the data has missing values
            DataValidationError: If the data or edge constraints are unusable
            SolverError: If the optimization fails numerically
        """
        self._validate_data(data)

        self.variable_names = data.variable_names
        self.n_vars = data.n_variables
        self.n_obs = data.n_obs
        self._rows_per_node = (~data.intervention_mask()).sum(axis=0)
        self._whitelist = normalize_edge_list(self.whitelist, self.variable_names, "whitelist")
        self._blacklist = normalize_edge_list(self.blacklist, self.variable_names, "blacklist")
        check_edge_constraints(self._whitelist, self._blacklist, self.variable_names)
        self._check_intervened_nodes()

        max_iters = self.max_iters or default_max_iters(self.n_vars)
        alpha = self.alpha if self.alpha is not None else default_alpha()
        max_edges = alpha * self.n_vars

        start_time = time.time()
        try:
            self._prepare(data)
            lambdas = self._resolve_lambdas()
            fits = self._solve_path(lambdas, max_iters, max_edges)
        except SparsebnError:
            raise
        except (ArithmeticError, ValueError, np.linalg.LinAlgError) as e:
            raise SolverError(f"Failed to compute the solution path: {str(e)}") from e
        computation_time = time.time() - start_time

        self._log(
            "%s computed %d estimates for %d variables in %.2fs",
            self.algorithm_name,
            len(fits),
            self.n_vars,
            computation_time,
        )

        return SparsebnPath(
            fits=tuple(fits),
            algorithm_name=self.algorithm_name,
            algorithm_parameters=self._algorithm_parameters(max_iters, alpha),
            computation_time=computation_time,
        )

    def _algorithm_parameters(self, max_iters: int, alpha: float) -> dict[str, Any]:
        return {
            "error_tol": self.error_tol,
            "max_iters": max_iters,
            "alpha": alpha,
            "whitelist": sorted(self._whitelist),
            "blacklist": sorted(self._blacklist),
        }

    def _solve_path(
        self, lambdas: NDArray[np.float64], max_iters: int, max_edges: float
    ) -> list[SparsebnFit]:
        fits = []
        for k, lam in enumerate(lambdas):
            fit_start = time.time()
            self._before_lambda(k)
            fit = self._fit_lambda(float(lam), max_iters)
            fit = fit.model_copy(update={"time": time.time() - fit_start})
            fits.append(fit)

            self._log(
                "lambda %d/%d = %.4f: %d edges",
                k + 1,
                len(lambdas),
                lam,
                fit.n_edges,
            )

            if fit.n_edges > max_edges:
                logger.info(
                    "Edge threshold met, terminating path with %d edges at lambda = %.4f",
                    fit.n_edges,
                    lam,
                )
                break
        return fits

    def _fit_lambda(self, lam: float, max_iters: int) -> SparsebnFit:
        """Run pairwise block sweeps at one lambda, warm started from the last fit."""
        for sweep in range(max_iters):
            max_change = 0.0
            for i in range(self.n_vars):
                for j in range(i + 1, self.n_vars):
                    max_change = max(max_change, self._update_pair(i, j, lam))
            if max_change < self.error_tol:
                logger.debug("Converged after %d sweeps at lambda = %.4f", sweep + 1, lam)
                break
        else:
            logger.debug(
                "Reached max_iters = %d at lambda = %.4f without converging", max_iters, lam
            )
        return self._make_fit(lam)

    def _update_pair(self, i: int, j: int, lam: float) -> float:
        """Refit the block (i, j) under its best feasible orientation."""
        if (i, j) in self._whitelist:
            candidates: list[Direction] = [(i, j)]
        elif (j, i) in self._whitelist:
            candidates = [(j, i)]
        else:
            candidates = [d for d in ((i, j), (j, i)) if self._direction_allowed(*d)]
            if not candidates:
                candidates = [None]

        if self._graph.has_edge(i, j):
            current: Direction = (i, j)
        elif self._graph.has_edge(j, i):
            current = (j, i)
        else:
            current = None

        proposals = {d: self._propose(i, j, d, lam) for d in candidates}
        best = min(loss for loss, _ in proposals.values())
        tied = [d for d in candidates if proposals[d][0] <= best + self.tie_tolerance]
        chosen = current if current in tied else tied[0]

        change, forward, backward = self._accept(i, j, proposals[chosen][1])
        self._set_edge(i, j, forward or (i, j) in self._whitelist)
        self._set_edge(j, i, backward or (j, i) in self._whitelist)
        return change

    def _resolve_lambdas(self) -> NDArray[np.float64]:
        if self.lambdas is not None:
            return validate_lambdas(self.lambdas)
        lambda_max = self._lambda_max()
        if not np.isfinite(lambda_max) or lambda_max <= 0:
            logger.warning(
                "Could not derive a positive lambda_max (%s), using 1.0", lambda_max
            )
            lambda_max = 1.0
        return generate_lambdas(
            lambda_max,
            self.lambdas_ratio,
            self.lambdas_length,
            scale=self.lambdas_scale,
        )

    def _validate_data(self, data: SparsebnData) -> None:
        """Validate input data for DAG estimation.

        Raises:
            DataIntegrityError: If the data has missing values
            DataValidationError: If validation fails
        """
        if not isinstance(data, SparsebnData):
            raise DataValidationError("Data must be a SparsebnData instance")

        check_missing_values(data)

        if data.n_variables < 2:
            raise DataValidationError("Need at least 2 variables for DAG estimation")

        if data.n_obs < 2:
            raise DataValidationError(
                f"Need at least 2 observations for DAG estimation, got {data.n_obs}"
            )

        constant = [col for col in data.variable_names if data.data[col].nunique() < 2]
        if constant:
            raise DataValidationError(f"Variables with a single value: {constant}")

        # Validates that every label has been resolved to an index
        data.intervention_mask()

    def _check_intervened_nodes(self) -> None:
        """Nodes intervened on in every row carry no information about their parents."""
        no_rows = [self.variable_names[j] for j in np.flatnonzero(self._rows_per_node == 0)]
        if not no_rows:
            return
        logger.warning("Variables %s are intervened on in every row and get no parents", no_rows)
        for i, j in self._whitelist:
            if self._rows_per_node[j] == 0:
                raise DataValidationError(
                    f"Whitelisted edge ({self.variable_names[i]}, {self.variable_names[j]}) "
                    f"points into a variable intervened on in every row"
                )

    # Graph bookkeeping shared by the block updates

    def _reset_graph(self) -> None:
        self._graph = nx.DiGraph()
        self._graph.add_nodes_from(range(self.n_vars))
        self._graph.add_edges_from(self._whitelist)

    def _set_edge(self, i: int, j: int, present: bool) -> None:
        if present:
            self._graph.add_edge(i, j)
        elif self._graph.has_edge(i, j):
            self._graph.remove_edge(i, j)

    def _direction_allowed(self, i: int, j: int) -> bool:
        """Whether ``i -> j`` may be present given everything but the pair (i, j)."""
        if (i, j) in self._blacklist or (j, i) in self._whitelist:
            return False
        if self._rows_per_node[j] == 0:
            return False

        removed = [(u, v) for u, v in ((i, j), (j, i)) if self._graph.has_edge(u, v)]
        self._graph.remove_edges_from(removed)
        try:
            return not nx.has_path(self._graph, j, i)
        finally:
            self._graph.add_edges_from(removed)

    def _adjacency(self) -> NDArray[np.int_]:
        adjacency = np.zeros((self.n_vars, self.n_vars), dtype=int)
        for i, j in self._graph.edges():
            adjacency[i, j] = 1
        return adjacency
