"""Group-penalized multi-logit coordinate descent for discrete DAGs.

Every node is modelled by a multinomial logistic regression on its parents.
A parent with ``r`` levels enters through ``r - 1`` indicator columns, and
the whole block of coefficients linking a parent to a child is penalized
together with a (weighted) group lasso, so edges enter and leave as units.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray
from scipy.special import logsumexp, softmax

from ..core.base import DataType, DataValidationError, SparsebnData
from .base import BasePathAlgorithm, Direction, SparsebnFit
from .utils import group_soft_threshold

logger = logging.getLogger(__name__)

__all__ = ["DiscreteCDAlgorithm"]


class DiscreteCDAlgorithm(BasePathAlgorithm):
    """Coordinate descent solver for discrete (binomial and multinomial) data.

    Block updates are proximal steps on a quadratic majorizer of the
    multinomial log-likelihood, with curvature bounded below by ``conv_lb``.
    The ``edge_weights`` of the returned estimates are the Frobenius norms of
    the coefficient blocks.

    With ``adaptive=True`` the path is computed twice: the second pass
    reweights each block by ``weight_scale / ||beta_ij||`` taken from the
    first pass at the same lambda.
    """

    algorithm_name = "discrete_cd"
    lambdas_ratio = 1e-3
    lambdas_scale = "log"

    def __init__(
        self,
        lambdas: Optional[Iterable[float]] = None,
        lambdas_length: int = 20,
        whitelist: Optional[Iterable[Any]] = None,
        blacklist: Optional[Iterable[Any]] = None,
        error_tol: float = 1e-4,
        max_iters: Optional[int] = None,
        alpha: Optional[float] = None,
        weight_scale: float = 1.0,
        conv_lb: float = 0.01,
        upperbound: float = 100.0,
        adaptive: bool = False,
        verbose: bool = False,
        inner_max_iters: int = 100,
    ) -> None:
        """Initialize the discrete solver.

        Args:
            weight_scale: Scale of the group penalty weights
            conv_lb: Lower bound on the curvature of the block majorizer
            upperbound: Truncation of adaptive weights, -1 for none
            adaptive: Run the adaptive second pass
            inner_max_iters: Cap on the proximal steps of one block

        See :class:`BasePathAlgorithm` for the remaining arguments.
        """
        super().__init__(
            lambdas=lambdas,
            lambdas_length=lambdas_length,
            whitelist=whitelist,
            blacklist=blacklist,
            error_tol=error_tol,
            max_iters=max_iters,
            alpha=alpha,
            verbose=verbose,
        )
        if weight_scale <= 0:
            raise ValueError("weight_scale must be positive")
        if conv_lb <= 0:
            raise ValueError("conv_lb must be positive")
        if upperbound <= 0 and upperbound != -1:
            raise ValueError("upperbound must be positive, or -1 for no truncation")

        self.weight_scale = weight_scale
        self.conv_lb = conv_lb
        self.upperbound = upperbound
        self.adaptive = adaptive
        self.inner_max_iters = inner_max_iters

        self._n_levels: list[int] = []
        self._rows: list[NDArray[np.int_]] = []
        self._targets: list[NDArray[np.int_]] = []
        self._onehot: list[NDArray[np.float64]] = []
        self._dummies: list[NDArray[np.float64]] = []
        self._beta: dict[tuple[int, int], NDArray[np.float64]] = {}
        self._intercept: list[NDArray[np.float64]] = []
        self._weights: NDArray[np.float64] = np.zeros((0, 0))
        self._first_pass_norms: Optional[list[NDArray[np.float64]]] = None

    def _prepare(self, data: SparsebnData) -> None:
        if data.data_type != DataType.DISCRETE:
            raise DataValidationError("Discrete coordinate descent requires discrete data")

        codes = data.to_codes()
        mask = data.intervention_mask()
        self._n_levels = data.n_levels

        self._rows = [np.flatnonzero(~mask[:, j]) for j in range(self.n_vars)]
        self._targets = [codes[rows, j] for j, rows in enumerate(self._rows)]
        self._onehot = [
            np.eye(self._n_levels[j])[target] for j, target in enumerate(self._targets)
        ]
        self._dummies = [
            (codes[:, [i]] == np.arange(1, self._n_levels[i])[np.newaxis, :]).astype(float)
            for i in range(self.n_vars)
        ]

        self._weights = np.full((self.n_vars, self.n_vars), float(self.weight_scale))
        self._first_pass_norms = None
        self._reset_parameters()

    def _reset_parameters(self) -> None:
        self._beta = {}
        self._intercept = []
        for j in range(self.n_vars):
            if len(self._rows[j]) == 0:
                self._intercept.append(np.zeros(self._n_levels[j]))
                continue
            freq = self._onehot[j].mean(axis=0)
            self._intercept.append(np.log(np.clip(freq, 1e-10, None)))
        self._reset_graph()

    def _lambda_max(self) -> float:
        """Smallest lambda at which every non-whitelisted block is zero."""
        lambda_max = 0.0
        for j in range(self.n_vars):
            n_j = len(self._rows[j])
            if n_j == 0:
                continue
            eta = np.broadcast_to(self._intercept[j], self._onehot[j].shape)
            residual = softmax(eta, axis=1) - self._onehot[j]
            for i in range(self.n_vars):
                if i == j or (i, j) in self._blacklist or (i, j) in self._whitelist:
                    continue
                grad = self._dummies[i][self._rows[j]].T @ residual / n_j
                lambda_max = max(lambda_max, float(np.linalg.norm(grad)) / self._weights[i, j])
        return lambda_max

    def _algorithm_parameters(self, max_iters: int, alpha: float) -> dict[str, Any]:
        params = super()._algorithm_parameters(max_iters, alpha)
        params.update(
            weight_scale=self.weight_scale,
            conv_lb=self.conv_lb,
            upperbound=self.upperbound,
            adaptive=self.adaptive,
        )
        return params

    # Adaptive path

    def _solve_path(
        self, lambdas: NDArray[np.float64], max_iters: int, max_edges: float
    ) -> list[SparsebnFit]:
        fits = super()._solve_path(lambdas, max_iters, max_edges)
        if not self.adaptive:
            return fits

        self._log("Starting adaptive pass over %d lambdas", len(fits))
        self._first_pass_norms = [fit.edge_weights for fit in fits]
        self._reset_parameters()
        return super()._solve_path(lambdas[: len(fits)], max_iters, max_edges)

    def _before_lambda(self, index: int) -> None:
        if self._first_pass_norms is not None:
            self._weights = self._adaptive_weights(self._first_pass_norms[index])

    def _adaptive_weights(self, norms: NDArray[np.float64]) -> NDArray[np.float64]:
        with np.errstate(divide="ignore"):
            weights = self.weight_scale / norms
        if self.upperbound != -1:
            weights = np.minimum(weights, self.upperbound)
        return weights

    def _direction_allowed(self, i: int, j: int) -> bool:
        # Infinite adaptive weights exclude the edge
        return bool(np.isfinite(self._weights[i, j])) and super()._direction_allowed(i, j)

    # Block updates

    def _coefficients(self, i: int, j: int) -> NDArray[np.float64]:
        beta = self._beta.get((i, j))
        if beta is None:
            return np.zeros((self._n_levels[i] - 1, self._n_levels[j]))
        return beta

    def _offset(self, node: int, exclude: int) -> NDArray[np.float64]:
        """Linear predictor of ``node`` from every parent but ``exclude``, no intercept."""
        rows = self._rows[node]
        eta = np.zeros((len(rows), self._n_levels[node]))
        for (i, j), beta in self._beta.items():
            if j == node and i != exclude:
                eta += self._dummies[i][rows] @ beta
        return eta

    def _curvature(self, parent: int, child: int) -> float:
        D = self._dummies[parent][self._rows[child]]
        freq = float(D.mean(axis=0).max()) if D.shape[1] else 0.0
        return max(0.5 * freq, self.conv_lb)

    def _negative_loglik(self, eta: NDArray[np.float64], node: int) -> float:
        target = self._targets[node]
        picked = eta[np.arange(len(target)), target]
        return float(np.mean(logsumexp(eta, axis=1) - picked))

    def _solve_block(
        self, parent: int, child: int, lam: float, active: bool
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], float]:
        """Fit the block ``parent -> child`` and the intercept of ``child``.

        With ``active=False`` the block is held at zero and only the
        intercept is refitted.

        Returns:
            Coefficient block, intercept and penalized loss of ``child``
        """
        shape = (self._n_levels[parent] - 1, self._n_levels[child])
        n_rows = len(self._rows[child])
        if n_rows == 0:
            return np.zeros(shape), self._intercept[child], 0.0

        Y = self._onehot[child]
        D = self._dummies[parent][self._rows[child]]
        offset = self._offset(child, exclude=parent)
        weight = 0.0 if (parent, child) in self._whitelist else self._weights[parent, child]
        threshold = lam * weight
        h = self._curvature(parent, child)
        tol = self.error_tol * 1e-2

        beta = self._coefficients(parent, child).copy() if active else np.zeros(shape)
        intercept = self._intercept[child].copy()
        for _ in range(self.inner_max_iters):
            change = 0.0
            if active:
                residual = softmax(offset + D @ beta + intercept, axis=1) - Y
                grad = D.T @ residual / n_rows
                beta_new = group_soft_threshold(beta - grad / h, threshold / h)
                change = float(np.max(np.abs(beta_new - beta)))
                beta = beta_new

            residual = softmax(offset + D @ beta + intercept, axis=1) - Y
            step = 2.0 * residual.mean(axis=0)
            intercept = intercept - step
            change = max(change, float(np.max(np.abs(step))))
            if change < tol:
                break

        loss = self._negative_loglik(offset + D @ beta + intercept, child)
        if active:
            loss += threshold * float(np.linalg.norm(beta))
        return beta, intercept, loss

    def _propose(self, i: int, j: int, direction: Direction, lam: float) -> tuple[float, Any]:
        fit_ij = direction == (i, j)
        fit_ji = direction == (j, i)
        beta_ij, intercept_j, loss_j = self._solve_block(i, j, lam, active=fit_ij)
        beta_ji, intercept_i, loss_i = self._solve_block(j, i, lam, active=fit_ji)
        return loss_i + loss_j, (beta_ij, beta_ji, intercept_i, intercept_j)

    def _accept(self, i: int, j: int, proposal: Any) -> tuple[float, bool, bool]:
        beta_ij, beta_ji, intercept_i, intercept_j = proposal
        change = max(
            float(np.max(np.abs(beta_ij - self._coefficients(i, j)))),
            float(np.max(np.abs(beta_ji - self._coefficients(j, i)))),
            float(np.max(np.abs(intercept_i - self._intercept[i]))),
            float(np.max(np.abs(intercept_j - self._intercept[j]))),
        )
        self._intercept[i] = intercept_i
        self._intercept[j] = intercept_j

        present = []
        for key, beta in (((i, j), beta_ij), ((j, i), beta_ji)):
            if np.any(beta != 0):
                self._beta[key] = beta
                present.append(True)
            else:
                self._beta.pop(key, None)
                present.append(False)
        return change, present[0], present[1]

    def _make_fit(self, lam: float) -> SparsebnFit:
        adjacency = self._adjacency()
        norms = np.zeros((self.n_vars, self.n_vars))
        for (i, j), beta in self._beta.items():
            norms[i, j] = np.linalg.norm(beta)
        return SparsebnFit(
            adjacency_matrix=adjacency,
            variable_names=self.variable_names,
            edge_weights=norms * adjacency,
            lambda_=lam,
            n_obs=self.n_obs,
        )
