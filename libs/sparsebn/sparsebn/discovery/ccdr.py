"""Concave penalized coordinate descent (CCDr) for Gaussian DAGs.

Each node ``j`` is modelled as a linear regression on its parents. The
parameters are rewritten as ``rho_j = 1 / sigma_j`` and
``phi_ij = beta_ij / sigma_j``, which makes the node loss

    L_j = -log(rho_j) + 1/2 * (rho_j**2 S_jj - 2 rho_j sum_k phi_kj S_kj + phi_j' S phi_j)

convex in ``(phi, rho)`` for a fixed graph. Sparsity comes from the MCP
penalty (or L1 when the concavity is negative) on ``phi``; the graph is
searched one pair of nodes at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from ..core.base import DataType, DataValidationError, SparsebnData
from .base import BasePathAlgorithm, Direction, SparsebnFit
from .utils import mcp_penalty, mcp_threshold

logger = logging.getLogger(__name__)

__all__ = ["CCDrAlgorithm"]


class CCDrAlgorithm(BasePathAlgorithm):
    """CCDr solver for continuous (gaussian) data.

    Columns are standardized before fitting, so ``edge_weights`` of the
    returned estimates are coefficients on the standardized scale. Rows that
    intervene on a node are left out of that node's regression.
    """

    algorithm_name = "ccdr"
    lambdas_ratio = 0.1
    lambdas_scale = "linear"

    def __init__(
        self,
        lambdas: Optional[Iterable[float]] = None,
        lambdas_length: int = 20,
        whitelist: Optional[Iterable[Any]] = None,
        blacklist: Optional[Iterable[Any]] = None,
        error_tol: float = 1e-4,
        max_iters: Optional[int] = None,
        alpha: Optional[float] = None,
        gamma: float = 2.0,
        verbose: bool = False,
        inner_max_iters: int = 1000,
    ) -> None:
        """Initialize CCDr.

        Args:
            gamma: MCP concavity; a negative value selects the L1 penalty
            inner_max_iters: Cap on the alternating phi/rho updates of one block

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
        if gamma == 0:
            raise ValueError("gamma must be positive (MCP) or negative (L1), not zero")
        self.gamma = gamma
        self.inner_max_iters = inner_max_iters

        self._gram: list[Optional[NDArray[np.float64]]] = []
        self._phi: NDArray[np.float64] = np.zeros((0, 0))
        self._rho: NDArray[np.float64] = np.zeros(0)

    def _prepare(self, data: SparsebnData) -> None:
        if data.data_type != DataType.CONTINUOUS:
            raise DataValidationError("CCDr requires continuous data")

        X = data.to_numpy()
        std = X.std(axis=0)
        X = (X - X.mean(axis=0)) / std

        mask = data.intervention_mask()
        self._gram = []
        for j in range(self.n_vars):
            rows = ~mask[:, j]
            if not rows.any():
                self._gram.append(None)
                continue
            Xj = X[rows]
            self._gram.append(Xj.T @ Xj / rows.sum())

        self._phi = np.zeros((self.n_vars, self.n_vars))
        self._rho = np.array(
            [1.0 / np.sqrt(S[j, j]) if S is not None else 1.0 for j, S in enumerate(self._gram)]
        )
        self._reset_graph()

    def _lambda_max(self) -> float:
        return float(np.sqrt(self.n_obs))

    def _algorithm_parameters(self, max_iters: int, alpha: float) -> dict[str, Any]:
        params = super()._algorithm_parameters(max_iters, alpha)
        params["gamma"] = self.gamma
        return params

    # Block updates

    def _penalty_level(self, i: int, j: int, lam: float) -> float:
        if (i, j) in self._whitelist:
            return 0.0
        return lam / np.sqrt(self.n_obs)

    def _refit_scale(self, node: int, drop: int) -> tuple[float, float]:
        """Optimal ``rho`` and loss of ``node`` once the edge ``drop -> node`` is removed."""
        S = self._gram[node]
        if S is None:
            return float(self._rho[node]), 0.0

        col = self._phi[:, node].copy()
        col[drop] = 0.0
        c = float(col @ S[:, node])
        s = float(S[node, node])
        rho = (c + np.sqrt(c * c + 4.0 * s)) / (2.0 * s)
        loss = -np.log(rho) + 0.5 * (rho * rho * s - 2.0 * rho * c + float(col @ S @ col))
        return float(rho), float(loss)

    def _solve_direction(self, parent: int, child: int, lam: float) -> tuple[float, float, float]:
        """Jointly fit ``phi[parent, child]`` and ``rho[child]``.

        Returns:
            The coefficient, the scale and the penalized loss of ``child``
        """
        S = self._gram[child]
        col = self._phi[:, child].copy()
        col[parent] = 0.0

        a = float(S[parent, parent])
        t = float(S[parent, child])
        s = float(S[child, child])
        v = float(col @ S[:, parent])
        c0 = float(col @ S[:, child])
        q0 = float(col @ S @ col)
        penalty = self._penalty_level(parent, child, lam)
        tol = self.error_tol * 1e-3

        x = float(self._phi[parent, child])
        rho = float(self._rho[child])
        for _ in range(self.inner_max_iters):
            x_new = mcp_threshold(rho * t - v, a, penalty, self.gamma)
            c = c0 + x_new * t
            rho_new = (c + np.sqrt(c * c + 4.0 * s)) / (2.0 * s)
            delta = max(abs(x_new - x), abs(rho_new - rho))
            x, rho = float(x_new), float(rho_new)
            if delta < tol:
                break

        c = c0 + x * t
        loss = -np.log(rho) + 0.5 * (rho * rho * s - 2.0 * rho * c + q0 + 2.0 * x * v + a * x * x)
        loss += mcp_penalty(x, penalty, self.gamma)
        return x, rho, float(loss)

    def _propose(self, i: int, j: int, direction: Direction, lam: float) -> tuple[float, Any]:
        if direction is None:
            rho_i, loss_i = self._refit_scale(i, drop=j)
            rho_j, loss_j = self._refit_scale(j, drop=i)
            return loss_i + loss_j, (0.0, 0.0, rho_i, rho_j)

        parent, child = direction
        x, rho_child, loss_child = self._solve_direction(parent, child, lam)
        rho_parent, loss_parent = self._refit_scale(parent, drop=child)
        if direction == (i, j):
            proposal = (x, 0.0, rho_parent, rho_child)
        else:
            proposal = (0.0, x, rho_child, rho_parent)
        return loss_child + loss_parent, proposal

    def _accept(self, i: int, j: int, proposal: Any) -> tuple[float, bool, bool]:
        phi_ij, phi_ji, rho_i, rho_j = proposal
        change = max(
            abs(phi_ij - self._phi[i, j]),
            abs(phi_ji - self._phi[j, i]),
            abs(rho_i - self._rho[i]),
            abs(rho_j - self._rho[j]),
        )
        self._phi[i, j] = phi_ij
        self._phi[j, i] = phi_ji
        self._rho[i] = rho_i
        self._rho[j] = rho_j
        return float(change), phi_ij != 0.0, phi_ji != 0.0

    def _make_fit(self, lam: float) -> SparsebnFit:
        adjacency = self._adjacency()
        coefs = self._phi / self._rho[np.newaxis, :] * adjacency
        return SparsebnFit(
            adjacency_matrix=adjacency,
            variable_names=self.variable_names,
            edge_weights=coefs,
            lambda_=lam,
            n_obs=self.n_obs,
        )
