"""Parameter estimation for a fixed DAG and the implied covariance structure.

Given an estimated structure, every node is regressed on its parents by
ordinary least squares. The coefficient matrix ``B`` and the noise variances
``Omega`` of the resulting linear Gaussian model determine

    covariance = (I - B)^-T Omega (I - B)^-1
    precision  = (I - B) Omega^-1 (I - B)^T
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_squared_error

from ..core.base import DataType, DataValidationError, SparsebnData
from ..discovery.base import SparsebnFit, SparsebnPath

logger = logging.getLogger(__name__)

__all__ = [
    "DAGParameters",
    "estimate_parameters",
    "get_covariance",
    "get_precision",
]

# Floor on residual variances so that the precision stays finite
MIN_VARIANCE = 1e-6


@dataclass
class DAGParameters:
    """Linear Gaussian parameters of a DAG.

    Attributes:
        coefs: ``coefs[i, j]`` is the coefficient of ``i`` in the regression of ``j``
        variances: Residual variance of every node
        intercepts: Intercept of every node's regression
        variable_names: Names matching the matrix indices
    """

    coefs: NDArray[Any]
    variances: NDArray[Any]
    intercepts: NDArray[Any]
    variable_names: list[str]

    def _inverse_factor(self) -> NDArray[Any]:
        n_vars = len(self.variable_names)
        return np.linalg.inv(np.eye(n_vars) - self.coefs)

    def covariance_matrix(self) -> pd.DataFrame:
        """Implied covariance matrix of the variables."""
        inv = self._inverse_factor()
        sigma = inv.T @ np.diag(self.variances) @ inv
        # Symmetrize away rounding error
        sigma = (sigma + sigma.T) / 2
        return pd.DataFrame(sigma, index=self.variable_names, columns=self.variable_names)

    def precision_matrix(self) -> pd.DataFrame:
        """Implied precision (inverse covariance) matrix of the variables."""
        factor = np.eye(len(self.variable_names)) - self.coefs
        omega = factor @ np.diag(1.0 / self.variances) @ factor.T
        omega = (omega + omega.T) / 2
        return pd.DataFrame(omega, index=self.variable_names, columns=self.variable_names)


def estimate_parameters(fit: SparsebnFit, data: SparsebnData) -> DAGParameters:
    """Fit the linear Gaussian parameters of a DAG estimate by least squares.

    Each node is regressed on its parents using the rows that do not
    intervene on it.

    Args:
        fit: DAG estimate whose structure is kept fixed
        data: Continuous data the estimate was computed from

    Returns:
        DAGParameters for the estimate
    """
    if data.data_type != DataType.CONTINUOUS:
        raise DataValidationError("Parameter estimation requires continuous data")
    if fit.variable_names != data.variable_names:
        raise DataValidationError("Estimate and data have different variables")

    X = data.to_numpy()
    mask = data.intervention_mask()
    n_vars = data.n_variables

    coefs = np.zeros((n_vars, n_vars))
    variances = np.zeros(n_vars)
    intercepts = np.zeros(n_vars)

    for j in range(n_vars):
        rows = ~mask[:, j]
        if not rows.any():
            logger.warning(
                "Variable '%s' is intervened on in every row, using all rows for its variance",
                data.variable_names[j],
            )
            rows = np.ones(data.n_obs, dtype=bool)

        y = X[rows, j]
        parents = np.flatnonzero(fit.adjacency_matrix[:, j])
        if len(parents) == 0:
            intercepts[j] = y.mean()
            mse = mean_squared_error(y, np.full_like(y, intercepts[j]))
        else:
            reg = LinearRegression().fit(X[np.ix_(rows, parents)], y)
            coefs[parents, j] = reg.coef_
            intercepts[j] = reg.intercept_
            mse = mean_squared_error(y, reg.predict(X[np.ix_(rows, parents)]))

        if mse <= 0:
            mse = MIN_VARIANCE
        variances[j] = mse

    return DAGParameters(
        coefs=coefs,
        variances=variances,
        intercepts=intercepts,
        variable_names=data.variable_names,
    )


def get_covariance(path: SparsebnPath, data: SparsebnData) -> list[pd.DataFrame]:
    """Implied covariance matrix of every estimate along a path."""
    return [estimate_parameters(fit, data).covariance_matrix() for fit in path]


def get_precision(path: SparsebnPath, data: SparsebnData) -> list[pd.DataFrame]:
    """Implied precision matrix of every estimate along a path."""
    return [estimate_parameters(fit, data).precision_matrix() for fit in path]
