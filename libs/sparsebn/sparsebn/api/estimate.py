"""Public estimation entry points.

``estimate_dag`` validates a dataset, resolves hyperparameter defaults,
classifies the data family and hands the call to the matching solver.
``estimate_covariance`` and ``estimate_precision`` run the same path for
continuous data and convert every estimate to its implied covariance or
precision matrix.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Optional

import pandas as pd

from ..core.base import (
    DataFamily,
    DataType,
    FeatureNotSupportedError,
    SparsebnData,
    UnsupportedFamilyError,
)
from ..core.defaults import resolve_hyperparameters
from ..data.validation import (
    check_missing_values,
    pick_family,
    resolve_intervention_labels,
)
from ..discovery.base import SparsebnPath
from ..discovery.ccdr import CCDrAlgorithm
from ..discovery.discrete_cd import DiscreteCDAlgorithm
from ..estimation.parameters import get_covariance, get_precision

logger = logging.getLogger(__name__)

__all__ = [
    "estimate_dag",
    "estimate_covariance",
    "estimate_precision",
]


def _check_data(data: Any) -> None:
    if not isinstance(data, SparsebnData):
        raise TypeError(
            f"data must be a SparsebnData object, got {type(data).__name__}"
        )


def estimate_dag(
    data: SparsebnData,
    lambdas: Optional[Iterable[float]] = None,
    lambdas_length: int = 20,
    whitelist: Optional[Iterable[Any]] = None,
    blacklist: Optional[Iterable[Any]] = None,
    error_tol: float = 1e-4,
    max_iters: Optional[int] = None,
    edge_threshold: Optional[float] = None,
    concavity: float = 2.0,
    weight_scale: float = 1.0,
    conv_lb: float = 0.01,
    upperbound: float = 100.0,
    adaptive: bool = False,
    verbose: bool = False,
) -> SparsebnPath:
    """Estimate a solution path of DAGs from data.

    Continuous data is fitted with CCDr, discrete data with group-penalized
    coordinate descent. Intervention labels given by name are resolved to
    column indices first.

    Args:
        data: Dataset to learn from
        lambdas: Decreasing grid of regularization parameters; generated by
            the solver when omitted
        lambdas_length: Length of the generated grid
        whitelist: Edges forced into every estimate, as ``(from, to)`` pairs
        blacklist: Edges excluded from every estimate, as ``(from, to)`` pairs
        error_tol: Convergence tolerance
        max_iters: Maximum sweeps per lambda; defaults to ``max(3p, 10)``
        edge_threshold: Stop the path once an estimate has more than this many
            edges; defaults to ``10p``
        concavity: MCP concavity for continuous data; negative selects L1
        weight_scale: Penalty weight scale for discrete data
        conv_lb: Hessian lower bound for discrete data
        upperbound: Adaptive weight truncation for discrete data, -1 for none
        adaptive: Run the adaptive algorithm for discrete data
        verbose: Log solver progress at INFO level

    Returns:
        SparsebnPath ordered by decreasing lambda

    Raises:
        TypeError: If ``data`` is not a SparsebnData object
        DataIntegrityError: If the data has missing values
        UnsupportedFamilyError: If no solver handles the data family
    """
    _check_data(data)
    check_missing_values(data)

    params = resolve_hyperparameters(
        data.n_variables,
        edge_threshold=edge_threshold,
        max_iters=max_iters,
        concavity=concavity,
        error_tol=error_tol,
        weight_scale=weight_scale,
        conv_lb=conv_lb,
        upperbound=upperbound,
        adaptive=adaptive,
    )
    family = pick_family(data)
    data = resolve_intervention_labels(data)

    logger.debug(
        "Estimating DAG for %d variables and %d observations (family=%s, alpha=%.3f, max_iters=%d)",
        data.n_variables,
        data.n_obs,
        family.value,
        params.alpha,
        params.max_iters,
    )

    if family == DataFamily.GAUSSIAN:
        solver = CCDrAlgorithm(
            lambdas=lambdas,
            lambdas_length=lambdas_length,
            whitelist=whitelist,
            blacklist=blacklist,
            error_tol=params.error_tol,
            max_iters=params.max_iters,
            alpha=params.alpha,
            gamma=params.concavity,
            verbose=verbose,
        )
    elif family in (DataFamily.BINOMIAL, DataFamily.MULTINOMIAL):
        solver = DiscreteCDAlgorithm(
            lambdas=lambdas,
            lambdas_length=lambdas_length,
            whitelist=whitelist,
            blacklist=blacklist,
            error_tol=params.error_tol,
            max_iters=params.max_iters,
            alpha=params.alpha,
            weight_scale=params.weight_scale,
            conv_lb=params.conv_lb,
            upperbound=params.upperbound,
            adaptive=params.adaptive,
            verbose=verbose,
        )
    else:
        raise UnsupportedFamilyError(family)

    return solver.run(data)


def estimate_covariance(data: SparsebnData, **kwargs: Any) -> list[pd.DataFrame]:
    """Estimate a DAG path and the covariance matrix implied by each estimate.

    Args:
        data: Continuous dataset
        **kwargs: Passed on to :func:`estimate_dag`

    Returns:
        One covariance matrix per estimate of the path

    Raises:
        FeatureNotSupportedError: If the data is not continuous
    """
    _check_data(data)
    if data.data_type != DataType.CONTINUOUS:
        raise FeatureNotSupportedError("Covariance estimation for discrete models")

    data = resolve_intervention_labels(data)
    path = estimate_dag(data, **kwargs)
    return get_covariance(path, data)


def estimate_precision(data: SparsebnData, **kwargs: Any) -> list[pd.DataFrame]:
    """Estimate a DAG path and the precision matrix implied by each estimate.

    Args:
        data: Continuous dataset
        **kwargs: Passed on to :func:`estimate_dag`

    Returns:
        One precision matrix per estimate of the path

    Raises:
        FeatureNotSupportedError: If the data is not continuous
    """
    _check_data(data)
    if data.data_type != DataType.CONTINUOUS:
        raise FeatureNotSupportedError("Precision matrix estimation for discrete models")

    data = resolve_intervention_labels(data)
    path = estimate_dag(data, **kwargs)
    return get_precision(path, data)


# Short names, used as ``estimate.dag(data)`` after ``from sparsebn.api import estimate``
dag = estimate_dag
covariance = estimate_covariance
precision = estimate_precision
