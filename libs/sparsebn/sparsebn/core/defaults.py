"""Default hyperparameter policies and the resolved hyperparameter bundle."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from shared.config import SparsebnConfig

from .base import DataValidationError

__all__ = [
    "HyperParameters",
    "default_alpha",
    "default_max_iters",
    "resolve_hyperparameters",
]


def default_alpha(config: SparsebnConfig | None = None) -> float:
    """Default edge-threshold fraction: stop once an estimate has more than ``alpha * p`` edges."""
    config = config or SparsebnConfig()
    return float(config.edge_threshold_multiplier)


def default_max_iters(n_variables: int, config: SparsebnConfig | None = None) -> int:
    """Default number of coordinate descent sweeps per lambda for ``n_variables`` nodes.

    ``max(3p, 10)`` is a local heuristic rather than a derived bound. Both
    constants come from ``SparsebnConfig`` and can be tuned there.
    """
    config = config or SparsebnConfig()
    return max(config.max_iters_per_variable * n_variables, config.min_max_iters)


class HyperParameters(BaseModel):
    """Resolved hyperparameters handed to the DAG solvers.

    Attributes:
        alpha: Edge-threshold fraction; the path stops after an estimate with
            more than ``alpha * p`` edges, so 0 stops at the first non-empty one
        max_iters: Maximum coordinate descent sweeps per lambda
        concavity: MCP concavity parameter; negative values select the L1 penalty
        error_tol: Convergence tolerance on parameter changes
        weight_scale: (discrete) scale of the penalty weights
        conv_lb: (discrete) lower bound used in the Hessian approximation
        upperbound: (discrete) truncation of adaptive weights, -1 for none
        adaptive: (discrete) run the adaptive second pass
    """

    alpha: float = Field(..., ge=0.0, description="Edge-threshold fraction")
    max_iters: int = Field(..., ge=1, description="Maximum sweeps per lambda")
    concavity: float = Field(default=2.0, description="MCP concavity parameter")
    error_tol: float = Field(default=1e-4, gt=0.0, description="Convergence tolerance")
    weight_scale: float = Field(default=1.0, gt=0.0, description="Penalty weight scale")
    conv_lb: float = Field(default=0.01, gt=0.0, description="Hessian lower bound")
    upperbound: float = Field(default=100.0, description="Adaptive weight truncation")
    adaptive: bool = Field(default=False, description="Run the adaptive algorithm")

    @field_validator("concavity")
    @classmethod
    def validate_concavity(cls, v: float) -> float:
        if v == 0:
            raise ValueError(
                "concavity must be positive (MCP) or negative (L1), not zero"
            )
        return v

    @field_validator("upperbound")
    @classmethod
    def validate_upperbound(cls, v: float) -> float:
        if v <= 0 and v != -1:
            raise ValueError("upperbound must be positive, or -1 for no truncation")
        return v

    @property
    def uses_mcp(self) -> bool:
        return self.concavity > 0


def resolve_hyperparameters(
    n_variables: int,
    edge_threshold: float | None = None,
    max_iters: int | None = None,
    concavity: float = 2.0,
    error_tol: float = 1e-4,
    weight_scale: float = 1.0,
    conv_lb: float = 0.01,
    upperbound: float = 100.0,
    adaptive: bool = False,
    config: SparsebnConfig | None = None,
) -> HyperParameters:
    """Fill in default hyperparameters from the number of variables.

    Args:
        n_variables: Number of variables ``p`` in the dataset
        edge_threshold: Stop the path once an estimate has more than this many
            edges. Translated to ``alpha = edge_threshold / p``; 0 keeps the
            path up to the first estimate with an edge.
        max_iters: Maximum sweeps per lambda; defaults to ``default_max_iters(p)``
        concavity: MCP concavity (negative selects L1)
        error_tol: Convergence tolerance
        weight_scale: Discrete penalty weight scale
        conv_lb: Discrete Hessian lower bound
        upperbound: Discrete adaptive weight truncation
        adaptive: Whether to run the discrete adaptive pass
        config: Library configuration supplying the default policies

    Returns:
        Validated HyperParameters

    Raises:
        DataValidationError: If ``edge_threshold`` is negative
    """
    if n_variables < 1:
        raise ValueError("n_variables must be at least 1")

    if edge_threshold is None:
        alpha = default_alpha(config)
    else:
        if edge_threshold < 0:
            raise DataValidationError(
                f"edge_threshold must be non-negative, got {edge_threshold}"
            )
        alpha = edge_threshold / n_variables

    if max_iters is None:
        max_iters = default_max_iters(n_variables, config)

    return HyperParameters(
        alpha=alpha,
        max_iters=max_iters,
        concavity=concavity,
        error_tol=error_tol,
        weight_scale=weight_scale,
        conv_lb=conv_lb,
        upperbound=upperbound,
        adaptive=adaptive,
    )
