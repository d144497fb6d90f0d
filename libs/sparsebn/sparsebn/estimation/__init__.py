"""Parameter estimation for DAG estimates and implied covariance structure."""

from .parameters import DAGParameters, estimate_parameters, get_covariance, get_precision

__all__ = [
    "DAGParameters",
    "estimate_parameters",
    "get_covariance",
    "get_precision",
]
