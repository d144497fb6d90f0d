"""Sparse Bayesian network structure learning.

Learns directed acyclic graphs from continuous or discrete data, with
optional interventions, along a path of penalty levels.
"""

__version__ = "0.1.0"

from .api import estimate, estimate_covariance, estimate_dag, estimate_precision
from .core import *
from .data import *
from .discovery import (
    BasePathAlgorithm,
    CCDrAlgorithm,
    DiscreteCDAlgorithm,
    SparsebnFit,
    SparsebnPath,
    generate_lambdas,
)
from .estimation import DAGParameters, estimate_parameters, get_covariance, get_precision

__all__ = [
    "__version__",
    # Entry points
    "estimate",
    "estimate_dag",
    "estimate_covariance",
    "estimate_precision",
    # Data and errors
    "SparsebnData",
    "DataType",
    "DataFamily",
    "HyperParameters",
    "SparsebnError",
    "DataIntegrityError",
    "DataValidationError",
    "FeatureNotSupportedError",
    "UnsupportedFamilyError",
    "SolverError",
    "resolve_hyperparameters",
    "default_alpha",
    "default_max_iters",
    "check_missing_values",
    "count_missing_values",
    "pick_family",
    "list_classes",
    "resolve_intervention_labels",
    "random_dag",
    "generate_linear_sem_data",
    "generate_discrete_data",
    # Solvers and paths
    "BasePathAlgorithm",
    "CCDrAlgorithm",
    "DiscreteCDAlgorithm",
    "SparsebnFit",
    "SparsebnPath",
    "generate_lambdas",
    # Parameters
    "DAGParameters",
    "estimate_parameters",
    "get_covariance",
    "get_precision",
]
