"""Core data models, exceptions and default policies."""

from .base import (
    DataFamily,
    DataIntegrityError,
    DataType,
    DataValidationError,
    FeatureNotSupportedError,
    SolverError,
    SparsebnData,
    SparsebnError,
    UnsupportedFamilyError,
)
from .defaults import (
    HyperParameters,
    default_alpha,
    default_max_iters,
    resolve_hyperparameters,
)

__all__ = [
    "DataFamily",
    "DataType",
    "SparsebnData",
    "SparsebnError",
    "DataIntegrityError",
    "DataValidationError",
    "FeatureNotSupportedError",
    "UnsupportedFamilyError",
    "SolverError",
    "HyperParameters",
    "default_alpha",
    "default_max_iters",
    "resolve_hyperparameters",
]
