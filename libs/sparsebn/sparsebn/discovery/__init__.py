"""DAG structure learning along a regularization path.

This module provides:
- CCDr for continuous (gaussian) data
- Group-penalized coordinate descent for discrete data
- The solution path containers returned by both
"""

from .base import BasePathAlgorithm, SparsebnFit, SparsebnPath
from .ccdr import CCDrAlgorithm
from .discrete_cd import DiscreteCDAlgorithm
from .utils import (
    check_edge_constraints,
    generate_lambdas,
    group_soft_threshold,
    mcp_penalty,
    mcp_threshold,
    normalize_edge_list,
    validate_lambdas,
)

__all__ = [
    # Base classes
    "BasePathAlgorithm",
    "SparsebnFit",
    "SparsebnPath",
    # Solvers
    "CCDrAlgorithm",
    "DiscreteCDAlgorithm",
    # Utilities
    "generate_lambdas",
    "validate_lambdas",
    "normalize_edge_list",
    "check_edge_constraints",
    "mcp_penalty",
    "mcp_threshold",
    "group_soft_threshold",
]
