"""Public estimation API.

The three entry points are available as functions and, through the
``estimate`` module, under their short names::

    from sparsebn.api import estimate
    path = estimate.dag(data)
"""

from . import estimate
from .estimate import estimate_covariance, estimate_dag, estimate_precision

__all__ = [
    "estimate",
    "estimate_dag",
    "estimate_covariance",
    "estimate_precision",
]
