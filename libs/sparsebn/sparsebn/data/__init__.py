"""Dataset validation and synthetic data generation.

This module provides:
- The checks run before a solver is chosen (missing values, family, interventions)
- Synthetic data generators with known ground-truth DAGs
"""

from .synthetic import generate_discrete_data, generate_linear_sem_data, random_dag
from .validation import (
    check_missing_values,
    count_missing_values,
    list_classes,
    pick_family,
    resolve_intervention_labels,
)

__all__ = [
    # Validation
    "count_missing_values",
    "check_missing_values",
    "pick_family",
    "list_classes",
    "resolve_intervention_labels",
    # Synthetic data generation
    "random_dag",
    "generate_linear_sem_data",
    "generate_discrete_data",
]
