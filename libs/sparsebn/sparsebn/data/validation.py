"""Validation and preparation of datasets before DAG estimation.

This module holds the checks and conversions ``estimate_dag`` runs before a
solver is chosen: the missing-value gate, the family classifier and the
intervention-label resolver.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from ..core.base import (
    DataFamily,
    DataIntegrityError,
    DataType,
    SparsebnData,
)

logger = logging.getLogger(__name__)

__all__ = [
    "count_missing_values",
    "check_missing_values",
    "pick_family",
    "list_classes",
    "resolve_intervention_labels",
]


def count_missing_values(data: SparsebnData) -> int:
    """Count missing entries across the data matrix."""
    return data.count_missing_values()


def check_missing_values(data: SparsebnData) -> None:
    """Fail when the dataset has any missing value.

    Raises:
        DataIntegrityError: If at least one entry is missing; carries the count
    """
    n_missing = count_missing_values(data)
    if n_missing > 0:
        raise DataIntegrityError(n_missing)


def pick_family(data: SparsebnData) -> DataFamily:
    """Classify a dataset into the model family used to estimate it.

    Continuous data is gaussian. Discrete data is binomial when every column
    has at most two levels and multinomial otherwise.
    """
    if data.data_type == DataType.CONTINUOUS:
        return DataFamily.GAUSSIAN
    if data.data_type == DataType.DISCRETE:
        if max(data.n_levels) <= 2:
            return DataFamily.BINOMIAL
        return DataFamily.MULTINOMIAL
    return DataFamily.MIXED


def list_classes(entries: Optional[list[Optional[list[Any]]]]) -> set[str]:
    """Names of the element types found in an intervention list."""
    if entries is None:
        return set()
    return {type(item).__name__ for entry in entries for item in (entry or [])}


def _resolve_entry(
    entry: Optional[list[Union[int, str]]], index_of: dict[str, int]
) -> Optional[list[int]]:
    if not entry:
        return None

    resolved = []
    unmatched = []
    for item in entry:
        if isinstance(item, str):
            if item in index_of:
                resolved.append(index_of[item])
            else:
                unmatched.append(item)
        else:
            resolved.append(item)

    if unmatched:
        logger.warning(
            "Intervention labels %s do not match any variable; "
            "treating the row as observational",
            unmatched,
        )
        return None
    return resolved


def resolve_intervention_labels(data: SparsebnData) -> SparsebnData:
    """Convert intervention names to column indices.

    An entry naming a variable that is not in the data is resolved to
    ``None`` (observational) with a logged warning, rather than failing.

    Returns:
        The same dataset when it has no named interventions, otherwise a copy
        whose ``ivn`` holds only integer indices
    """
    if "str" not in list_classes(data.ivn):
        return data

    index_of = {name: k for k, name in enumerate(data.variable_names)}
    resolved = [_resolve_entry(entry, index_of) for entry in data.ivn]
    return data.model_copy(update={"ivn": resolved})
