"""Base data models and exceptions for sparse DAG estimation.

This module provides the dataset container consumed by every estimation
routine, the enums used to tag data and model families, and the exception
hierarchy shared across the library.
"""

from __future__ import annotations

import warnings
from enum import Enum
from typing import Any, Optional, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator, model_validator

__all__ = [
    "DataType",
    "DataFamily",
    "SparsebnData",
    "SparsebnError",
    "DataIntegrityError",
    "DataValidationError",
    "FeatureNotSupportedError",
    "UnsupportedFamilyError",
    "SolverError",
]


class DataType(str, Enum):
    """Declared type of a dataset."""

    CONTINUOUS = "continuous"
    DISCRETE = "discrete"
    MIXED = "mixed"


class DataFamily(str, Enum):
    """Model family a dataset is estimated under."""

    GAUSSIAN = "gaussian"
    BINOMIAL = "binomial"
    MULTINOMIAL = "multinomial"
    MIXED = "mixed"


_TYPE_ALIASES = {
    "c": DataType.CONTINUOUS,
    "cont": DataType.CONTINUOUS,
    "d": DataType.DISCRETE,
    "disc": DataType.DISCRETE,
    "m": DataType.MIXED,
}


class SparsebnData(BaseModel):
    """Dataset container for DAG estimation.

    Holds the data matrix, its declared type and an optional per-row list of
    intervened variables. Rows whose intervention entry is ``None`` (or empty)
    are observational.

    Examples:
        >>> dat = SparsebnData(data=df, data_type="c")
        >>> dat = SparsebnData(data=df, data_type="discrete", ivn=[[0], None, ["X3"]])
    """

    data: pd.DataFrame = Field(..., description="Data matrix, one column per variable")
    data_type: DataType = Field(
        ..., description="Type of data: 'continuous', 'discrete' or 'mixed'"
    )
    ivn: Optional[list[Optional[list[Union[int, str]]]]] = Field(
        default=None,
        description="Per-row intervened variables, by 0-based index or by name",
    )
    levels: Optional[list[list[Any]]] = Field(
        default=None, description="For discrete data, the admissible values of each column"
    )

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data", mode="before")
    @classmethod
    def validate_data(cls, v: Any) -> pd.DataFrame:
        """Coerce arrays to a DataFrame and check the matrix is usable."""
        if isinstance(v, np.ndarray):
            if v.ndim != 2:
                raise ValueError("Data matrix must be 2-dimensional")
            v = pd.DataFrame(v, columns=[f"V{i + 1}" for i in range(v.shape[1])])
        if not isinstance(v, pd.DataFrame):
            raise ValueError("Data must be a pandas DataFrame or a 2-D numpy array")
        if v.empty:
            raise ValueError("Data cannot be empty")
        names = [str(c) for c in v.columns]
        if len(set(names)) != len(names):
            raise ValueError("Variable names must be unique")
        v = v.copy()
        v.columns = names
        return v.reset_index(drop=True)

    @field_validator("data_type", mode="before")
    @classmethod
    def validate_data_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() in _TYPE_ALIASES:
            return _TYPE_ALIASES[v.lower()]
        return v

    @field_validator("ivn", mode="before")
    @classmethod
    def validate_ivn(cls, v: Any) -> Any:
        """Normalize intervention entries to lists of ints or names."""
        if v is None:
            return v
        normalized = []
        for entry in v:
            if entry is None:
                normalized.append(None)
                continue
            if isinstance(entry, (str, int, np.integer)):
                entry = [entry]
            items = []
            for item in entry:
                if isinstance(item, str):
                    items.append(item)
                elif isinstance(item, (int, np.integer)) and not isinstance(item, bool):
                    items.append(int(item))
                else:
                    raise ValueError(
                        f"Intervention entries must be column indices or names, got {item!r}"
                    )
            normalized.append(items if items else None)
        return normalized

    @model_validator(mode="after")
    def validate_consistency(self) -> SparsebnData:
        """Cross-field checks: interventions, levels and missing values."""
        n_obs, n_vars = self.data.shape

        if self.ivn is not None:
            if len(self.ivn) != n_obs:
                raise ValueError(
                    f"Intervention list has {len(self.ivn)} entries but data has {n_obs} rows"
                )
            for row, entry in enumerate(self.ivn):
                for item in entry or []:
                    if isinstance(item, int) and not 0 <= item < n_vars:
                        raise ValueError(
                            f"Intervention index {item} in row {row} is out of range "
                            f"for {n_vars} variables"
                        )

        if self.data_type == DataType.CONTINUOUS:
            non_numeric = self.data.select_dtypes(exclude=[np.number]).columns.tolist()
            if non_numeric:
                raise ValueError(
                    f"Continuous data must be numeric, found non-numeric columns: {non_numeric}"
                )

        if self.data_type == DataType.DISCRETE:
            if self.levels is None:
                self.levels = [
                    sorted(self.data[col].dropna().unique().tolist())
                    for col in self.data.columns
                ]
            if len(self.levels) != n_vars:
                raise ValueError(
                    f"Got levels for {len(self.levels)} columns but data has {n_vars}"
                )
            for col, col_levels in zip(self.data.columns, self.levels):
                observed = self.data[col].dropna()
                unknown = set(observed.unique().tolist()) - set(col_levels)
                if unknown:
                    raise ValueError(
                        f"Column '{col}' has values outside its levels: {sorted(unknown, key=str)}"
                    )
        elif self.levels is not None:
            raise ValueError("levels can only be given for discrete data")

        n_missing = self.count_missing_values()
        if n_missing > 0:
            warnings.warn(
                f"Data contains {n_missing} missing values. "
                "These must be removed or imputed before estimation.",
                UserWarning,
            )

        return self

    @property
    def n_obs(self) -> int:
        """Number of rows."""
        return int(self.data.shape[0])

    @property
    def n_variables(self) -> int:
        """Number of variables (columns)."""
        return int(self.data.shape[1])

    @property
    def variable_names(self) -> list[str]:
        return list(self.data.columns)

    @property
    def is_experimental(self) -> bool:
        """Whether any row carries an intervention."""
        return self.ivn is not None and any(entry for entry in self.ivn)

    @property
    def n_levels(self) -> list[int]:
        """Number of levels of each discrete column."""
        if self.levels is None:
            raise AttributeError("n_levels is only defined for discrete data")
        return [len(col_levels) for col_levels in self.levels]

    def count_missing_values(self) -> int:
        """Count missing entries across the data matrix."""
        return int(self.data.isnull().to_numpy().sum())

    def to_numpy(self) -> NDArray[Any]:
        """Data matrix as a float array."""
        return self.data.to_numpy(dtype=float)

    def to_codes(self) -> NDArray[np.int_]:
        """Discrete data as 0-based level codes, one column per variable."""
        if self.levels is None:
            raise AttributeError("to_codes is only defined for discrete data")
        codes = np.empty(self.data.shape, dtype=int)
        for k, (col, col_levels) in enumerate(zip(self.data.columns, self.levels)):
            lookup = {level: code for code, level in enumerate(col_levels)}
            codes[:, k] = self.data[col].map(lookup).to_numpy()
        return codes

    def intervention_mask(self) -> NDArray[np.bool_]:
        """Boolean matrix, True where a row intervenes on a variable.

        Requires integer intervention indices (see
        :func:`sparsebn.data.validation.resolve_intervention_labels`).
        """
        mask = np.zeros(self.data.shape, dtype=bool)
        if self.ivn is None:
            return mask
        for row, entry in enumerate(self.ivn):
            for item in entry or []:
                if not isinstance(item, int):
                    raise DataValidationError(
                        f"Unresolved intervention label {item!r} in row {row}"
                    )
                mask[row, item] = True
        return mask


class SparsebnError(Exception):
    """Base exception class for sparsebn specific errors."""

    pass


class DataIntegrityError(SparsebnError):
    """Raised when the data matrix contains missing values at estimation time."""

    def __init__(self, n_missing: int) -> None:
        self.n_missing = int(n_missing)
        super().__init__(
            f"Data contains {self.n_missing} missing values. "
            "Remove or impute them before estimating a DAG."
        )


class DataValidationError(SparsebnError):
    """Raised when inputs to an estimation routine are malformed."""

    pass


class FeatureNotSupportedError(SparsebnError):
    """Raised when an operation is requested on data it does not support."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"{feature} is not supported yet.")


class UnsupportedFamilyError(SparsebnError):
    """Raised when no solver handles the dataset's model family."""

    def __init__(self, family: DataFamily | str) -> None:
        self.family = family
        value = family.value if isinstance(family, Enum) else family
        super().__init__(
            f"No DAG solver for data family '{value}'. "
            "Supported families: gaussian, binomial, multinomial."
        )


class SolverError(SparsebnError):
    """Raised when a solver fails while computing the solution path."""

    pass
