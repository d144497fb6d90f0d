"""Tests for default hyperparameter policies."""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from shared.config import SparsebnConfig
from sparsebn.core.base import DataValidationError
from sparsebn.core.defaults import (
    HyperParameters,
    default_alpha,
    default_max_iters,
    resolve_hyperparameters,
)


class TestDefaultPolicies:
    """Test the default alpha and max_iters policies."""

    def test_default_alpha(self):
        assert default_alpha() == 10.0

    def test_default_max_iters(self):
        assert default_max_iters(1) == 10
        assert default_max_iters(3) == 10
        assert default_max_iters(4) == 12
        assert default_max_iters(50) == 150

    def test_policies_follow_config(self):
        config = SparsebnConfig(
            edge_threshold_multiplier=4.0, max_iters_per_variable=5, min_max_iters=2
        )

        assert default_alpha(config) == 4.0
        assert default_max_iters(3, config) == 15


class TestResolveHyperparameters:
    """Test the hyperparameter resolver."""

    def test_defaults(self):
        params = resolve_hyperparameters(5)

        assert params.alpha == 10.0
        assert params.max_iters == 15
        assert params.concavity == 2.0
        assert params.error_tol == 1e-4
        assert params.weight_scale == 1.0
        assert params.conv_lb == 0.01
        assert params.upperbound == 100.0
        assert params.adaptive is False
        assert params.uses_mcp

    def test_explicit_values_kept(self):
        params = resolve_hyperparameters(5, max_iters=7, concavity=-1.0, adaptive=True)

        assert params.max_iters == 7
        assert not params.uses_mcp
        assert params.adaptive is True

    @given(
        threshold=st.floats(min_value=1e-3, max_value=1e6, allow_nan=False),
        n_variables=st.integers(min_value=1, max_value=10_000),
    )
    def test_edge_threshold_translated_to_alpha(self, threshold, n_variables):
        params = resolve_hyperparameters(n_variables, edge_threshold=threshold)

        assert params.alpha == threshold / n_variables

    def test_zero_edge_threshold(self):
        params = resolve_hyperparameters(3, edge_threshold=0)

        assert params.alpha == 0.0

    def test_negative_edge_threshold(self):
        with pytest.raises(DataValidationError, match="non-negative"):
            resolve_hyperparameters(3, edge_threshold=-1)

    def test_no_variables(self):
        with pytest.raises(ValueError, match="at least 1"):
            resolve_hyperparameters(0)

    def test_zero_concavity_rejected(self):
        with pytest.raises(ValidationError, match="concavity"):
            resolve_hyperparameters(3, concavity=0.0)

    def test_upperbound_sentinel(self):
        assert resolve_hyperparameters(3, upperbound=-1).upperbound == -1

        with pytest.raises(ValidationError, match="upperbound"):
            HyperParameters(alpha=1.0, max_iters=10, upperbound=-2.0)
