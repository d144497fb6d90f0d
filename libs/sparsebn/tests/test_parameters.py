"""Tests for least-squares parameter estimation on a fixed DAG."""

import numpy as np
import pandas as pd
import pytest

from sparsebn.core.base import DataValidationError, SparsebnData
from sparsebn.discovery.base import SparsebnFit, SparsebnPath
from sparsebn.estimation import (
    DAGParameters,
    estimate_parameters,
    get_covariance,
    get_precision,
)


@pytest.fixture
def chain_fit():
    return SparsebnFit(
        adjacency_matrix=np.array([[0, 1, 0], [0, 0, 1], [0, 0, 0]]),
        variable_names=["X1", "X2", "X3"],
        lambda_=1.0,
        n_obs=100,
    )


@pytest.fixture
def empty_fit():
    return SparsebnFit(
        adjacency_matrix=np.zeros((3, 3), dtype=int),
        variable_names=["X1", "X2", "X3"],
        lambda_=2.0,
        n_obs=100,
    )


class TestEstimateParameters:
    """Test regression of each node on its parents."""

    def test_chain_coefficients(self, chain_fit, chain_data):
        params = estimate_parameters(chain_fit, chain_data)

        assert isinstance(params, DAGParameters)
        assert params.coefs[0, 1] == pytest.approx(0.96)
        assert params.coefs[1, 2] == pytest.approx(0.96)
        assert params.coefs[0, 2] == 0.0
        np.testing.assert_allclose(params.variances, [1.0, 0.0784, 0.0784])
        np.testing.assert_allclose(params.intercepts, 0.0, atol=1e-12)

    def test_implied_covariance_matches_sample(self, chain_fit, chain_data):
        cov = estimate_parameters(chain_fit, chain_data).covariance_matrix()
        expected = np.array(
            [[1.0, 0.96, 0.9216], [0.96, 1.0, 0.96], [0.9216, 0.96, 1.0]]
        )

        assert list(cov.index) == ["X1", "X2", "X3"]
        np.testing.assert_allclose(cov.to_numpy(), expected, atol=1e-10)

    def test_precision_is_inverse(self, chain_fit, chain_data):
        params = estimate_parameters(chain_fit, chain_data)

        np.testing.assert_allclose(
            params.precision_matrix().to_numpy(),
            np.linalg.inv(params.covariance_matrix().to_numpy()),
            rtol=1e-8,
            atol=1e-8,
        )

    def test_intervened_rows_left_out(self, chain_fit, chain_data):
        ivn = [[1] if row < 10 else None for row in range(chain_data.n_obs)]
        data = SparsebnData(data=chain_data.data, data_type="continuous", ivn=ivn)

        observational = estimate_parameters(chain_fit, chain_data)
        experimental = estimate_parameters(chain_fit, data)

        # X1 and X3 use every row, X2 only the last 90
        assert experimental.variances[0] == pytest.approx(observational.variances[0])
        assert experimental.coefs[1, 2] == pytest.approx(observational.coefs[1, 2])
        assert experimental.coefs[0, 1] != pytest.approx(observational.coefs[0, 1], abs=1e-12)

    def test_requires_continuous(self, chain_fit, binary_chain_data):
        with pytest.raises(DataValidationError, match="continuous"):
            estimate_parameters(chain_fit, binary_chain_data)

    def test_variable_mismatch(self, chain_fit):
        df = pd.DataFrame({"A": [1.0, 2.0, 0.5], "B": [0.0, 1.0, 3.0], "C": [1.0, 0.0, 2.0]})
        data = SparsebnData(data=df, data_type="continuous")

        with pytest.raises(DataValidationError, match="different variables"):
            estimate_parameters(chain_fit, data)


class TestPathMatrices:
    """Test covariance and precision along a path."""

    def test_one_matrix_per_estimate(self, empty_fit, chain_fit, chain_data):
        path = SparsebnPath(fits=[empty_fit, chain_fit], algorithm_name="ccdr")

        covariances = get_covariance(path, chain_data)
        precisions = get_precision(path, chain_data)

        assert len(covariances) == len(precisions) == 2
        np.testing.assert_allclose(covariances[0].to_numpy(), np.eye(3), atol=1e-10)
        np.testing.assert_allclose(precisions[0].to_numpy(), np.eye(3), atol=1e-10)
        for cov, prec in zip(covariances, precisions):
            np.testing.assert_allclose(cov.to_numpy() @ prec.to_numpy(), np.eye(3), atol=1e-8)
