"""Tests for the dataset container, validation helpers and synthetic data."""

import logging
import warnings

import numpy as np
import pandas as pd
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sparsebn.core.base import (
    DataFamily,
    DataIntegrityError,
    DataType,
    DataValidationError,
    SparsebnData,
)
from sparsebn.data.synthetic import (
    generate_discrete_data,
    generate_linear_sem_data,
    random_dag,
)
from sparsebn.data.validation import (
    check_missing_values,
    count_missing_values,
    list_classes,
    pick_family,
    resolve_intervention_labels,
)


class TestSparsebnData:
    """Test the SparsebnData container."""

    def test_continuous_creation(self):
        df = pd.DataFrame({"A": [1.0, 2.0, 3.0], "B": [0.5, 0.1, 0.2]})
        data = SparsebnData(data=df, data_type="continuous")

        assert data.n_obs == 3
        assert data.n_variables == 2
        assert data.variable_names == ["A", "B"]
        assert data.data_type == DataType.CONTINUOUS
        assert not data.is_experimental

    def test_type_aliases(self):
        df = pd.DataFrame({"A": [0, 1, 1], "B": [1, 0, 1]})

        assert SparsebnData(data=df, data_type="c").data_type == DataType.CONTINUOUS
        assert SparsebnData(data=df, data_type="disc").data_type == DataType.DISCRETE

    def test_numpy_input_gets_default_names(self):
        data = SparsebnData(data=np.zeros((4, 3)) + np.arange(3), data_type="continuous")

        assert data.variable_names == ["V1", "V2", "V3"]

    def test_empty_data_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            SparsebnData(data=pd.DataFrame(), data_type="continuous")

    def test_non_numeric_continuous_rejected(self):
        df = pd.DataFrame({"A": [1.0, 2.0], "B": ["x", "y"]})

        with pytest.raises(ValueError, match="non-numeric"):
            SparsebnData(data=df, data_type="continuous")

    def test_discrete_levels_inferred(self):
        df = pd.DataFrame({"A": ["lo", "hi", "lo"], "B": [0, 1, 2]})
        data = SparsebnData(data=df, data_type="discrete")

        assert data.levels == [["hi", "lo"], [0, 1, 2]]
        assert data.n_levels == [2, 3]
        np.testing.assert_array_equal(data.to_codes(), [[1, 0], [0, 1], [1, 2]])

    def test_values_outside_levels_rejected(self):
        df = pd.DataFrame({"A": [0, 1, 2]})

        with pytest.raises(ValueError, match="outside its levels"):
            SparsebnData(data=df, data_type="discrete", levels=[[0, 1]])

    def test_levels_only_for_discrete(self):
        df = pd.DataFrame({"A": [0.0, 1.0]})

        with pytest.raises(ValueError, match="only be given for discrete"):
            SparsebnData(data=df, data_type="continuous", levels=[[0.0, 1.0]])

    def test_missing_values_warn(self):
        df = pd.DataFrame({"A": [1.0, np.nan], "B": [0.0, 1.0]})

        with pytest.warns(UserWarning, match="1 missing values"):
            data = SparsebnData(data=df, data_type="continuous")
        assert data.count_missing_values() == 1

    def test_interventions_normalized(self):
        df = pd.DataFrame({"A": [1.0, 2.0, 3.0], "B": [0.0, 1.0, 0.5]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[0, [], ["B"]])

        assert data.ivn == [[0], None, ["B"]]
        assert data.is_experimental

    def test_intervention_length_mismatch(self):
        df = pd.DataFrame({"A": [1.0, 2.0, 3.0]})

        with pytest.raises(ValueError, match="entries but data has 3 rows"):
            SparsebnData(data=df, data_type="continuous", ivn=[None, None])

    def test_intervention_index_out_of_range(self):
        df = pd.DataFrame({"A": [1.0, 2.0], "B": [3.0, 4.0]})

        with pytest.raises(ValueError, match="out of range"):
            SparsebnData(data=df, data_type="continuous", ivn=[[2], None])

    def test_intervention_mask(self):
        df = pd.DataFrame({"A": [1.0, 2.0, 3.0], "B": [0.0, 1.0, 0.5]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[[0, 1], None, [1]])

        np.testing.assert_array_equal(
            data.intervention_mask(), [[True, True], [False, False], [False, True]]
        )

    def test_intervention_mask_requires_resolved_labels(self):
        df = pd.DataFrame({"A": [1.0, 2.0], "B": [0.0, 1.0]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[["A"], None])

        with pytest.raises(DataValidationError, match="Unresolved intervention label"):
            data.intervention_mask()


class TestMissingValues:
    """Test the missing-value gate."""

    def test_count_matches(self, data_with_missing):
        assert count_missing_values(data_with_missing) == 3

    def test_check_raises_with_count(self, data_with_missing):
        with pytest.raises(DataIntegrityError, match="3 missing values") as exc_info:
            check_missing_values(data_with_missing)

        assert exc_info.value.n_missing == 3

    def test_check_passes_on_complete_data(self, chain_data):
        check_missing_values(chain_data)

    @settings(max_examples=30, deadline=None)
    @given(
        n_rows=st.integers(min_value=2, max_value=20),
        n_cols=st.integers(min_value=1, max_value=5),
        data=st.data(),
    )
    def test_exact_count_reported(self, n_rows, n_cols, data):
        n_cells = n_rows * n_cols
        holes = data.draw(
            st.sets(st.integers(min_value=0, max_value=n_cells - 1), min_size=1)
        )
        values = np.arange(n_cells, dtype=float)
        values[list(holes)] = np.nan
        df = pd.DataFrame(values.reshape(n_rows, n_cols))

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            dataset = SparsebnData(data=df, data_type="continuous")

        with pytest.raises(DataIntegrityError) as exc_info:
            check_missing_values(dataset)
        assert exc_info.value.n_missing == len(holes)


class TestPickFamily:
    """Test the family classifier."""

    def test_continuous_is_gaussian(self, chain_data):
        assert pick_family(chain_data) == DataFamily.GAUSSIAN

    def test_binary_is_binomial(self, binary_chain_data):
        assert pick_family(binary_chain_data) == DataFamily.BINOMIAL

    def test_more_levels_is_multinomial(self, multinomial_data):
        assert pick_family(multinomial_data) == DataFamily.MULTINOMIAL

    def test_one_wide_column_makes_multinomial(self):
        df = pd.DataFrame({"A": [0, 1, 0, 1], "B": [0, 1, 2, 1]})
        data = SparsebnData(data=df, data_type="discrete")

        assert pick_family(data) == DataFamily.MULTINOMIAL

    def test_mixed(self):
        df = pd.DataFrame({"A": [0.0, 1.5], "B": [1.0, 0.0]})
        data = SparsebnData(data=df, data_type="mixed")

        assert pick_family(data) == DataFamily.MIXED


class TestInterventionLabels:
    """Test resolution of intervention names to column indices."""

    def test_list_classes(self):
        assert list_classes(None) == set()
        assert list_classes([[0], None, ["A", 1]]) == {"int", "str"}

    def test_integer_interventions_unchanged(self):
        df = pd.DataFrame({"A": [1.0, 2.0], "B": [0.0, 1.0]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[[1], None])

        assert resolve_intervention_labels(data) is data

    def test_names_resolved(self):
        df = pd.DataFrame({"A": [1.0, 2.0, 3.0], "B": [0.0, 1.0, 0.5]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[["B"], None, ["A", "B"]])

        resolved = resolve_intervention_labels(data)

        assert resolved.ivn == [[1], None, [0, 1]]
        # Input left untouched
        assert data.ivn == [["B"], None, ["A", "B"]]

    def test_unmatched_name_degrades_to_observational(self, caplog):
        df = pd.DataFrame({"A": [1.0, 2.0], "B": [0.0, 1.0]})
        data = SparsebnData(data=df, data_type="continuous", ivn=[["Z"], ["B"]])

        with caplog.at_level(logging.WARNING, logger="sparsebn.data.validation"):
            resolved = resolve_intervention_labels(data)

        assert resolved.ivn == [None, [1]]
        assert "'Z'" in caplog.text


class TestSyntheticData:
    """Test the synthetic data generators."""

    def test_random_dag_is_acyclic(self):
        import networkx as nx

        adjacency = random_dag(6, 8, random_state=1)

        assert adjacency.sum() == 8
        assert nx.is_directed_acyclic_graph(nx.from_numpy_array(adjacency, create_using=nx.DiGraph))

    def test_random_dag_too_many_edges(self):
        with pytest.raises(ValueError, match="n_edges must be between"):
            random_dag(3, 4)

    def test_linear_sem_data(self, chain_adjacency):
        data = generate_linear_sem_data(chain_adjacency, n_samples=200, random_state=0)

        assert data.data_type == DataType.CONTINUOUS
        assert data.data.shape == (200, 3)
        assert data.variable_names == ["X1", "X2", "X3"]

    def test_linear_sem_rejects_cycles(self):
        with pytest.raises(ValueError, match="cycles"):
            generate_linear_sem_data(np.array([[0, 1], [1, 0]]))

    def test_discrete_data(self, chain_adjacency):
        data = generate_discrete_data(chain_adjacency, n_samples=100, n_levels=3, random_state=0)

        assert data.data_type == DataType.DISCRETE
        assert data.levels == [[0, 1, 2]] * 3
        assert set(np.unique(data.data.to_numpy())) <= {0, 1, 2}

    def test_discrete_data_without_flips_is_deterministic(self, chain_adjacency):
        data = generate_discrete_data(
            chain_adjacency, n_samples=50, flip_probability=0.0, random_state=0
        )

        np.testing.assert_array_equal(data.data["X2"], data.data["X1"])
        np.testing.assert_array_equal(data.data["X3"], data.data["X2"])
