"""Example: Learning DAGs from observational and experimental data.

This example simulates a random Gaussian network, estimates a solution path
with CCDr, picks an estimate and compares it with the truth. It then does the
same for discrete data, and finally shows interventions given by name and
the covariance matrices implied by the path.
"""

import numpy as np

from shared.config import SparsebnConfig
from shared.observability.logging import get_logger, setup_logging
from sparsebn import (
    SparsebnData,
    estimate,
    generate_discrete_data,
    generate_linear_sem_data,
    random_dag,
)

logger = get_logger(__name__)


def continuous_example() -> None:
    """Estimate a path on data from a random linear Gaussian DAG."""
    truth = random_dag(n_variables=8, n_edges=8, random_state=7)
    data = generate_linear_sem_data(truth, n_samples=500, random_state=7)

    path = estimate.dag(data, edge_threshold=20)

    print("Continuous data")
    print("=" * 60)
    print(f"Estimates: {len(path)}, edges per estimate: {path.num_edges()}")

    fit = path.select(edges=int(truth.sum()))
    shd = fit.structural_hamming_distance(truth)
    print(f"Selected lambda = {fit.lambda_:.3f} with {fit.n_edges} edges, SHD = {shd}")
    for parent, child in fit.edge_list():
        print(f"  {parent} -> {child}")


def discrete_example() -> None:
    """Estimate a path on three-level data from a chain."""
    truth = np.array([[0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1], [0, 0, 0, 0]])
    data = generate_discrete_data(truth, n_samples=800, n_levels=3, random_state=3)

    path = estimate.dag(data, lambdas_length=10)

    print("\nDiscrete data")
    print("=" * 60)
    for fit in path:
        print(f"  lambda = {fit.lambda_:.4f}: {fit.edge_list()}")


def experimental_example() -> None:
    """Interventions given by variable name, and implied covariance matrices."""
    truth = np.array([[0, 1, 0], [0, 0, 1], [0, 0, 0]])
    observational = generate_linear_sem_data(
        truth, n_samples=300, edge_weights=np.full((3, 3), 0.8), random_state=11
    )

    # Clamp X2 to random values in the first 100 rows
    df = observational.data.copy()
    df.loc[:99, "X2"] = np.random.normal(0, 1, 100)
    df.loc[:99, "X3"] = 0.8 * df.loc[:99, "X2"] + np.random.normal(0, 1, 100)
    ivn = [["X2"] if row < 100 else None for row in range(len(df))]
    data = SparsebnData(data=df, data_type="continuous", ivn=ivn)

    covariances = estimate.covariance(data, lambdas_length=5)

    print("\nExperimental data")
    print("=" * 60)
    print("Covariance implied by the last estimate:")
    print(covariances[-1].round(3))


def main() -> None:
    setup_logging(SparsebnConfig(environment="production"))
    logger.info("Running sparsebn examples")

    continuous_example()
    discrete_example()
    experimental_example()


if __name__ == "__main__":
    main()
