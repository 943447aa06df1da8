"""
AHP Weight Solver — Principal eigenvector weights and consistency ratio.

    w       = dominant eigenvector of M (power iteration), Σw = 1
    λmax    = mean_i( (M·w)_i / w_i )
    CI      = (λmax - n) / (n - 1)
    CR      = CI / RI(n)
    verdict = CR ≤ threshold (0.10 by default)

Matrices are at most 10×10, so plain lists are enough.
"""

from __future__ import annotations

import logging

from counterweight.config import settings
from counterweight.core.pairwise_matrix import PairwiseMatrix
from counterweight.errors import IncompleteMatrix
from counterweight.models.ahp_models import AHPResult

logger = logging.getLogger("counterweight.ahp")

# Saaty's random consistency index by matrix size
RANDOM_INDEX: dict[int, float] = {
    1: 0.0, 2: 0.0, 3: 0.58, 4: 0.90, 5: 1.12,
    6: 1.24, 7: 1.32, 8: 1.41, 9: 1.45, 10: 1.49,
}


def random_index(n: int) -> float:
    return RANDOM_INDEX.get(n, 1.49)


def _mat_vec(matrix: list[list[float]], vector: list[float]) -> list[float]:
    return [sum(a * b for a, b in zip(row, vector)) for row in matrix]


def _normalize(vector: list[float]) -> list[float]:
    total = sum(vector)
    return [v / total for v in vector]


def principal_eigenvector(
    matrix: list[list[float]],
    tolerance: float | None = None,
    max_iter: int | None = None,
) -> tuple[list[float], int]:
    """
    Dominant eigenvector of a positive matrix by power iteration.

    Starts from the uniform vector and repeats v ← normalize(M·v) until the
    L1 change falls below ``tolerance`` or ``max_iter`` steps have run.

    Returns:
        (eigenvector normalized to sum 1, iterations used)
    """
    tol = tolerance if tolerance is not None else settings.power_iteration_tolerance
    cap = max_iter if max_iter is not None else settings.power_iteration_max_iter

    n = len(matrix)
    vector = [1.0 / n] * n
    iterations = 0

    for iterations in range(1, cap + 1):
        updated = _normalize(_mat_vec(matrix, vector))
        change = sum(abs(a - b) for a, b in zip(updated, vector))
        vector = updated
        if change < tol:
            break
    else:
        logger.warning(f"Power iteration hit the {cap}-step cap without converging")

    return vector, iterations


def lambda_max(matrix: list[list[float]], weights: list[float]) -> float:
    """Principal eigenvalue estimate from the matrix and its weight vector."""
    weighted = _mat_vec(matrix, weights)
    return sum(ws / w for ws, w in zip(weighted, weights)) / len(weights)


def solve(
    matrix: PairwiseMatrix,
    threshold: float | None = None,
) -> AHPResult:
    """
    Derive weights and a consistency verdict from a complete matrix.

    Args:
        matrix: A complete PairwiseMatrix snapshot
        threshold: CR at or below which the matrix is consistent
            (defaults to settings.consistency_threshold)

    Raises:
        IncompleteMatrix: if any pair has not been judged.
    """
    if not matrix.is_complete():
        missing = matrix.missing_pairs()
        logger.info(f"Solve refused: {len(missing)} of {matrix.total_pairs} pairs missing")
        raise IncompleteMatrix(missing)

    cr_threshold = threshold if threshold is not None else settings.consistency_threshold
    dense: list[list[float]] = matrix.rows()  # type: ignore[assignment]
    n = matrix.size

    weights, iterations = principal_eigenvector(dense)
    lam = lambda_max(dense, weights)

    if n <= 2:
        # Any 1×1 or 2×2 reciprocal matrix is perfectly consistent.
        ci, cr = 0.0, 0.0
    else:
        ci = (lam - n) / (n - 1)
        cr = max(0.0, ci / random_index(n))

    weight_map = {item: w for item, w in zip(matrix.items, weights)}
    result = AHPResult(
        weights=weight_map,
        percent_weights={item: round(w * 100, 2) for item, w in weight_map.items()},
        lambda_max=lam,
        consistency_index=ci,
        consistency_ratio=cr,
        is_consistent=cr <= cr_threshold,
        iterations=iterations,
        matrix_version=matrix.version,
    )

    if result.is_consistent:
        logger.info(
            f"AHP solved in {iterations} iterations: CR {cr:.4f} (consistent)"
        )
    else:
        logger.warning(
            f"AHP solved in {iterations} iterations: CR {cr:.4f} exceeds "
            f"{cr_threshold:.2f}, judgments should be reviewed"
        )
    return result
