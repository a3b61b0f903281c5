# trishell/kernel/gauss.py
"""Gauss integration rules for triangles in barycentric (area) coordinates."""

import numpy as np
from typing import Tuple


# Points are rows of (L1, L2, L3); weights sum to 1 so that
#     ∫_A f dA = Σ f(L_g) · w_g · ½ · detJ      with detJ = 2·Area
_TRIANGLE_3_MIDSIDE = (
    np.array([
        [0.5, 0.5, 0.0],
        [0.0, 0.5, 0.5],
        [0.5, 0.0, 0.5],
    ]),
    np.array([1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0]),
)

# Dunavant degree-5 rule
_A1, _B1, _W1 = 0.059715871789770, 0.470142064105115, 0.132394152788506
_A2, _B2, _W2 = 0.797426985353087, 0.101286507323456, 0.125939180544827

_TRIANGLE_7 = (
    np.array([
        [1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0],
        [_A1, _B1, _B1],
        [_B1, _A1, _B1],
        [_B1, _B1, _A1],
        [_A2, _B2, _B2],
        [_B2, _A2, _B2],
        [_B2, _B2, _A2],
    ]),
    np.array([0.225, _W1, _W1, _W1, _W2, _W2, _W2]),
)

_TRIANGLE_1 = (
    np.array([[1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0]]),
    np.array([1.0]),
)

_RULES = {
    1: _TRIANGLE_1,
    3: _TRIANGLE_3_MIDSIDE,
    7: _TRIANGLE_7,
}


def gauss_points_weights_triangle(n_points: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss points and weights for integration over a triangle.

    Args:
        n_points: Number of integration points (1, 3 or 7).
            - 1: centroid, exact for linear integrands
            - 3: midside points, exact for quadratics (DKT bending stiffness)
            - 7: degree 5 (consistent mass)

    Returns:
        (points, weights): points has shape (n_points, 3) holding the
        barycentric coordinates, weights has shape (n_points,).

    Raises:
        ValueError: If `n_points` is not 1, 3 or 7.
    """
    try:
        points, weights = _RULES[n_points]
    except KeyError:
        raise ValueError(
            f"Unsupported number of Gauss points: {n_points}. "
            f"'n_points' must be one of {sorted(_RULES)}."
        ) from None
    return points.copy(), weights.copy()
