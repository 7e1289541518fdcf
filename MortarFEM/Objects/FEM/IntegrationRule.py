from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple

import numpy as np

from MortarFEM.Exceptions import MortarConfigurationError


@dataclass(frozen=True)
class IntegrationPoint:
    """
    Reference quadrature point on [-1, 1].

    Attributes
    ----------
    xi : float
        Parametric coordinate ξ ∈ [-1, 1]
    weight : float
        Reference weight (rule weights sum to 2)
    """
    xi: float
    weight: float


@lru_cache(maxsize=None)
def gauss_points_1d(order: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gauss-Legendre quadrature points and weights for interval [-1, 1].

    Parameters
    ----------
    order : int
        Number of points; the rule integrates polynomials of degree
        2*order - 1 exactly
        - order 3: default for mesh tying
        - order 5: default for contact

    Returns
    -------
    points : np.ndarray
        Gauss points in [-1, 1]
    weights : np.ndarray
        Corresponding weights (sum to 2.0)
    """
    if int(order) != order or order < 1:
        raise MortarConfigurationError(
            f"Unsupported integration order: {order}. Order must be a positive integer")
    points, weights = np.polynomial.legendre.leggauss(int(order))
    points.setflags(write=False)
    weights.setflags(write=False)
    return points, weights


def get_integration_points(order: int) -> List[IntegrationPoint]:
    points, weights = gauss_points_1d(order)
    return [IntegrationPoint(float(xi), float(w)) for xi, w in zip(points, weights)]


def map_to_segment(s, xi_a, xi_b):
    """
    Affine map from the reference interval onto the slave sub-segment.

        ξ = ½(1 - s)·ξa + ½(1 + s)·ξb

    ``xi_a`` and ``xi_b`` may carry sensitivities, the result then does too.
    """
    return 0.5 * (1.0 - s) * xi_a + 0.5 * (1.0 + s) * xi_b
