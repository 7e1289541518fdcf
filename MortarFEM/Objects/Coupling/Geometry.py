"""
2D geometry kernel shared by the normal updater, projector and contact law.

All functions accept plain numpy vectors or AdArrays.
"""

import numpy as np

from MortarFEM.AD import ForwardMode as F

# 90° rotation: normal = Q·tangent, tangent = Qᵀ·normal
Q = np.array([[0.0, -1.0],
              [1.0, 0.0]])


def cross2(a, b):
    """Scalar cross product a × b = a_x·b_y - a_y·b_x."""
    return a[0] * b[1] - a[1] * b[0]


def normal_from_tangent(t):
    return Q @ t


def tangent_from_normal(n):
    return Q.T @ n


def normal_component(v, n):
    """Scalar component of v along n."""
    return F.dot(n, v)


def distance(a, b) -> float:
    """Euclidean distance of the values of a and b (no sensitivities)."""
    return float(np.linalg.norm(F.value(a) - F.value(b)))


def midpoint(a, b):
    return 0.5 * (a + b)
