"""
Shared fixtures for MortarFEM tests.

This module provides simple, reusable interfaces and helpers for testing.
"""
import numpy as np
import pytest

from MortarFEM.Objects.Coupling import MortarInterface
from MortarFEM.Objects.FEM import Seg2, Seg3


# =============================================================================
# Interface Fixtures
# =============================================================================

@pytest.fixture
def touching_interface():
    """
    Conforming unit segments, slave (0,0)-(1,0) and master (1,0)-(0,0).
    Nodes 1, 2 slave; 3, 4 master. Zero gap.
    """
    interface = MortarInterface()
    interface.add_nodes({1: [0.0, 0.0], 2: [1.0, 0.0], 3: [1.0, 0.0], 4: [0.0, 0.0]})
    interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
    return interface


@pytest.fixture
def contact_interface():
    """
    Slave (1,0.1)-(0,0.1) above a longer master (-0.5,0)-(1.5,0).
    Slave normals point down (towards the master), open gap 0.1.
    """
    interface = MortarInterface()
    interface.add_nodes({1: [1.0, 0.1], 2: [0.0, 0.1], 3: [-0.5, 0.0], 4: [1.5, 0.0]})
    interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
    return interface


@pytest.fixture
def non_matching_interface():
    """
    Two slave segments on y=0 against three master segments on y=0.02.
    Nodes 1-3 slave, 11-14 master; every slave is paired with every master.
    """
    interface = MortarInterface()
    interface.add_nodes({
        1: [0.0, 0.0], 2: [0.5, 0.0], 3: [1.0, 0.0],
        11: [1.0, 0.02], 12: [0.6, 0.02], 13: [0.3, 0.02], 14: [0.0, 0.02],
    })
    masters = [Seg2([11, 12]), Seg2([12, 13]), Seg2([13, 14])]
    interface.add_pair(Seg2([1, 2]), masters)
    interface.add_pair(Seg2([2, 3]), masters)
    return interface


@pytest.fixture
def curved_interface():
    """
    Quadratic slave (corner, corner, mid) against a linear master lying
    strictly inside the slave's parametric range.
    """
    interface = MortarInterface()
    interface.add_nodes({
        1: [0.0, 0.0], 2: [1.0, 0.0], 3: [0.5, 0.05],
        4: [0.9, 0.01], 5: [0.15, -0.01],
    })
    interface.add_pair(Seg3([1, 2, 3]), [Seg2([4, 5])])
    return interface


# =============================================================================
# Helper Functions
# =============================================================================

def spring_stiffness(interface, node_ids, k):
    """Diagonal spring stiffness k on all dofs of ``node_ids``."""
    K = np.zeros((interface.ndofs, interface.ndofs))
    for dof in interface.find_dofs_by_nodes(node_ids):
        K[dof, dof] = k
    return K


def central_difference_jacobian(fun, x, h=1e-6):
    """Central finite difference approximation of d fun / d x."""
    x = np.asarray(x, dtype=float)
    f0 = fun(x)
    J = np.zeros((f0.size, x.size))
    for i in range(x.size):
        e = np.zeros_like(x)
        e[i] = h
        J[:, i] = (fun(x + e) - fun(x - e)) / (2.0 * h)
    return J


def is_symmetric(matrix, tol=1e-10):
    """Check if matrix is symmetric."""
    return np.allclose(matrix, matrix.T, rtol=tol, atol=tol)
