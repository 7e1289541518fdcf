"""
Tests for the contact point projectors.

Tests cover:
- Master to slave projection along interpolated normals
- Slave to master projection along a fixed normal
- Non-convergence reporting
- Sensitivities of the converged root
"""
import numpy as np
import pytest

from MortarFEM.AD.ForwardMode import AdArray, init_ad_array
from MortarFEM.Objects.Coupling.Projection import project_master_to_slave, project_slave_to_master
from MortarFEM.Objects.FEM import Seg2, Seg3


@pytest.fixture
def flat_slave():
    """Seg2 from (0,0) to (2,0) with upward normals."""
    x1 = np.array([[0.0, 0.0], [2.0, 0.0]])
    n1 = np.array([[0.0, 1.0], [0.0, 1.0]])
    return Seg2([1, 2]), x1, n1


@pytest.fixture
def curved_slave():
    """Seg3 arc with normals tilting along the element."""
    x1 = np.array([[0.0, 0.0], [2.0, 0.2], [1.0, 0.3]])
    n1 = np.array([[-0.3, 1.0], [0.2, 1.0], [0.0, 1.0]])
    n1 = n1 / np.linalg.norm(n1, axis=1)[:, None]
    return Seg3([1, 2, 3]), x1, n1


@pytest.mark.unit
@pytest.mark.mortar
class TestMasterToSlave:

    def test_point_on_slave(self, flat_slave):
        """Test projection of a point on the slave."""
        el, x1, n1 = flat_slave
        result = project_master_to_slave(el, x1, n1, np.array([1.5, 0.0]))
        assert result.converged
        assert np.isclose(result.xi, 0.5)
        assert result.iterations == 1

    def test_point_off_slave(self, flat_slave):
        """Test projection of a point off the slave."""
        el, x1, n1 = flat_slave
        result = project_master_to_slave(el, x1, n1, np.array([1.5, 0.3]))
        assert result.converged
        assert np.isclose(result.xi, 0.5)

    def test_point_outside_range_is_not_clamped(self, flat_slave):
        """Test projected coordinate outside [-1, 1] is kept."""
        el, x1, n1 = flat_slave
        result = project_master_to_slave(el, x1, n1, np.array([3.0, -0.1]))
        assert result.converged
        assert np.isclose(result.xi, 2.0)

    def test_parallel_normals_fail(self, flat_slave):
        """Test projection along a parallel normal fails."""
        el, x1, _ = flat_slave
        n1 = np.array([[1.0, 0.0], [1.0, 0.0]])
        result = project_master_to_slave(el, x1, n1, np.array([1.5, 0.3]))
        assert not result.converged
        assert "did not converge" in result.message
        assert "x2" in result.message

    def test_curved_residual_vanishes(self, curved_slave):
        """Test projection residual vanishes on a curved slave."""
        el, x1, n1 = curved_slave
        x2 = np.array([1.4, -0.2])
        result = project_master_to_slave(el, x1, n1, x2)
        assert result.converged

        N = el.basis(result.xi)
        d = N @ x1 - x2
        n = N @ n1
        assert np.isclose(d[0] * n[1] - d[1] * n[0], 0.0, atol=1e-9)

    def test_root_sensitivity_matches_finite_differences(self, curved_slave):
        """Test projected coordinate sensitivity against finite differences."""
        el, x1, n1 = curved_slave
        x2 = np.array([1.4, -0.2])
        result = project_master_to_slave(el, x1, n1, init_ad_array(x2))
        assert isinstance(result.xi, AdArray)

        h = 1e-6
        fd = np.zeros(2)
        for k in range(2):
            e = np.zeros(2)
            e[k] = h
            xi_p = project_master_to_slave(el, x1, n1, x2 + e).xi
            xi_m = project_master_to_slave(el, x1, n1, x2 - e).xi
            fd[k] = (xi_p - xi_m) / (2 * h)
        assert np.allclose(result.xi.jac, fd, atol=1e-6)

    def test_plain_inputs_give_plain_root(self, flat_slave):
        """Test plain inputs give a plain root."""
        el, x1, n1 = flat_slave
        result = project_master_to_slave(el, x1, n1, np.array([0.5, 0.1]))
        assert isinstance(result.xi, float)


@pytest.mark.unit
@pytest.mark.mortar
class TestSlaveToMaster:

    def test_linear_master(self):
        """Test projection onto a linear master."""
        el = Seg2([3, 4])
        x2 = np.array([[2.0, 0.0], [0.0, 0.0]])
        result = project_slave_to_master(el, np.array([0.5, 0.4]), np.array([0.0, -1.0]), x2)
        assert result.converged
        assert np.isclose(result.xi, 0.5)
        assert result.iterations == 1

    def test_curved_master_iteration_budget(self):
        """Test iteration budget on a curved master."""
        el = Seg3([3, 4, 5])
        x2 = np.array([[0.0, 0.0], [2.0, 0.0], [1.2, 0.5]])
        x1, n1 = np.array([0.3, 1.0]), np.array([0.0, -1.0])

        failed = project_slave_to_master(el, x1, n1, x2, max_iterations=1)
        assert not failed.converged
        assert failed.iterations == 1
        assert "slave to master" in failed.message

        result = project_slave_to_master(el, x1, n1, x2)
        assert result.converged
        assert result.iterations > 1
        assert np.isclose(el.interpolate(result.xi, x2)[0], 0.3)

    def test_slave_point_sensitivity(self):
        """Test sensitivity of the master coordinate to the slave point."""
        el = Seg3([3, 4, 5])
        x2 = np.array([[0.0, 0.0], [2.0, 0.0], [1.2, 0.5]])
        x1, n1 = np.array([0.3, 1.0]), np.array([0.0, -1.0])

        result = project_slave_to_master(el, init_ad_array(x1), n1, x2)
        # x2_x(ξ) = -0.2ξ² + ξ + 1.2 = x1_x
        xi = result.xi.val
        assert np.allclose(result.xi.jac, [1.0 / (1.0 - 0.4 * xi), 0.0])
