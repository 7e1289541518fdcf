"""
Tests for the forward-mode linearization of the interface functional.

Tests cover:
- Block partition of a known functional
- Pruning and input checks
- Tying and contact Jacobians against finite differences
- Mortar coupling blocks of a conforming interface
"""
import numpy as np
import pytest

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.Coupling import (MortarConfig, MortarContact, MortarInterface,
                                        MortarTying, linearize)
from MortarFEM.Objects.FEM import Seg2

from conftest import central_difference_jacobian


def toy_functional(x):
    # r = [x0·x2, x1, x0², 3·x3]
    return F.stack([x[0] * x[2], x[1], x[0] ** 2, 3.0 * x[3]])


def finite_difference_blocks(problem, u, la):
    n = u.size

    def fun(x):
        return problem.residual(x[:n], x[n:])

    return central_difference_jacobian(fun, np.concatenate([u, la]))


@pytest.mark.unit
@pytest.mark.ad
class TestLinearize:

    def test_block_partition(self):
        """Test Jacobian block partition."""
        result = linearize(toy_functional, np.array([1.0, 2.0, 3.0, 4.0]))
        assert np.allclose(result.K.toarray(), [[3.0, 0.0], [0.0, 1.0]])
        assert np.allclose(result.C1.toarray(), [[1.0, 0.0], [0.0, 0.0]])
        assert np.allclose(result.C2.toarray(), [[2.0, 0.0], [0.0, 0.0]])
        assert np.allclose(result.D.toarray(), [[0.0, 0.0], [0.0, 3.0]])
        assert np.allclose(result.f, [-3.0, -2.0])
        assert np.allclose(result.g, [-1.0, -12.0])
        assert result.ndofs == 2

    def test_full_jacobian_and_rhs(self):
        """Test full Jacobian and right-hand side."""
        result = linearize(toy_functional, np.array([1.0, 2.0, 3.0, 4.0]))
        expected = [[3, 0, 1, 0], [0, 1, 0, 0], [2, 0, 0, 0], [0, 0, 0, 3]]
        assert np.allclose(result.jacobian().toarray(), expected)
        assert np.allclose(result.rhs(), [-3.0, -2.0, -1.0, -12.0])

    def test_small_entries_dropped(self):
        """Test entries below the drop tolerance are removed."""
        def fun(x):
            return F.stack([1e-14 * x[0], x[1], x[2], x[3] + 1e-14])

        result = linearize(fun, np.zeros(4), drop_tolerance=1e-12)
        assert result.K[0, 0] == 0.0
        assert result.K.nnz == 1
        assert result.g[1] == 0.0

    def test_odd_length_rejected(self):
        """Test unknown vector of odd length is rejected."""
        with pytest.raises(MortarConfigurationError, match="even length"):
            linearize(toy_functional, np.zeros(3))

    def test_functional_must_propagate_sensitivities(self):
        """Test functional returning plain values is rejected."""
        with pytest.raises(TypeError):
            linearize(lambda x: np.zeros(4), np.zeros(4))


@pytest.mark.ad
@pytest.mark.mortar
class TestTyingJacobian:

    def test_conforming_coupling_blocks(self, touching_interface):
        """Test coupling blocks of a conforming interface."""
        problem = MortarTying(touching_interface)
        problem.initialize(0.0)
        result = problem.assemble()

        expected = np.zeros((8, 8))
        for row, (slave_dof, master_dof) in enumerate([(0, 6), (1, 7), (2, 4), (3, 5)]):
            expected[row, slave_dof] = 0.5
            expected[row, master_dof] = -0.5
        assert np.allclose(result.C2.toarray(), expected)
        assert np.allclose(result.C1.toarray(), expected)
        assert result.D.nnz == 0
        assert result.K.nnz == 0

    def test_curved_matches_finite_differences(self, curved_interface):
        """Test curved interface Jacobian against finite differences."""
        problem = MortarTying(curved_interface, MortarConfig(adjust=True))
        problem.initialize(0.0)
        rng = np.random.default_rng(3)
        n = curved_interface.ndofs
        problem.assembly.u = 1e-3 * rng.normal(size=n)
        problem.assembly.la = rng.normal(size=n)

        result = problem.assemble()
        J_fd = finite_difference_blocks(problem, problem.assembly.u, problem.assembly.la)
        assert np.allclose(result.jacobian().toarray(), J_fd, atol=1e-6)
        assert np.allclose(result.rhs(), -problem.residual())

    def test_non_matching_matches_finite_differences(self, non_matching_interface):
        """Test non-matching interface Jacobian against finite differences."""
        problem = MortarTying(non_matching_interface)
        problem.initialize(0.0)
        rng = np.random.default_rng(5)
        n = non_matching_interface.ndofs
        problem.assembly.u = 1e-3 * rng.normal(size=n)
        problem.assembly.la = rng.normal(size=n)

        result = problem.assemble()
        J_fd = finite_difference_blocks(problem, problem.assembly.u, problem.assembly.la)
        assert np.allclose(result.jacobian().toarray(), J_fd, atol=1e-6)


@pytest.mark.ad
@pytest.mark.contact
class TestContactJacobian:

    @pytest.fixture
    def tilted_interface(self):
        """Slave (1,0.05)-(0,0.05) over a short tilted master."""
        interface = MortarInterface()
        interface.add_nodes({1: [1.0, 0.05], 2: [0.0, 0.05], 3: [0.2, -0.01], 4: [0.8, 0.02]})
        interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
        return interface

    def test_mixed_active_set_matches_finite_differences(self, tilted_interface):
        """Test contact Jacobian with a mixed active set."""
        problem = MortarContact(tilted_interface)
        problem.initialize(0.0)
        rng = np.random.default_rng(7)
        problem.assembly.u = 1e-3 * rng.normal(size=8)
        la = np.zeros(8)
        k1, k2 = tilted_interface.local_index([1, 2])
        la[2 * k1:2 * k1 + 2] = [0.0, -1.0]
        la[2 * k2:2 * k2 + 2] = [0.0, 1.0]
        problem.assembly.la = la

        result = problem.assemble()
        assert problem.active_set.active == frozenset({1})
        assert problem.active_set.inactive == frozenset({2})

        J_fd = finite_difference_blocks(problem, problem.assembly.u, problem.assembly.la)
        assert np.allclose(result.jacobian().toarray(), J_fd, atol=1e-6)

    def test_inactive_rows_are_identity(self, tilted_interface):
        """Test inactive contact rows are identity in the multipliers."""
        problem = MortarContact(tilted_interface)
        problem.initialize(0.0)
        result = problem.assemble()

        dofs = tilted_interface.find_dofs_by_nodes([1, 2])
        assert np.allclose(result.D.toarray()[np.ix_(dofs, dofs)], np.eye(4))
        assert np.allclose(result.C2.toarray()[dofs], 0.0)
