"""
Tests for the primal-dual active set of frictionless contact.
"""
import numpy as np
import pytest

from MortarFEM.AD.ForwardMode import init_ad_array
from MortarFEM.Objects.Coupling import MortarConfig, build_contact_constraints
from MortarFEM.Objects.Coupling.ActiveSet import is_active


@pytest.fixture
def contact_state(contact_interface):
    """Slave normals (0,-1), weighted gap 0.1 at both slave nodes."""
    k1, k2 = contact_interface.local_index([1, 2])
    normals = np.zeros((4, 2))
    normals[[k1, k2]] = [0.0, -1.0]
    gap = np.zeros(4)
    gap[[k1, k2]] = 0.1
    la = np.zeros((4, 2))
    la[k1] = [0.0, -2.0]
    la[k2] = [0.5, 1.0]
    return contact_interface, la, gap, normals, (k1, k2)


@pytest.mark.unit
@pytest.mark.contact
@pytest.mark.parametrize("la_n, gap_n, expected", [
    (1.0, 0.5, True),
    (0.5, 0.5, False),
    (0.0, -0.1, True),
    (0.0, 0.1, False),
])
def test_activity_rule(la_n, gap_n, expected):
    """Test the activity rule lambda_n - g > 0 at its boundary."""
    assert is_active(la_n, gap_n) is expected


@pytest.mark.unit
@pytest.mark.contact
class TestConstraintRows:

    def test_active_and_inactive_rows(self, contact_state):
        """Test gap row for active nodes and multiplier row for inactive nodes."""
        interface, la, gap, normals, (k1, k2) = contact_state
        C, state = build_contact_constraints(interface, la, gap, normals, MortarConfig())

        assert state.active == frozenset({1})
        assert state.inactive == frozenset({2})
        assert np.allclose(C[k1], [0.1, 0.0])
        assert np.allclose(C[k2], [0.5, 1.0])

    def test_tangential_multiplier(self, contact_state):
        """Test tangential multiplier row of an active node."""
        interface, la, gap, normals, (k1, _) = contact_state
        la[k1] = [0.3, -2.0]
        C, _ = build_contact_constraints(interface, la, gap, normals, MortarConfig())
        # t = Qᵀ·n = (-1, 0)
        assert np.allclose(C[k1], [0.1, -0.3])

    def test_always_inactive_node(self, contact_state):
        """Test always-inactive node keeps the multiplier row under pressure."""
        interface, la, gap, normals, (k1, _) = contact_state
        C, state = build_contact_constraints(interface, la, gap, normals,
                                             MortarConfig(always_inactive={1}))
        assert state.active == frozenset()
        assert state.always_inactive == frozenset({1})
        assert np.allclose(C[k1], [0.0, -2.0])

    def test_master_rows_stay_zero(self, contact_state):
        """Test master rows carry no contact constraint."""
        interface, la, gap, normals, _ = contact_state
        C, _ = build_contact_constraints(interface, la, gap, normals, MortarConfig())
        k = interface.local_index([3, 4])
        assert np.allclose(C[k], 0.0)

    def test_sensitivities_follow_branch(self, contact_state):
        """Test constraint sensitivities follow the active set branch."""
        interface, la, gap, normals, (k1, k2) = contact_state
        la_ad = init_ad_array(la.ravel()).reshape(4, 2)
        C, _ = build_contact_constraints(interface, la_ad, gap, normals, MortarConfig())

        # active row: d(λt)/dλ = t; inactive row: identity
        assert np.allclose(C.jac[k1, 1, 2 * k1:2 * k1 + 2], [-1.0, 0.0])
        assert np.allclose(C.jac[k1, 0], 0.0)
        assert np.allclose(C.jac[k2, :, 2 * k2:2 * k2 + 2], np.eye(2))

    def test_verbose_messages(self, contact_state, capsys):
        """Test verbose active set messages."""
        interface, la, gap, normals, _ = contact_state
        build_contact_constraints(interface, la, gap, normals,
                                  MortarConfig(always_inactive={2}), verbose=True)
        out = capsys.readouterr().out
        assert "set node 1 active" in out
        assert "special node 2 always inactive" in out
