"""
Primal-dual active set for frictionless contact.

For every slave node j with normal n_j, tangent t_j = Qᵀ·n_j, weighted normal
gap g_j and multiplier λ_j:

    λn = n_j·λ_j,  λt = t_j·λ_j

    always inactive:        C_j = λ_j
    active (λn - g_j > 0):  C_j = [g_j, λt]     (closed gap, no tangential traction)
    inactive:               C_j = λ_j           (released, drives λ_j to 0)

The branch is decided on values and is not differentiated.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Objects.Coupling.Config import MortarConfig
from MortarFEM.Objects.Coupling.Geometry import normal_component, tangent_from_normal


@dataclass(frozen=True)
class ActiveSetState:
    """Partition of the slave node ids after one classification."""
    active: FrozenSet[int] = field(default_factory=frozenset)
    inactive: FrozenSet[int] = field(default_factory=frozenset)
    always_inactive: FrozenSet[int] = field(default_factory=frozenset)


def is_active(la_n: float, gap_n: float) -> bool:
    return float(la_n) - float(gap_n) > 0.0


def build_contact_constraints(interface, la, gap_n, normals, config: MortarConfig,
                              verbose: bool = False) -> Tuple[object, ActiveSetState]:
    """
    Rewrite the constraint rows of the slave nodes by the active set rule.

    Parameters
    ----------
    interface : MortarInterface
        Supplies slave node ids and the local node index
    la : np.ndarray or AdArray
        Nodal multipliers, shape (nnodes, dim)
    gap_n : np.ndarray or AdArray
        Weighted normal gap, shape (nnodes,)
    normals : np.ndarray or AdArray
        Nodal normals, shape (nnodes, dim)

    Returns
    -------
    C : np.ndarray or AdArray
        Constraint rows, shape (nnodes, dim); rows of non-slave nodes stay zero
    state : ActiveSetState
    """
    C = F.zeros_like(la)
    active, inactive, special = set(), set(), set()

    for nid in interface.slave_node_ids:
        k = interface.local_index([nid])[0]
        if nid in config.always_inactive:
            if verbose:
                print(f"special node {nid} always inactive")
            C[k] = la[k]
            special.add(nid)
            continue

        n = normals[k]
        t = tangent_from_normal(n)
        la_n = normal_component(la[k], n)
        la_t = F.dot(t, la[k])

        if is_active(F.value(la_n), F.value(gap_n[k])):
            if verbose:
                print(f"set node {nid} active, normal direction = {F.value(n)}, "
                      f"tangent plane = {F.value(t)}")
            C[k, 0] = gap_n[k]
            C[k, 1] = la_t
            active.add(nid)
        else:
            C[k] = la[k]
            inactive.add(nid)

    return C, ActiveSetState(frozenset(active), frozenset(inactive), frozenset(special))
