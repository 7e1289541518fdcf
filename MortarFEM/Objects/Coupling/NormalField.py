"""
Nodal normal and tangent field of the slave surface.

Two evaluation policies:

**midpoint**:
    t_e = Σ dN_i/dξ(0)·x_i added to every node of the element,
    then t_j ← t_j/|t_j| and n_j = Q·t_j

**quadrature**:
    n_j += Σ_ip w·N_j(ξ_ip)·Q·t(ξ_ip) over the element rule,
    then n_j ← n_j/|n_j| and t_j = Qᵀ·n_j

Q is the 90° rotation [[0, -1], [1, 0]]. ``rotate_normals`` negates all normals.
"""

from typing import Tuple

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.Coupling.Config import MortarConfig, MortarConstants
from MortarFEM.Objects.Coupling.Geometry import normal_from_tangent, tangent_from_normal


def _accumulate_midpoint(interface, x, acc):
    for element in interface.slave_elements:
        idx = interface.local_index(element.connectivity)
        t = element.tangent(0.0, x[idx])
        F.add_at(acc, idx, F.outer(np.ones(len(idx)), t))


def _accumulate_quadrature(interface, x, acc):
    for element in interface.slave_elements:
        idx = interface.local_index(element.connectivity)
        x_el = x[idx]
        for ip in element.integration_points():
            N = element.basis(ip.xi)
            n = normal_from_tangent(element.tangent(ip.xi, x_el))
            F.add_at(acc, idx, F.outer(ip.weight * N, n))


def update_normals(interface, x, time: float, config: MortarConfig,
                   verbose: bool = False) -> Tuple[object, object]:
    """
    Compute unit nodal normals and tangents of the slave surface.

    Parameters
    ----------
    interface : MortarInterface
        Supplies slave elements and the local node index
    x : np.ndarray or AdArray
        Deformed node positions, shape (nnodes, dim)
    time : float
        Analysis time of the 'normal'/'tangent' snapshots written back
    config : MortarConfig
        ``normal_evaluation`` and ``rotate_normals`` are used

    Returns
    -------
    normals, tangents
        Shape (nnodes, dim); rows of non-slave nodes are zero

    Raises
    ------
    MortarConfigurationError
        If the accumulated direction of a slave node vanishes
    """
    policy = config.normal_evaluation or 'midpoint'
    acc = F.zeros_like(x)
    if policy == 'midpoint':
        _accumulate_midpoint(interface, x, acc)
    elif policy == 'quadrature':
        _accumulate_quadrature(interface, x, acc)
    else:
        raise MortarConfigurationError(f"Unknown normal evaluation policy '{policy}'")

    normals = F.zeros_like(x)
    tangents = F.zeros_like(x)
    for nid in interface.slave_node_ids:
        k = interface.local_index([nid])[0]
        length = F.norm(acc[k])
        if F.value(length) <= MortarConstants.ZERO_LENGTH:
            adjacent = interface.incident_slave_elements(nid)
            raise MortarConfigurationError(
                f"Slave node {nid}: accumulated {'tangent' if policy == 'midpoint' else 'normal'} "
                f"vanishes, check the orientation of the adjacent slave elements {adjacent}")
        if policy == 'midpoint':
            tangents[k] = acc[k] / length
            normals[k] = normal_from_tangent(tangents[k])
        else:
            normals[k] = acc[k] / length
            tangents[k] = tangent_from_normal(normals[k])

    if config.rotate_normals:
        normals = -normals

    # snapshot for diagnostics and reuse
    normals_val, tangents_val = F.value(normals), F.value(tangents)
    for element in interface.slave_elements:
        idx = interface.local_index(element.connectivity)
        element.update('normal', time, normals_val[idx])
        element.update('tangent', time, tangents_val[idx])

    if verbose:
        print(f"Updated {policy} normals of {len(interface.slave_node_ids)} slave nodes")

    return normals, tangents
