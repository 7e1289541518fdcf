"""
Segmentation and Dual Basis
===========================

For a slave/master pair the two master corner nodes are projected onto the
slave (master → slave projection), clamped into [-1, 1] and define the
overlap sub-segment [ξa, ξb] with half-length l = ½|ξb - ξa|.

On the sub-segment, with w = w_ip·detJ(ξ)·l:

    De = Σ w·diag(N1)          Me = Σ w·N1⊗N1          Ae = De·Me⁻¹

Φ = Ae·N1 is biorthogonal to N1: ∫Φ_i N_j = δ_ij·De_ii. With the dual basis
disabled Ae is the identity and Φ = N1.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Objects.Coupling.Config import MortarConfig, MortarConstants
from MortarFEM.Objects.Coupling.Projection import ProjectionResult, project_master_to_slave
from MortarFEM.Objects.FEM.IntegrationRule import get_integration_points, map_to_segment

SEGMENT_OK = 'ok'
SEGMENT_DEGENERATE = 'degenerate'
SEGMENT_PROJECTION_FAILED = 'projection_failed'
SEGMENT_SINGULAR_GRAM = 'singular_gram'


@dataclass
class Segment:
    """
    Overlap of one slave/master pair on the slave parametric line.

    Attributes
    ----------
    status : str
        'ok', 'degenerate', 'projection_failed' or 'singular_gram'
    xi_a, xi_b : float or AdArray
        Clamped segment end points on the slave
    length : float or AdArray
        Half-length l of the segment in ξ
    De, Me, Ae : np.ndarray or AdArray
        Weighted basis diagonal, Gram matrix and dual basis transform
    projection : ProjectionResult or None
        The failed projection when status is 'projection_failed'
    """
    status: str
    xi_a: Any = None
    xi_b: Any = None
    length: Any = 0.0
    De: Any = None
    Me: Any = None
    Ae: Any = None
    projection: Optional[ProjectionResult] = None
    condition: float = np.nan

    @property
    def is_valid(self) -> bool:
        return self.status == SEGMENT_OK


def compute_segment(slave, master, x1, n1, x2, jacobian_geometry,
                    config: MortarConfig, order: int) -> Segment:
    """
    Segment a slave/master pair and build the dual basis transform.

    Parameters
    ----------
    slave, master : BaseFE
        Paired elements
    x1, n1 : np.ndarray or AdArray
        Deformed slave node positions and nodal normals, shape (nnodes, dim)
    x2 : np.ndarray or AdArray
        Deformed master node positions, shape (nnodes, dim)
    jacobian_geometry : np.ndarray or AdArray
        Slave nodal coordinates measuring detJ (reference or deformed)
    config : MortarConfig
        ``dual_basis`` and projection settings are used
    order : int
        Gauss points on the segment

    Returns
    -------
    Segment
    """
    xi_ends = []
    for corner in master.CORNER_NODES:
        result = project_master_to_slave(slave, x1, n1, x2[corner],
                                         config.projection_tolerance,
                                         config.max_projection_iterations)
        if not result.converged:
            return Segment(SEGMENT_PROJECTION_FAILED, projection=result)
        xi_ends.append(F.clip(result.xi, -1.0, 1.0))

    xi_a, xi_b = xi_ends
    length = 0.5 * F.absolute(xi_b - xi_a)
    if F.value(length) <= MortarConstants.ZERO_LENGTH:
        return Segment(SEGMENT_DEGENERATE, xi_a, xi_b, length)

    nsl = len(slave)
    De, Me = 0.0, 0.0
    for ip in get_integration_points(order):
        xi_s = map_to_segment(ip.xi, xi_a, xi_b)
        N1 = slave.basis(xi_s)
        w = ip.weight * slave.detJ(xi_s, jacobian_geometry) * length
        De = De + w * F.diag(N1)
        Me = Me + w * F.outer(N1, N1)

    if not config.dual_basis:
        return Segment(SEGMENT_OK, xi_a, xi_b, length, De, Me, np.eye(nsl))

    condition = np.linalg.cond(F.value(Me))
    if not np.isfinite(condition) or condition > MortarConstants.MAX_GRAM_CONDITION:
        return Segment(SEGMENT_SINGULAR_GRAM, xi_a, xi_b, length, De, Me, condition=condition)
    try:
        Ae = De @ F.inv(Me)
    except np.linalg.LinAlgError:
        return Segment(SEGMENT_SINGULAR_GRAM, xi_a, xi_b, length, De, Me, condition=condition)
    return Segment(SEGMENT_OK, xi_a, xi_b, length, De, Me, Ae, condition=condition)
