import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import (GeometricDegeneracyWarning, MortarConfigurationError,
                                  ProjectionError)
from MortarFEM.Objects.Coupling.Config import MortarConfig
from MortarFEM.Objects.Coupling.Geometry import distance, midpoint
from MortarFEM.Objects.Coupling.Linearization import AssemblyResult, linearize
from MortarFEM.Objects.Coupling.MortarInterface import MortarInterface
from MortarFEM.Objects.Coupling.NormalField import update_normals
from MortarFEM.Objects.Coupling.Projection import project_slave_to_master
from MortarFEM.Objects.Coupling.Segmentation import (SEGMENT_DEGENERATE, SEGMENT_PROJECTION_FAILED,
                                                     SEGMENT_SINGULAR_GRAM, compute_segment)
from MortarFEM.Objects.FEM.IntegrationRule import get_integration_points, map_to_segment

FORMULATIONS = ('total', 'incremental', 'forwarddiff')


@dataclass
class Assembly:
    """
    Solution state of a mortar problem between assembly calls.

    Attributes
    ----------
    u, la : np.ndarray
        Current displacement and multiplier vectors, shape (ndofs,)
    u_prev, la_prev : np.ndarray
        Values before the last ``update_assembly``
    u_norm_change, la_norm_change : float
        |u - u_prev| and |la - la_prev|
    result : AssemblyResult or None
        Blocks of the last assembly call
    """
    u: np.ndarray
    la: np.ndarray
    u_prev: np.ndarray
    la_prev: np.ndarray
    u_norm_change: float = 0.0
    la_norm_change: float = 0.0
    result: Optional[AssemblyResult] = None

    @classmethod
    def zeros(cls, ndofs: int) -> 'Assembly':
        return cls(np.zeros(ndofs), np.zeros(ndofs), np.zeros(ndofs), np.zeros(ndofs))


@dataclass
class GaussPoint:
    """Kinematics of one integration point of a slave/master segment."""
    weight: Any
    N1: Any
    N2: Any
    Phi: Any
    x_s: Any
    x_m: Any
    n_s: Any
    u_s: Any
    u_m: Any
    X_s: Any
    X_m: Any
    slave_idx: np.ndarray = field(repr=False, default=None)


class BaseMortar(ABC):
    """
    Abstract base class for 2D mortar boundary problems.

    Provides the shared residual functional: nodal normals, segmentation,
    dual basis and the Gauss point loop with action/reaction force transfer.
    Subclasses choose the constraint policy (equality or contact).

    The functional maps x = [u; λ] (length 2·ndofs) to [fc; C], the force
    imbalance and the constraint residual, and ``assemble`` linearizes it
    with forward-mode automatic differentiation.

    Attributes
    ----------
    interface : MortarInterface
        Nodes, slave/master pairing and dof map
    config : MortarConfig
        Immutable settings, problem defaults filled in
    formulation : str
        'total', 'incremental' or 'forwarddiff' (see ``update_assembly``)
    assembly : Assembly
        Current state (u, la) and last assembly result
    diagnostics : dict
        Counters of the last functional evaluation
    verbose : bool
        Print progress information
    """
    DEFAULT_INTEGRATION_ORDER = 3
    DEFAULT_NORMAL_EVALUATION = 'midpoint'
    DEFAULT_SKIP_FAILED_SEGMENTATION = False

    def __init__(self, interface: MortarInterface, config: MortarConfig = None,
                 mortar_type: str = 'mortar', formulation: str = 'forwarddiff',
                 name: str = None):
        if formulation not in FORMULATIONS:
            raise MortarConfigurationError(
                f"Unknown formulation '{formulation}'. Supported: {FORMULATIONS}")
        config = (config or MortarConfig()).validate()
        self.config = config.with_defaults(self.DEFAULT_INTEGRATION_ORDER,
                                           self.DEFAULT_NORMAL_EVALUATION,
                                           self.DEFAULT_SKIP_FAILED_SEGMENTATION)
        self.interface = interface
        self.mortar_type = mortar_type
        self.formulation = formulation
        self.name = name or mortar_type
        self.time = 0.0
        self.verbose = False
        self.assembly = Assembly.zeros(interface.ndofs)
        self.diagnostics = self._empty_diagnostics()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(name='{self.name}', slaves={len(self.interface.pairs)}, "
                f"ndofs={self.interface.ndofs}, formulation='{self.formulation}')")

    @staticmethod
    def _empty_diagnostics() -> Dict:
        return {
            'processed_pairs': 0,
            'culled_pairs': 0,
            'degenerate_pairs': 0,
            'failed_projection_pairs': 0,
            'singular_gram_pairs': 0,
            'skipped_gauss_points': 0,
        }

    # ============================================================
    # Constraint policy (subclasses)
    # ============================================================

    @abstractmethod
    def jacobian_geometry(self, X1: np.ndarray, x1):
        """Slave nodal coordinates measuring the integration Jacobian."""
        pass

    @abstractmethod
    def constraint_buffer(self, u):
        """Zero accumulator for the constraint contributions."""
        pass

    @abstractmethod
    def integrate_constraint(self, gap, gp: GaussPoint):
        """Add the constraint contribution of one Gauss point to ``gap``."""
        pass

    @abstractmethod
    def finalize_constraints(self, gap, la, normals, tangents):
        """Turn the accumulated contributions into constraint rows C, shape (nnodes, dim)."""
        pass

    # ============================================================
    # State
    # ============================================================

    def initialize(self, time: float = 0.0):
        """Prepare element fields at ``time`` and size the solution vectors."""
        self.time = time
        self.interface.validate()
        self.interface.initialize(time)
        ndofs = self.interface.ndofs
        if self.assembly.u.size != ndofs or self.assembly.la.size != ndofs:
            self.assembly = Assembly.zeros(ndofs)

    def update_assembly(self, u: np.ndarray, la: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Store a new solution according to the formulation.

        - 'total': u, la replace the current vectors
        - 'incremental': u is an increment, la replaces
        - 'forwarddiff': both are increments
        """
        assembly = self.assembly
        u = np.asarray(u, dtype=float)
        la = np.asarray(la, dtype=float)
        if u.size != assembly.u.size:
            assembly.u = np.zeros(u.size)
        if la.size != assembly.la.size:
            assembly.la = np.zeros(la.size)

        assembly.u_prev = assembly.u.copy()
        assembly.la_prev = assembly.la.copy()
        if self.formulation == 'total':
            if self.verbose:
                print(f"{self.name}: total formulation, replacing solution vector with new values")
            assembly.u = u.copy()
            assembly.la = la.copy()
        elif self.formulation == 'incremental':
            if self.verbose:
                print(f"{self.name}: incremental formulation, adding increment to solution vector")
            assembly.u = assembly.u + u
            assembly.la = la.copy()
        else:
            if self.verbose:
                print(f"{self.name}: forwarddiff formulation, adding increment to solution "
                      f"vector and reaction force vector")
            assembly.u = assembly.u + u
            assembly.la = assembly.la + la

        assembly.u_norm_change = float(np.linalg.norm(assembly.u - assembly.u_prev))
        assembly.la_norm_change = float(np.linalg.norm(assembly.la - assembly.la_prev))
        return assembly.u, assembly.la

    def update_elements(self, time: float = None):
        """Write u and la back to the 'displacement' and 'lambda' element snapshots."""
        time = self.time if time is None else time
        dim = self.interface.dim
        u = self.assembly.u.reshape(-1, dim)
        la = self.assembly.la.reshape(-1, dim)
        for element in self.interface.elements:
            idx = self.interface.local_index(element.connectivity)
            element.update('displacement', time, u[idx])
            element.update('lambda', time, la[idx])

    # ============================================================
    # Assembly
    # ============================================================

    def assemble(self, time: float = None) -> AssemblyResult:
        """Linearize the interface functional at the current (u, la)."""
        if time is not None:
            self.time = time
        self.interface.validate()
        x = np.concatenate([self.assembly.u, self.assembly.la])
        self.assembly.result = linearize(self.calculate_interface, x, self.config.drop_tolerance)
        return self.assembly.result

    def residual(self, u: np.ndarray = None, la: np.ndarray = None) -> np.ndarray:
        """Value of the interface functional [fc; C] without sensitivities."""
        u = self.assembly.u if u is None else np.asarray(u, dtype=float)
        la = self.assembly.la if la is None else np.asarray(la, dtype=float)
        return F.value(self.calculate_interface(np.concatenate([u, la])))

    def calculate_interface(self, x):
        """
        Interface functional r(x) = [fc; C].

        Parameters
        ----------
        x : np.ndarray or AdArray
            [u; la], length 2·ndofs, node-major (node k at dofs dim*k + j)

        Returns
        -------
        np.ndarray or AdArray
            Force imbalance followed by constraint residual, length 2·ndofs
        """
        interface = self.interface
        config = self.config
        dim = interface.dim
        ndofs = len(x) // 2
        if ndofs != interface.ndofs:
            raise MortarConfigurationError(
                f"Unknown vector has {ndofs} dofs per half, interface has {interface.ndofs}")
        nnodes = ndofs // dim
        u = x[:ndofs].reshape(nnodes, dim)
        la = x[ndofs:].reshape(nnodes, dim)
        X = interface.geometry(self.time)
        xc = X + u

        self.diagnostics = self._empty_diagnostics()
        normals, tangents = update_normals(interface, xc, self.time, config)

        fc = F.zeros_like(u)
        gap = self.constraint_buffer(u)
        rule = get_integration_points(config.integration_order)

        for pair in interface.pairs:
            slave = pair.slave
            s_idx = interface.local_index(slave.connectivity)
            X1, u1, x1 = X[s_idx], u[s_idx], xc[s_idx]
            n1, la1 = normals[s_idx], la[s_idx]
            J1 = self.jacobian_geometry(X1, x1)

            for master in pair.masters:
                m_idx = interface.local_index(master.connectivity)
                X2, u2, x2 = X[m_idx], u[m_idx], xc[m_idx]

                c1, c2 = slave.CORNER_NODES
                m1, m2 = master.CORNER_NODES
                if distance(midpoint(x1[c1], x1[c2]), midpoint(x2[m1], x2[m2])) > config.maximum_distance:
                    self.diagnostics['culled_pairs'] += 1
                    continue

                segment = compute_segment(slave, master, x1, n1, x2, J1, config,
                                          config.integration_order)
                if segment.status == SEGMENT_PROJECTION_FAILED:
                    self.diagnostics['failed_projection_pairs'] += 1
                    if not config.skip_failed_segmentation:
                        raise ProjectionError(segment.projection.message)
                    warnings.warn(f"failed to create projection for {slave} / {master}, pair skipped",
                                  GeometricDegeneracyWarning)
                    continue
                if segment.status == SEGMENT_DEGENERATE:
                    self.diagnostics['degenerate_pairs'] += 1
                    continue
                if segment.status == SEGMENT_SINGULAR_GRAM:
                    self.diagnostics['singular_gram_pairs'] += 1
                    warnings.warn(f"dual basis Gram matrix of {slave} / {master} is singular "
                                  f"(cond = {segment.condition:.2e}), pair skipped",
                                  GeometricDegeneracyWarning)
                    continue
                self.diagnostics['processed_pairs'] += 1

                for ip in rule:
                    xi_s = map_to_segment(ip.xi, segment.xi_a, segment.xi_b)
                    N1 = slave.basis(xi_s)
                    w = ip.weight * slave.detJ(xi_s, J1) * segment.length
                    x_s = N1 @ x1
                    n_s = N1 @ n1

                    projection = project_slave_to_master(master, x_s, n_s, x2,
                                                         config.projection_tolerance,
                                                         config.max_projection_iterations)
                    if not projection.converged:
                        if not config.skip_failed_gauss_projection:
                            raise ProjectionError(projection.message)
                        self.diagnostics['skipped_gauss_points'] += 1
                        warnings.warn(f"failed to project Gauss point of {slave} onto {master}, "
                                      f"point skipped", GeometricDegeneracyWarning)
                        continue

                    N2 = master.basis(projection.xi)
                    Phi = segment.Ae @ N1
                    la_s = Phi @ la1

                    F.add_at(fc, s_idx, w * F.outer(N1, la_s))
                    F.add_at(fc, m_idx, -(w * F.outer(N2, la_s)))

                    gp = GaussPoint(weight=w, N1=N1, N2=N2, Phi=Phi,
                                    x_s=x_s, x_m=N2 @ x2, n_s=n_s,
                                    u_s=N1 @ u1, u_m=N2 @ u2,
                                    X_s=N1 @ X1, X_m=N2 @ X2,
                                    slave_idx=s_idx)
                    self.integrate_constraint(gap, gp)

        C = self.finalize_constraints(gap, la, normals, tangents)

        if self.verbose:
            print("interface residual ready")
        return F.concatenate([fc.reshape(-1), C.reshape(-1)])

    # ============================================================
    # Dof helpers
    # ============================================================

    def get_gdofs(self, element):
        return self.interface.get_gdofs(element)

    def get_info(self) -> Dict:
        """Return dictionary with problem metadata."""
        return {
            'mortar_type': self.mortar_type,
            'name': self.name,
            'formulation': self.formulation,
            'num_slave_elements': len(self.interface.pairs),
            'num_slave_nodes': len(self.interface.slave_node_ids),
            'ndofs': self.interface.ndofs,
            'integration_order': self.config.integration_order,
            'normal_evaluation': self.config.normal_evaluation,
            'dual_basis': self.config.dual_basis,
            **self.diagnostics,
        }
