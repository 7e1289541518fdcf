from MortarFEM.AD import ForwardMode as F
from MortarFEM.Objects.Coupling.BaseCoupling import BaseMortar, GaussPoint
from MortarFEM.Objects.Coupling.Config import MortarConfig, MortarConstants
from MortarFEM.Objects.Coupling.MortarInterface import MortarInterface


class MortarTying(BaseMortar):
    """
    Mesh tying of two non-matching surfaces (equality constraint).

    Enforces full vector continuity of the displacement across the interface
    in the weak mortar sense:

        C_j = Σ_ip w·Φ_j·(u_s - u_m)   [+ w·Φ_j·(X_s - X_m) if adjust]

    Integration uses the reference-geometry Jacobian and, by default,
    3 Gauss points per segment with midpoint normals. A projection failure
    during segmentation aborts the assembly.

    Examples
    --------
    >>> interface = MortarInterface()
    >>> interface.add_nodes({1: [0, 0], 2: [1, 0], 3: [1, 0], 4: [0, 0]})
    >>> interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
    >>> problem = MortarTying(interface)
    >>> result = problem.assemble()
    """
    DEFAULT_INTEGRATION_ORDER = MortarConstants.TYING_INTEGRATION_ORDER
    DEFAULT_NORMAL_EVALUATION = 'midpoint'
    DEFAULT_SKIP_FAILED_SEGMENTATION = False

    def __init__(self, interface: MortarInterface, config: MortarConfig = None,
                 formulation: str = 'forwarddiff', name: str = None):
        super().__init__(interface, config, mortar_type='tying',
                         formulation=formulation, name=name)

    def jacobian_geometry(self, X1, x1):
        return X1

    def constraint_buffer(self, u):
        return F.zeros_like(u)

    def integrate_constraint(self, gap, gp: GaussPoint):
        G = gp.weight * F.outer(gp.Phi, gp.u_s - gp.u_m)
        if self.config.adjust:
            G = G + gp.weight * F.outer(gp.Phi, gp.X_s - gp.X_m)
        F.add_at(gap, gp.slave_idx, G)

    def finalize_constraints(self, gap, la, normals, tangents):
        return gap
