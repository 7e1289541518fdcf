import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Objects.Coupling.ActiveSet import ActiveSetState, build_contact_constraints
from MortarFEM.Objects.Coupling.BaseCoupling import BaseMortar, GaussPoint
from MortarFEM.Objects.Coupling.Config import MortarConfig, MortarConstants
from MortarFEM.Objects.Coupling.Geometry import normal_component
from MortarFEM.Objects.Coupling.MortarInterface import MortarInterface


class MortarContact(BaseMortar):
    """
    Frictionless unilateral contact (inequality constraint).

    The weighted normal gap of slave node j

        g_j = Σ_ip w·Φ_j·gn,    gn = gap_sign·n_s·(x_s - x_m)

    is integrated with the deformed-geometry Jacobian, by default with 5 Gauss
    points per segment and quadrature-averaged normals, and handed to the
    primal-dual active set (see ``ActiveSet``) which decides the constraint
    row of every slave node.

    With the slave normals pointing towards the master and gap_sign = -1,
    an open gap is positive and a positive normal multiplier is a pressure.

    Attributes
    ----------
    active_set : ActiveSetState
        Partition chosen at the last functional evaluation
    """
    DEFAULT_INTEGRATION_ORDER = MortarConstants.CONTACT_INTEGRATION_ORDER
    DEFAULT_NORMAL_EVALUATION = 'quadrature'
    DEFAULT_SKIP_FAILED_SEGMENTATION = True

    def __init__(self, interface: MortarInterface, config: MortarConfig = None,
                 formulation: str = 'forwarddiff', name: str = None):
        super().__init__(interface, config, mortar_type='contact',
                         formulation=formulation, name=name)
        self.active_set = ActiveSetState()

    def jacobian_geometry(self, X1, x1):
        return x1

    def constraint_buffer(self, u):
        return F.zeros_like(u, shape=(self.interface.nnodes,))

    def integrate_constraint(self, gap, gp: GaussPoint):
        gn = self.config.gap_sign * normal_component(gp.x_s - gp.x_m, gp.n_s)
        F.add_at(gap, gp.slave_idx, gp.weight * gn * gp.Phi)

    def finalize_constraints(self, gap, la, normals, tangents):
        if self.verbose:
            gap_val = F.value(gap)
            print(f"gap: {np.sort(gap_val[gap_val != 0.0])}")
        C, self.active_set = build_contact_constraints(self.interface, la, gap, normals,
                                                       self.config, self.verbose)
        return C

    def get_info(self):
        info = super().get_info()
        info['active_nodes'] = sorted(self.active_set.active)
        info['inactive_nodes'] = sorted(self.active_set.inactive)
        return info
