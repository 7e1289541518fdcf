"""
Mortar Coupling Module for MortarFEM

This module assembles the interface residual of two non-matching 2D surfaces
and its exact linearization with respect to displacements and multipliers.

Problems
--------
MortarTying : Mesh tying (equality, full displacement continuity)
    - Reference-geometry integration, midpoint normals
    - Projection failures are fatal

MortarContact : Frictionless unilateral contact (inequality)
    - Deformed-geometry integration, quadrature normals
    - Primal-dual active set decides the constraint rows

Base Classes
------------
BaseMortar : Shared residual functional, assembly state and formulations

Building Blocks
---------------
update_normals : Nodal normal/tangent field of the slave surface
project_master_to_slave, project_slave_to_master : Contact point projection
compute_segment : Segmentation and biorthogonal (dual) basis
linearize : Forward-mode Jacobian partitioned into K, C1, C2, D, f, g
build_contact_constraints : Active set classification

Configuration
-------------
MortarConfig : Immutable settings passed into every problem
MortarConstants : Numerical constants

Usage
-----
>>> from MortarFEM.Objects.Coupling import MortarContact, MortarInterface, MortarConfig
>>> from MortarFEM.Objects.FEM import Seg2
>>>
>>> interface = MortarInterface()
>>> interface.add_nodes({1: [1.0, 0.1], 2: [0.0, 0.1], 3: [0.0, 0.0], 4: [1.0, 0.0]})
>>> interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
>>> problem = MortarContact(interface, MortarConfig(always_inactive={7}))
>>> result = problem.assemble()
"""

from .ActiveSet import ActiveSetState, build_contact_constraints
from .BaseCoupling import Assembly, BaseMortar, GaussPoint
from .Config import MortarConfig, MortarConstants
from .Geometry import cross2
from .Linearization import AssemblyResult, linearize
from .MortarContact import MortarContact
from .MortarInterface import ContactPair, MortarInterface, Node
from .MortarTying import MortarTying
from .NormalField import update_normals
from .Projection import ProjectionResult, project_master_to_slave, project_slave_to_master
from .Segmentation import Segment, compute_segment

__all__ = [
    # Problems
    'MortarTying',
    'MortarContact',
    'BaseMortar',
    'Assembly',
    'GaussPoint',

    # Interface data
    'MortarInterface',
    'ContactPair',
    'Node',

    # Configuration
    'MortarConfig',
    'MortarConstants',

    # Building blocks
    'cross2',
    'update_normals',
    'ProjectionResult',
    'project_master_to_slave',
    'project_slave_to_master',
    'Segment',
    'compute_segment',
    'AssemblyResult',
    'linearize',
    'ActiveSetState',
    'build_contact_constraints',
]
