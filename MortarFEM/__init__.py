"""
MortarFEM - Mortar Contact and Mesh Tying for 2D Finite Elements

A Python framework for coupling non-matching discretized surfaces:
- Mesh tying: weak displacement continuity across the interface
- Frictionless contact: unilateral constraint with a primal-dual active set
- Exact linearization by forward-mode automatic differentiation

Main Components
---------------
Objects : Elements and mortar problems (import from MortarFEM.Objects)
    - FEM: Seg2 / Seg3 interface elements, time-stamped fields, quadrature
    - Coupling: MortarTying, MortarContact, MortarInterface, MortarConfig

AD : Forward-mode automatic differentiation
    - AdArray: value + Jacobian array type

Solvers : Analysis algorithms
    - StaticNonLinear: Newton driver for coupled (u, lambda) systems

Exceptions : Typed failures
    - MortarConfigurationError: invalid input (fix the model)
    - ConvergenceError / ProjectionError: numerical non-convergence
    - SingularSystemError: coupled linear system not solvable
    - GeometricDegeneracyWarning: expected, non-fatal degeneracy

Quick Start
-----------
>>> from MortarFEM import MortarInterface, MortarTying, Seg2
>>>
>>> interface = MortarInterface()
>>> interface.add_nodes({1: [0.0, 0.0], 2: [1.0, 0.0], 3: [1.0, 0.0], 4: [0.0, 0.0]})
>>> interface.add_pair(Seg2([1, 2]), [Seg2([3, 4])])
>>> problem = MortarTying(interface)
>>> result = problem.assemble()    # K, C1, C2, D, f, g

Version: 1.0
"""

__version__ = '1.0.0'

from .Exceptions import (ConvergenceError, GeometricDegeneracyWarning, MortarConfigurationError,
                         ProjectionError, SingularSystemError)
from .AD import AdArray
from .Objects import (MortarConfig, MortarContact, MortarInterface, MortarTying, Seg2, Seg3,
                      TimeSeriesField, create_element)
from .Solvers import StaticNonLinear

__all__ = [
    # Problems
    'MortarTying',
    'MortarContact',
    'MortarInterface',
    'MortarConfig',

    # Elements
    'Seg2',
    'Seg3',
    'TimeSeriesField',
    'create_element',

    # AD
    'AdArray',

    # Solvers
    'StaticNonLinear',

    # Exceptions
    'MortarConfigurationError',
    'ConvergenceError',
    'ProjectionError',
    'SingularSystemError',
    'GeometricDegeneracyWarning',
]
