"""
MortarFEM Objects

Interface elements and mortar coupling problems.

Subpackages
-----------
FEM : Interface elements
    - Seg2, Seg3: Linear and quadratic segments
    - TimeSeriesField: Time-stamped element fields
    - Gauss-Legendre integration rules

Coupling : Mortar problems
    - MortarTying: Mesh tying of non-matching surfaces
    - MortarContact: Frictionless contact with active set
    - MortarInterface: Nodes, pairing and dof map
    - MortarConfig: Problem settings
"""

from .Coupling import MortarConfig, MortarContact, MortarInterface, MortarTying
from .FEM import Seg2, Seg3, TimeSeriesField, create_element

__all__ = [
    'Seg2',
    'Seg3',
    'TimeSeriesField',
    'create_element',
    'MortarConfig',
    'MortarContact',
    'MortarInterface',
    'MortarTying',
]
