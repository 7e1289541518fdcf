"""
Interface elements and their supporting data.

Elements
--------
Seg2 : 2-node linear segment
Seg3 : 3-node quadratic segment (corner, corner, mid)
BaseFE : Abstract base class (basis, derivative, field snapshots)

Utilities
---------
TimeSeriesField : Time-stamped field snapshots of an element
IntegrationPoint, get_integration_points : Gauss-Legendre rules on [-1, 1]
create_element : Element from a family tag ('Seg2', 'Seg3')
"""

from .BaseFE import BaseFE
from .Field import Snapshot, TimeSeriesField
from .IntegrationRule import IntegrationPoint, gauss_points_1d, get_integration_points, map_to_segment
from .Segments import ELEMENT_FAMILIES, Seg2, Seg3, create_element

__all__ = [
    # Elements
    'BaseFE',
    'Seg2',
    'Seg3',
    'ELEMENT_FAMILIES',
    'create_element',

    # Fields
    'Snapshot',
    'TimeSeriesField',

    # Quadrature
    'IntegrationPoint',
    'gauss_points_1d',
    'get_integration_points',
    'map_to_segment',
]
