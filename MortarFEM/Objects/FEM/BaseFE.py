from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.FEM.Field import TimeSeriesField
from MortarFEM.Objects.FEM.IntegrationRule import IntegrationPoint, get_integration_points


class BaseFE(ABC):
    """
    Abstract base class for interface (boundary) elements.

    Subclasses form a closed set of element families; each provides the
    capability interface used by the mortar assembly: basis and derivative
    evaluation on ξ ∈ [-1, 1], reference node count, corner nodes and a
    default quadrature order.

    Attributes
    ----------
    connectivity : list of int
        Node ids; their order defines the parametric orientation
    fields : dict
        {field_name: TimeSeriesField} with 'geometry', 'displacement',
        'lambda', 'normal', 'tangent' snapshots stored as (nnodes, dim) arrays
    """
    NODE_COUNT = 0
    DEFAULT_ORDER = 1
    CORNER_NODES = (0, 1)

    def __init__(self, connectivity: Sequence[int]):
        connectivity = [int(nid) for nid in connectivity]
        if len(connectivity) != self.NODE_COUNT:
            raise MortarConfigurationError(
                f"{type(self).__name__} expects {self.NODE_COUNT} nodes, got {len(connectivity)}")
        if len(set(connectivity)) != len(connectivity):
            raise MortarConfigurationError(
                f"Repeated node id in connectivity {connectivity}")
        self.connectivity: List[int] = connectivity
        self.fields: Dict[str, TimeSeriesField] = {}

    def __len__(self):
        return self.NODE_COUNT

    def __repr__(self):
        return f"{type(self).__name__}({self.connectivity})"

    # ----- API each family must provide -----
    @abstractmethod
    def basis(self, xi):
        """Shape function values N(ξ), shape (nnodes,)."""
        pass

    @abstractmethod
    def dbasis(self, xi):
        """Shape function derivatives dN/dξ, shape (nnodes,)."""
        pass

    # ----- field storage -----
    def __contains__(self, field_name: str) -> bool:
        return field_name in self.fields

    def __call__(self, field_name: str, time: float):
        return self.fields[field_name](time)

    def update(self, field_name: str, time: float, data):
        data = np.array(data, dtype=float)
        if field_name in self.fields:
            self.fields[field_name].update(time, data)
        else:
            self.fields[field_name] = TimeSeriesField(time, data)

    def initialize(self, field_name: str, time: float, dim: int = 2):
        """Carry the last snapshot forward to ``time``, or start a zero field."""
        if field_name in self.fields:
            self.fields[field_name].initialize(time)
        else:
            self.update(field_name, time, np.zeros((self.NODE_COUNT, dim)))

    # ----- common machinery -----
    def integration_points(self, order: int = None) -> List[IntegrationPoint]:
        return get_integration_points(self.DEFAULT_ORDER if order is None else order)

    def interpolate(self, xi, nodal):
        """Σ N_i(ξ)·nodal_i for nodal values of shape (nnodes, dim)."""
        return self.basis(xi) @ nodal

    def tangent(self, xi, nodal):
        """Unnormalized tangent dx/dξ = Σ dN_i/dξ·x_i."""
        return self.dbasis(xi) @ nodal

    def detJ(self, xi, nodal):
        """Length of dx/dξ; ``nodal`` decides reference or deformed measure."""
        return F.norm(self.tangent(xi, nodal))
