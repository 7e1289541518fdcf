from typing import Sequence

import numpy as np

from MortarFEM.AD import ForwardMode as F
from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.FEM.BaseFE import BaseFE


class Seg2(BaseFE):
    """
    Linear 2-node segment.

        N = [½(1 - ξ), ½(1 + ξ)]
    """
    NODE_COUNT = 2
    DEFAULT_ORDER = 2
    CORNER_NODES = (0, 1)

    def basis(self, xi):
        return F.stack([0.5 * (1.0 - xi), 0.5 * (1.0 + xi)])

    def dbasis(self, xi):
        return np.array([-0.5, 0.5])


class Seg3(BaseFE):
    """
    Quadratic 3-node segment, node order (corner, corner, mid).

        N = [½ξ(ξ - 1), ½ξ(ξ + 1), 1 - ξ²]
    """
    NODE_COUNT = 3
    DEFAULT_ORDER = 3
    CORNER_NODES = (0, 1)

    def basis(self, xi):
        return F.stack([0.5 * xi * (xi - 1.0), 0.5 * xi * (xi + 1.0), 1.0 - xi ** 2])

    def dbasis(self, xi):
        return F.stack([xi - 0.5, xi + 0.5, -2.0 * xi])


ELEMENT_FAMILIES = {
    'Seg2': Seg2,
    'Seg3': Seg3,
}


def create_element(family: str, connectivity: Sequence[int]) -> BaseFE:
    """Build an element from its family tag, e.g. ``create_element('Seg2', [1, 2])``."""
    try:
        element_class = ELEMENT_FAMILIES[family]
    except KeyError:
        raise MortarConfigurationError(
            f"Unknown element family '{family}'. Supported: {sorted(ELEMENT_FAMILIES)}") from None
    return element_class(connectivity)
