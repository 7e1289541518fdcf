from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

import numpy as np

from MortarFEM.Exceptions import MortarConfigurationError
from MortarFEM.Objects.FEM.BaseFE import BaseFE


@dataclass
class Node:
    """
    Interface node.

    Attributes
    ----------
    id : int
        Global node id
    coords : np.ndarray
        Reference coordinates (x, y)
    """
    id: int
    coords: np.ndarray

    def __post_init__(self):
        self.coords = np.asarray(self.coords, dtype=float)


@dataclass
class ContactPair:
    """
    Externally supplied association of one slave element with its candidate
    master elements. Pairing is fixed for the duration of a load step.
    """
    slave: BaseFE
    masters: List[BaseFE] = field(default_factory=list)


class MortarInterface:
    """
    Node table, element pairing and degree-of-freedom map of one interface.

    Nodes are numbered by a contiguous local index in ascending id order; the
    interface unknown vector stores node k at dofs [dim*k, ..., dim*k + dim-1].

    Attributes
    ----------
    dim : int
        Field dimension (2 for plane problems)
    nodes : dict
        {node_id: Node}
    pairs : list of ContactPair
        Slave elements with their master candidates
    """

    def __init__(self, dim: int = 2):
        self.dim = dim
        self.nodes: Dict[int, Node] = {}
        self.pairs: List[ContactPair] = []
        self._index: Dict[int, int] = {}
        self._node_ids: List[int] = []
        self._adjacency: Dict[int, List[BaseFE]] = {}

    # ----- construction -----
    def add_node(self, node_id: int, coords):
        coords = np.asarray(coords, dtype=float)
        if coords.shape != (self.dim,):
            raise MortarConfigurationError(
                f"Node {node_id}: expected {self.dim} coordinates, got shape {coords.shape}")
        self.nodes[int(node_id)] = Node(int(node_id), coords)
        self._rebuild()

    def add_nodes(self, nodes: Dict[int, Sequence[float]]):
        for node_id, coords in nodes.items():
            self.add_node(node_id, coords)

    def add_pair(self, slave: BaseFE, masters: Iterable[BaseFE]) -> ContactPair:
        """Register a slave element with its candidate master elements."""
        pair = ContactPair(slave, list(masters))
        for element in [pair.slave] + pair.masters:
            missing = [nid for nid in element.connectivity if nid not in self.nodes]
            if missing:
                raise MortarConfigurationError(
                    f"{element} references unknown node ids {missing}")
        self.pairs.append(pair)
        self._rebuild()
        return pair

    def _rebuild(self):
        self._node_ids = sorted(self.nodes)
        self._index = {nid: k for k, nid in enumerate(self._node_ids)}
        self._adjacency = {}
        for element in self.slave_elements:
            for nid in element.connectivity:
                self._adjacency.setdefault(nid, []).append(element)

    # ----- elements -----
    @property
    def slave_elements(self) -> List[BaseFE]:
        return [pair.slave for pair in self.pairs]

    @property
    def elements(self) -> List[BaseFE]:
        """All slave and master elements, each once, in registration order."""
        seen, result = set(), []
        for pair in self.pairs:
            for element in [pair.slave] + pair.masters:
                if id(element) not in seen:
                    seen.add(id(element))
                    result.append(element)
        return result

    @property
    def slave_node_ids(self) -> List[int]:
        return sorted(self._adjacency)

    def incident_slave_elements(self, node_id: int) -> List[BaseFE]:
        """Slave elements sharing ``node_id`` (precomputed adjacency)."""
        return self._adjacency.get(node_id, [])

    def validate(self):
        if not self.pairs:
            raise MortarConfigurationError("Interface has no slave elements")
        if self.dim != 2:
            raise MortarConfigurationError(f"Only plane interfaces are supported, got dim={self.dim}")
        return True

    # ----- dof bookkeeping -----
    @property
    def node_ids(self) -> List[int]:
        return list(self._node_ids)

    @property
    def nnodes(self) -> int:
        return len(self._node_ids)

    @property
    def ndofs(self) -> int:
        return self.dim * self.nnodes

    def local_index(self, node_ids: Iterable[int]) -> np.ndarray:
        try:
            return np.array([self._index[nid] for nid in node_ids], dtype=int)
        except KeyError as e:
            raise MortarConfigurationError(f"Unknown node id {e.args[0]}") from None

    def get_gdofs(self, element: BaseFE) -> List[int]:
        """Interface dofs of an element: [dim*k + j for each node k, j < dim]."""
        return self.find_dofs_by_nodes(element.connectivity)

    def find_dofs_by_nodes(self, node_ids: Iterable[int]) -> List[int]:
        return [self.dim * k + j for k in self.local_index(node_ids) for j in range(self.dim)]

    def find_nodes_by_dofs(self, dofs: Iterable[int]) -> List[int]:
        """Node ids owning ``dofs``, each once, in first-seen order."""
        nodes = []
        for dof in dofs:
            nid = self._node_ids[int(dof) // self.dim]
            if nid not in nodes:
                nodes.append(nid)
        return nodes

    def reference_coordinates(self) -> np.ndarray:
        """Reference coordinates, shape (nnodes, dim), in local index order."""
        X = np.zeros((self.nnodes, self.dim))
        for k, nid in enumerate(self._node_ids):
            X[k] = self.nodes[nid].coords
        return X

    def geometry(self, time: float) -> np.ndarray:
        """
        Nodal reference coordinates at ``time``, shape (nnodes, dim).

        Rows are taken from the elements' 'geometry' snapshots at or before
        ``time``; nodes of elements without a geometry field keep the node
        table coordinates. A node shared by several elements takes the
        snapshot of the last registered one.
        """
        X = self.reference_coordinates()
        for element in self.elements:
            if 'geometry' in element:
                X[self.local_index(element.connectivity)] = element('geometry', time)
        return X

    def initialize(self, time: float = 0.0):
        """
        Prepare element fields at ``time``: geometry from the node table if
        missing, displacement and multiplier carried forward from the last
        known snapshot (zero if none).
        """
        for element in self.elements:
            if 'geometry' not in element:
                coords = [self.nodes[nid].coords for nid in element.connectivity]
                element.update('geometry', time, np.array(coords))
            for field_name in ('displacement', 'lambda'):
                element.initialize(field_name, time, self.dim)
