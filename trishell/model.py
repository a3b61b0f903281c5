# trishell/model.py
"""
SHELL MODEL DEFINITIONS
=======================

PURPOSE:
--------
Plain data for a triangular shell mesh, plus the Model aggregate that
validates the mesh and derives each element's geometry exactly once:

- Node       point in global space; its id is its DOF block index
- Material   isotropic linear-elastic (E, nu) with mass density
- Section    plate thickness
- Support    six restraint flags per node
- Element    3-node triangle referencing a material and a section
- Model      nodes + elements + supports + loads, geometry computed on build

ELEMENT FRAME:
--------------
Each triangle gets its own right-handed frame from its node order:

    ex = normalize(p1 - p0)
    ez = normalize((p1 - p0) × (p2 - p0))
    ey = ez × ex

T = [ex | ey | ez] (columns are the local axes in global coordinates), so
a global vector g has local components Tᵀ·g. Node positions relative to
p0 expressed in that frame are the element's local coordinates; their z
components are zero up to round-off because three points are always
coplanar.

UNITS:
------
The engine is unit-agnostic except for the gravity load (see loads.py),
which assumes N, mm and a density scaled so that density × 9.80665e-6
gives N/mm³.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from .kernel.dof import DOFManager, DOF_SHELL

if TYPE_CHECKING:
    from .loads import Load

logger = logging.getLogger(__name__)

# Area below AREA_TOLERANCE · (longest edge)² counts as degenerate
AREA_TOLERANCE = 1e-12
# Relative agreement required between global and local area
AREA_CHECK_TOLERANCE = 1e-9
# Out-of-plane local coordinate allowed, relative to the longest edge
PLANARITY_TOLERANCE = 1e-9


class DegenerateGeometryError(ValueError):
    """Raised when an element has (near) zero area: collinear or coincident nodes."""


class InvalidConnectivityError(ValueError):
    """Raised when an element, support or load references a node that does not exist."""


@dataclass(frozen=True)
class Node:
    """
    A mesh node in global coordinates.

    Parameters:
    -----------
    id : int
        Node identifier. Must equal the node's position in the model's node
        list: it is the DOF block index (global DOF = id * 6 + local_dof).
    x, y, z : float
        Global coordinates
    """
    id: int
    x: float
    y: float
    z: float

    @property
    def coords(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass(frozen=True)
class Material:
    """
    Isotropic linear-elastic material.

    Parameters:
    -----------
    E : float
        Young's modulus (e.g. N/mm²; steel ≈ 205000)
    nu : float
        Poisson's ratio, -1 < nu < 0.5
    density : float
        Mass density, used by the mass matrix and by gravity loads
    """
    E: float
    nu: float
    density: float = 0.0

    def __post_init__(self):
        if not self.E > 0.0:
            raise ValueError(f"Young's modulus must be positive, got {self.E}")
        if not -1.0 < self.nu < 0.5:
            raise ValueError(f"Poisson's ratio must lie in (-1, 0.5), got {self.nu}")
        if self.density < 0.0:
            raise ValueError(f"Mass density must be non-negative, got {self.density}")


@dataclass(frozen=True)
class Section:
    """Plate section: uniform thickness h."""
    thickness: float

    def __post_init__(self):
        if not self.thickness > 0.0:
            raise ValueError(f"Section thickness must be positive, got {self.thickness}")


@dataclass(frozen=True)
class Support:
    """
    Restraints at one node. True means the DOF is held at zero.

    Flags follow the DOF order ux, uy, uz, rx, ry, rz.
    """
    node_id: int
    dx: bool = False
    dy: bool = False
    dz: bool = False
    rx: bool = False
    ry: bool = False
    rz: bool = False

    @classmethod
    def fixed(cls, node_id: int) -> "Support":
        """All six DOFs restrained."""
        return cls(node_id, True, True, True, True, True, True)

    @classmethod
    def pinned(cls, node_id: int) -> "Support":
        """Translations restrained, rotations free."""
        return cls(node_id, True, True, True)

    @property
    def flags(self) -> Tuple[bool, bool, bool, bool, bool, bool]:
        return (self.dx, self.dy, self.dz, self.rx, self.ry, self.rz)

    def restrained_dofs(self, dof_manager: DOFManager = DOF_SHELL) -> List[int]:
        """Global indices of the restrained DOFs of this support."""
        return [dof_manager.idx(self.node_id, k) for k, flag in enumerate(self.flags) if flag]

    def __str__(self):
        return f"Support node {self.node_id}: " + "".join(str(int(f)) for f in self.flags)


@dataclass(frozen=True, eq=False)
class ElementGeometry:
    """
    Geometry derived from an element's node positions.

    Attributes:
    -----------
    T : np.ndarray
        3×3 rotation, columns are the local axes ex, ey, ez in global coordinates
    local_coordinates : np.ndarray
        3×3, row i is node i relative to node 0 in the element frame (z ≈ 0)
    area : float
        Triangle area from the global cross product
    """
    T: np.ndarray
    local_coordinates: np.ndarray
    area: float

    def local_area(self) -> float:
        """Area recomputed from the in-plane local coordinates."""
        (x1, y1, _), (x2, y2, _), (x3, y3, _) = self.local_coordinates
        return abs((x1 - x3) * (y2 - y1) - (x1 - x2) * (y3 - y1)) / 2.0


@dataclass(frozen=True)
class Element:
    """
    A 3-node triangular shell element (CST membrane + DKT bending).

    The node order defines the local frame: local x runs from node 0 to
    node 1 and local z follows the right-hand rule over 0 → 1 → 2.

    Parameters:
    -----------
    id : int
        Element identifier (unique within a model)
    node_ids : Tuple[int, int, int]
        The three node ids
    material : Material
    section : Section

    The geometry field is filled in by Model; elements taken from a Model
    expose T, local_coordinates and area.
    """
    id: int
    node_ids: Tuple[int, int, int]
    material: Material
    section: Section
    geometry: Optional[ElementGeometry] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "node_ids", tuple(int(n) for n in self.node_ids))
        if len(self.node_ids) != 3:
            raise InvalidConnectivityError(
                f"Element {self.id} must reference exactly 3 nodes, got {len(self.node_ids)}"
            )

    def _geometry(self) -> ElementGeometry:
        if self.geometry is None:
            raise RuntimeError(f"Element {self.id} has no geometry; build a Model first")
        return self.geometry

    @property
    def T(self) -> np.ndarray:
        return self._geometry().T

    @property
    def local_coordinates(self) -> np.ndarray:
        return self._geometry().local_coordinates

    @property
    def area(self) -> float:
        return self._geometry().area


def compute_element_geometry(
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    element_id: int = None
) -> ElementGeometry:
    """
    Local frame, local node coordinates and area of a triangle.

    Parameters:
    -----------
    p0, p1, p2 : np.ndarray
        Global positions of the element's nodes, in element node order
    element_id : int, optional
        Only used in error messages

    Returns:
    --------
    ElementGeometry

    Raises:
    -------
    DegenerateGeometryError
        If the nodes are coincident or collinear (area ≈ 0), or the two
        area computations disagree
    """
    v1 = p1 - p0
    v2 = p2 - p0
    n = np.cross(v1, v2)
    area = 0.5 * float(np.linalg.norm(n))

    longest = max(float(np.linalg.norm(v1)), float(np.linalg.norm(v2)), float(np.linalg.norm(p2 - p1)))
    if longest == 0.0 or area <= AREA_TOLERANCE * longest * longest:
        raise DegenerateGeometryError(
            f"Element {element_id} is degenerate (area={area:.3e}): nodes are coincident or collinear"
        )

    ex = v1 / np.linalg.norm(v1)
    ez = n / np.linalg.norm(n)
    ey = np.cross(ez, ex)
    T = np.column_stack([ex, ey, ez])

    local_coordinates = np.vstack([T.T @ (p - p0) for p in (p0, p1, p2)])

    if np.max(np.abs(local_coordinates[:, 2])) > PLANARITY_TOLERANCE * longest:
        raise DegenerateGeometryError(
            f"Element {element_id}: nodes do not lie in the element plane"
        )

    geometry = ElementGeometry(T=T, local_coordinates=local_coordinates, area=area)

    local_area = geometry.local_area()
    if abs(local_area - area) > AREA_CHECK_TOLERANCE * area:
        raise DegenerateGeometryError(
            f"Element {element_id}: area mismatch (global {area:.12g}, local {local_area:.12g})"
        )

    return geometry


class Model:
    """
    The analysis model: nodes, elements, supports and loads.

    Construction validates connectivity and computes every element's
    geometry once; any failure raises before analysis can start.

    Parameters:
    -----------
    nodes : Sequence[Node]
        Ordered nodes; nodes[i].id must be i
    elements : Sequence[Element]
        Triangles; returned from the model with their geometry attached
    supports : Sequence[Support]
    loads : Sequence[Load]
        NodalLoad / GravityLoad instances (see loads.py)

    Raises:
    -------
    InvalidConnectivityError
        Node ids out of order, duplicate element ids, or references to
        nodes that do not exist
    DegenerateGeometryError
        Zero-area elements
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        elements: Sequence[Element],
        supports: Sequence[Support] = (),
        loads: Sequence["Load"] = (),
        dof_manager: DOFManager = DOF_SHELL
    ):
        self.dof = dof_manager
        self.nodes: List[Node] = list(nodes)
        self.supports: List[Support] = list(supports)
        self.loads: List["Load"] = list(loads)

        for i, node in enumerate(self.nodes):
            if node.id != i:
                raise InvalidConnectivityError(
                    f"Node at position {i} has id {node.id}; node ids must equal their list position"
                )

        seen = set()
        for element in elements:
            if element.id in seen:
                raise InvalidConnectivityError(f"Duplicate element id {element.id}")
            seen.add(element.id)
            self._check_node_refs(element.node_ids, f"Element {element.id}")

        for support in self.supports:
            self._check_node_refs([support.node_id], "Support")

        for load in self.loads:
            self._check_node_refs(load.node_ids(), type(load).__name__)

        self.elements: List[Element] = [
            replace(element, geometry=self._element_geometry(element)) for element in elements
        ]
        self._element_index = {e.id: i for i, e in enumerate(self.elements)}

        logger.debug(
            "Model built: %d nodes, %d elements, %d supports, %d loads",
            len(self.nodes), len(self.elements), len(self.supports), len(self.loads),
        )

    def _check_node_refs(self, node_ids, owner: str) -> None:
        n_nodes = len(self.nodes)
        for node_id in node_ids:
            if not 0 <= node_id < n_nodes:
                raise InvalidConnectivityError(
                    f"{owner} references node {node_id}, but the model has {n_nodes} nodes"
                )

    def _element_geometry(self, element: Element) -> ElementGeometry:
        p0, p1, p2 = (self.nodes[i].coords for i in element.node_ids)
        return compute_element_geometry(p0, p1, p2, element.id)

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def ndof(self) -> int:
        return self.dof.ndof(len(self.nodes))

    def element(self, element_id: int) -> Element:
        """Look up an element by id."""
        return self.elements[self._element_index[element_id]]

    def coordinates(self) -> np.ndarray:
        """Node coordinates, shape (n_nodes, 3)."""
        return np.array([[n.x, n.y, n.z] for n in self.nodes], dtype=float).reshape(-1, 3)

    def fixed_dofs(self) -> List[int]:
        """Sorted global indices of all restrained DOFs."""
        fixed = set()
        for support in self.supports:
            fixed.update(support.restrained_dofs(self.dof))
        return sorted(fixed)

    def __str__(self):
        return (
            f"Nodes: {len(self.nodes)} Elements: {len(self.elements)} "
            f"Supports: {len(self.supports)} Loads: {len(self.loads)}"
        )
