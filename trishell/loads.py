# loads.py - Nodal loads, self-weight, and the global load vector

import logging
from dataclasses import dataclass
from typing import Tuple, Union, TYPE_CHECKING

import numpy as np

from .kernel.assemble import add_nodal_load

if TYPE_CHECKING:
    from .model import Model

logger = logging.getLogger(__name__)

# Standard gravity (m/s²)
GRAVITY_ACCELERATION = 9.80665
# Converts density × volume × g to N for a model built in mm (density in kg/m³
# scaled to the model's volume unit). Kept as-is so load totals match across tools.
UNIT_FACTOR = 1e-6


@dataclass(frozen=True)
class NodalLoad:
    """
    Point load at a node, in global axes.

    Components follow the DOF order: forces fx, fy, fz then moments mx, my, mz.
    Several loads on the same node add up.
    """
    node_id: int
    fx: float = 0.0
    fy: float = 0.0
    fz: float = 0.0
    mx: float = 0.0
    my: float = 0.0
    mz: float = 0.0

    @property
    def vector(self) -> np.ndarray:
        return np.array([self.fx, self.fy, self.fz, self.mx, self.my, self.mz], dtype=float)

    def node_ids(self) -> Tuple[int, ...]:
        return (self.node_id,)

    def apply_to(self, model: "Model", F: np.ndarray) -> None:
        add_nodal_load(F, self.node_id, self.vector, model.dof.dof_per_node)


@dataclass(frozen=True)
class GravityLoad:
    """
    Self-weight of every element.

    (gx, gy, gz) multiply the gravitational acceleration per global axis;
    GravityLoad(0, 0, -1) is ordinary self-weight acting in -Z.

    Each element's weight Area·h·density·g is lumped in equal thirds onto
    its three nodes:

        F_node += (Area / 3) · h · density · g_comp · 9.80665 · 1e-6

    on the translational DOFs only.
    """
    gx: float = 0.0
    gy: float = 0.0
    gz: float = -1.0

    @property
    def direction(self) -> np.ndarray:
        return np.array([self.gx, self.gy, self.gz], dtype=float)

    def node_ids(self) -> Tuple[int, ...]:
        return ()

    def apply_to(self, model: "Model", F: np.ndarray) -> None:
        for e in model.elements:
            weight = e.area * e.section.thickness * e.material.density
            f_node = (weight / 3.0) * self.direction * GRAVITY_ACCELERATION * UNIT_FACTOR
            for node_id in e.node_ids:
                add_nodal_load(F, node_id, f_node, model.dof.dof_per_node)


Load = Union[NodalLoad, GravityLoad]


def assemble_load_vector(model: "Model") -> np.ndarray:
    """
    Global load vector from every load in the model.

    Parameters:
    -----------
    model : Model
        Supplies the DOF count and the loads; each load adds its own
        contribution through apply_to(), so contributions accumulate.

    Returns:
    --------
    np.ndarray
        Shape (6 × n_nodes,) in global axes
    """
    F = np.zeros(model.ndof, dtype=float)
    for load in model.loads:
        load.apply_to(model, F)
    logger.debug("Load vector assembled from %d load(s), |F| = %.6g", len(model.loads), float(np.linalg.norm(F)))
    return F
