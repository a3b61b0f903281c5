# trishell/post.py
"""
RESULTS AND POST-PROCESSING
===========================

PURPOSE:
--------
The Result of an analysis run and everything derived from it:

- Result            displacement, reactions, eigenpairs, optional stress
- StressField       principal / von Mises / shear per element
- nodal views       (N, 6) displacements, magnitudes, deformed shape
- tables            pandas DataFrames for reporting

PLANE STRESS:
-------------
For an element stress state (σx, σy, τxy):

    R       = sqrt(((σx - σy) / 2)² + τxy²)
    p1, p2  = (σx + σy) / 2 ± R
    σ_vm    = sqrt(p1² + p2² - p1·p2)
    σ_avg   = (p1 + p2) / 2
    τ_max   = R
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .kernel.dof import DOF_LABELS
from .kernel.modal import natural_frequencies_hz
from .model import Model


def principal_stresses(stress: np.ndarray) -> np.ndarray:
    """
    Principal stresses of plane-stress states.

    Parameters:
    -----------
    stress : np.ndarray
        Shape (n, 3): columns σx, σy, τxy

    Returns:
    --------
    np.ndarray
        Shape (n, 2): p1 >= p2 per row
    """
    sx, sy = stress[:, 0], stress[:, 1]
    center = (sx + sy) / 2.0
    radius = max_shear_stress(stress)
    return np.column_stack([center + radius, center - radius])


def max_shear_stress(stress: np.ndarray) -> np.ndarray:
    """In-plane maximum shear, the Mohr circle radius."""
    sx, sy, txy = stress[:, 0], stress[:, 1], stress[:, 2]
    return np.sqrt(((sx - sy) / 2.0) ** 2 + txy ** 2)


def von_mises_stress(principal: np.ndarray) -> np.ndarray:
    p1, p2 = principal[:, 0], principal[:, 1]
    return np.sqrt(p1 ** 2 + p2 ** 2 - p1 * p2)


@dataclass(frozen=True, eq=False)
class StressField:
    """
    Per-element stress results, rows in element_ids order.

    Attributes:
    -----------
    element_ids : np.ndarray
        (n,) element ids
    stress : np.ndarray
        (n, 3) input σx, σy, τxy
    principal : np.ndarray
        (n, 2) p1, p2
    von_mises, average_principal, max_shear : np.ndarray
        (n,) each
    """
    element_ids: np.ndarray
    stress: np.ndarray
    principal: np.ndarray
    von_mises: np.ndarray
    average_principal: np.ndarray
    max_shear: np.ndarray

    @classmethod
    def from_stress(cls, stress, element_ids: Optional[Sequence[int]] = None) -> "StressField":
        """
        Derive every stress measure from (σx, σy, τxy) rows.

        Raises:
        -------
        ValueError
            If stress is not (n, 3), element_ids has the wrong length or
            contains duplicates
        """
        stress = np.array(stress, dtype=float)
        if stress.ndim != 2 or stress.shape[1] != 3:
            raise ValueError(f"stress must have shape (n, 3), got {stress.shape}")

        n = stress.shape[0]
        if element_ids is None:
            ids = np.arange(n)
        else:
            ids = np.asarray(element_ids, dtype=int)
            if ids.shape != (n,):
                raise ValueError(f"Expected {n} element ids, got {ids.size}")
            if len(set(ids.tolist())) != n:
                raise ValueError("element_ids contains duplicates")

        principal = principal_stresses(stress)
        return cls(
            element_ids=ids,
            stress=stress,
            principal=principal,
            von_mises=von_mises_stress(principal),
            average_principal=principal.mean(axis=1),
            max_shear=max_shear_stress(stress),
        )

    def for_element(self, element_id: int) -> Dict[str, float]:
        """All stress values of one element, keyed by name."""
        rows = np.flatnonzero(self.element_ids == element_id)
        if rows.size == 0:
            raise KeyError(f"No stress stored for element {element_id}")
        i = int(rows[0])
        return {
            "sx": float(self.stress[i, 0]),
            "sy": float(self.stress[i, 1]),
            "txy": float(self.stress[i, 2]),
            "p1": float(self.principal[i, 0]),
            "p2": float(self.principal[i, 1]),
            "von_mises": float(self.von_mises[i]),
            "average_principal": float(self.average_principal[i]),
            "max_shear": float(self.max_shear[i]),
        }


@dataclass
class Result:
    """
    Output of one analysis run.

    Attributes:
    -----------
    displacement : np.ndarray
        (6N,) global displacements, DOF order ux, uy, uz, rx, ry, rz per node
    reactions : np.ndarray
        (6N,) support reactions, zero at free DOFs
    eigenvalues : np.ndarray, optional
        (n_modes,) complex λ = ω²; modal runs only, solver order
    eigenvectors : np.ndarray, optional
        (6N, n_modes) real mode shapes, one column per mode
    stress : StressField, optional
        Set by add_stress()
    """
    displacement: np.ndarray
    reactions: np.ndarray
    eigenvalues: Optional[np.ndarray] = None
    eigenvectors: Optional[np.ndarray] = None
    stress: Optional[StressField] = None

    @property
    def n_modes(self) -> int:
        return 0 if self.eigenvalues is None else len(self.eigenvalues)

    def add_stress(self, stress, element_ids: Optional[Sequence[int]] = None) -> StressField:
        """
        Store per-element (σx, σy, τxy) and every measure derived from it.

        The field is built completely before it is attached, so a bad
        input leaves any previously stored field untouched.
        """
        field = StressField.from_stress(stress, element_ids)
        self.stress = field
        return field

    def _require_modes(self) -> None:
        if self.eigenvalues is None:
            raise ValueError("Result has no modes; run a modal analysis")

    def frequencies_hz(self) -> np.ndarray:
        """Natural frequency per mode, f = sqrt(Re λ) / 2π, in solver order."""
        self._require_modes()
        return natural_frequencies_hz(self.eigenvalues)

    def mode_order(self) -> np.ndarray:
        """Mode indices sorted by ascending Re λ (lowest frequency first)."""
        self._require_modes()
        return np.argsort(np.real(self.eigenvalues), kind="stable")

    def mode_shape(self, mode: int) -> np.ndarray:
        """
        Eigenvector of one mode, shape (6N,).

        Raises:
        -------
        IndexError
            If mode is outside 0..n_modes-1
        """
        self._require_modes()
        if not 0 <= mode < self.n_modes:
            raise IndexError(f"Mode {mode} out of range; result has {self.n_modes} modes (0..{self.n_modes - 1})")
        return self.eigenvectors[:, mode]


def nodal_displacements(vector: np.ndarray, dof_per_node: int = 6) -> np.ndarray:
    """Reshape a global vector (displacement or mode shape) to (N, dof_per_node)."""
    return np.asarray(vector, dtype=float).reshape(-1, dof_per_node)


def displacement_magnitudes(vector: np.ndarray, dof_per_node: int = 6) -> np.ndarray:
    """Translational displacement norm sqrt(ux² + uy² + uz²) per node."""
    return np.linalg.norm(nodal_displacements(vector, dof_per_node)[:, :3], axis=1)


def deformed_coordinates(model: Model, vector: np.ndarray, scale: float = 1.0) -> np.ndarray:
    """
    Node positions displaced by a scaled displacement or mode shape.

    Returns:
    --------
    np.ndarray
        (N, 3) coordinates: original + scale · (ux, uy, uz)
    """
    u = nodal_displacements(vector, model.dof.dof_per_node)[:, :3]
    return model.coordinates() + scale * u


def displacement_table(model: Model, result: Result) -> pd.DataFrame:
    """
    Nodal displacements and reactions as a DataFrame, one row per node.

    Columns: node, x, y, z, ux..rz, |u|, Rux..Rrz
    """
    u = nodal_displacements(result.displacement, model.dof.dof_per_node)
    r = nodal_displacements(result.reactions, model.dof.dof_per_node)
    coords = model.coordinates()

    df = pd.DataFrame({
        "node": [n.id for n in model.nodes],
        "x": coords[:, 0],
        "y": coords[:, 1],
        "z": coords[:, 2],
    })
    for k, label in enumerate(DOF_LABELS):
        df[label] = u[:, k]
    df["|u|"] = displacement_magnitudes(result.displacement, model.dof.dof_per_node)
    for k, label in enumerate(DOF_LABELS):
        df["R" + label] = r[:, k]
    return df


def stress_table(result: Result) -> pd.DataFrame:
    """Per-element stress measures as a DataFrame; raises ValueError if no stress is stored."""
    if result.stress is None:
        raise ValueError("Result has no stress; call add_stress() first")
    s = result.stress
    return pd.DataFrame({
        "element": s.element_ids,
        "sx": s.stress[:, 0],
        "sy": s.stress[:, 1],
        "txy": s.stress[:, 2],
        "p1": s.principal[:, 0],
        "p2": s.principal[:, 1],
        "von_mises": s.von_mises,
        "average_principal": s.average_principal,
        "max_shear": s.max_shear,
    })


def modal_table(result: Result) -> pd.DataFrame:
    """Modes sorted by frequency: mode index, Re λ, Im λ, ω and f (Hz)."""
    order = result.mode_order()
    lam = result.eigenvalues[order]
    freqs = result.frequencies_hz()[order]
    return pd.DataFrame({
        "mode": order,
        "eigenvalue": np.real(lam),
        "eigenvalue_imag": np.imag(lam),
        "omega": 2.0 * np.pi * freqs,
        "frequency_hz": freqs,
    })
