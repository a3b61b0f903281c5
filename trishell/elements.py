# trishell/elements.py
"""
TRIANGULAR SHELL ELEMENT: CST Membrane + DKT Bending
====================================================

PURPOSE:
--------
Element stiffness and consistent mass matrices for a flat 3-node shell.
Each node carries 6 DOFs. In the element frame they are

    u, v        in-plane translations      → membrane (CST)
    w, θx, θy   transverse translation and
                bending rotations          → plate bending (DKT)
    θz          drilling rotation          → small artificial stiffness

Membrane and bending are uncoupled for a flat element, so the 18×18 local
matrix is the two sub-matrices interleaved node by node, plus the
drilling term.

MEMBRANE (CST):
---------------
Linear displacement field, constant strain:

    Kme = Bmᵀ · Dm · Bm · h · Area                       (6×6 on u, v)

    Dm  = E / (1 - ν²) · [[1, ν, 0], [ν, 1, 0], [0, 0, (1 - ν)/2]]

BENDING (DKT):
--------------
Discrete Kirchhoff triangle: rotations βx, βy interpolated with the
6-node quadratic functions, Kirchhoff constraints imposed at the corners
and along the edges. The result is written as

    βx = Hxᵀ · U,   βy = Hyᵀ · U,   U = [w1, θx1, θy1, w2, ...]

and the curvature matrix is

    Bb = [∂Hx/∂x ; ∂Hy/∂y ; ∂Hx/∂y + ∂Hy/∂x]             (3×9)

    Kbe = ∫ Bbᵀ · Db · Bb dA,   Db = E h³ / (12 (1 - ν²)) · [same shape as Dm]

Bb is linear, so the 3-point midside rule integrates Kbe exactly.

DRILLING:
---------
Neither formulation gives θz any stiffness. Each node's θz diagonal is
set to DRILLING_FACTOR times the largest of that node's other five
diagonal entries (no off-diagonal coupling).

GLOBAL COORDINATES:
-------------------
Element frame T has the local axes as columns, so Λ = Tᵀ maps global
components to local ones. With Te = diag(Λ, Λ, Λ, Λ, Λ, Λ) (one per
translation/rotation triad of each node):

    K_global = Teᵀ · K_local · Te
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .kernel.gauss import gauss_points_weights_triangle
from .model import Element

logger = logging.getLogger(__name__)

DRILLING_FACTOR = 1e-3

# Local DOF positions within a node's 6-DOF block
MEMBRANE_DOFS = (0, 1)
BENDING_DOFS = (2, 3, 4)
DRILLING_DOF = 5


def plane_stress_matrix(E: float, nu: float) -> np.ndarray:
    """Isotropic plane-stress constitutive matrix E/(1-ν²)·[[1,ν,0],[ν,1,0],[0,0,(1-ν)/2]]."""
    return E / (1.0 - nu * nu) * np.array([
        [1.0, nu, 0.0],
        [nu, 1.0, 0.0],
        [0.0, 0.0, (1.0 - nu) / 2.0],
    ], dtype=float)


def plate_bending_matrix(E: float, nu: float, h: float) -> np.ndarray:
    """Flexural rigidity matrix Db = h³/12 · Dm."""
    return plane_stress_matrix(E, nu) * h ** 3 / 12.0


def area_coordinate_coefficients(
    local_coordinates: np.ndarray,
    area: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Coefficients of the area coordinates L_i = a_i + b_i·x + c_i·y.

    For node i with b = i+1, c = i+2 (mod 3):

        a_i = (x_b·y_c - x_c·y_b) / 2A
        b_i = (y_b - y_c) / 2A          (= ∂L_i/∂x)
        c_i = (x_c - x_b) / 2A          (= ∂L_i/∂y)

    Parameters:
    -----------
    local_coordinates : np.ndarray
        3×2 or 3×3 node coordinates in the element frame (z ignored)
    area : float
        Element area

    Returns:
    --------
    (a, b, c) : three arrays of shape (3,)
    """
    x = local_coordinates[:, 0]
    y = local_coordinates[:, 1]
    two_a = 2.0 * area

    a = np.zeros(3)
    b = np.zeros(3)
    c = np.zeros(3)
    for i in range(3):
        j, k = (i + 1) % 3, (i + 2) % 3
        a[i] = (x[j] * y[k] - x[k] * y[j]) / two_a
        b[i] = (y[j] - y[k]) / two_a
        c[i] = (x[k] - x[j]) / two_a
    return a, b, c


def membrane_b_matrix(local_coordinates: np.ndarray, area: float) -> np.ndarray:
    """
    CST strain-displacement matrix, shape (3, 6), columns [u1, v1, u2, v2, u3, v3].

    Rows are εx, εy, γxy. Constant over the element.
    """
    _, b, c = area_coordinate_coefficients(local_coordinates, area)
    Bm = np.zeros((3, 6))
    for i in range(3):
        Bm[0, 2 * i] = b[i]
        Bm[1, 2 * i + 1] = c[i]
        Bm[2, 2 * i] = c[i]
        Bm[2, 2 * i + 1] = b[i]
    return Bm


def membrane_stiffness(
    local_coordinates: np.ndarray,
    area: float,
    E: float,
    nu: float,
    h: float
) -> np.ndarray:
    """CST membrane stiffness Kme = Bmᵀ·Dm·Bm·h·A, shape (6, 6) on (u, v) per node."""
    Bm = membrane_b_matrix(local_coordinates, area)
    Dm = plane_stress_matrix(E, nu)
    return Bm.T @ Dm @ Bm * h * area


def dkt_edge_coefficients(local_coordinates: np.ndarray) -> Tuple[np.ndarray, ...]:
    """
    Per-edge DKT coefficients (a, b, c, d, e).

    Edge k joins node k to node k+1 (mod 3). With x_ij = x_k - x_{k+1},
    y_ij = y_k - y_{k+1}, l² = x_ij² + y_ij²:

        a = -x_ij / l²
        b = ¾ · x_ij · y_ij / l²
        c = (¼ x_ij² - ½ y_ij²) / l²
        d = -y_ij / l²
        e = (-½ x_ij² + ¼ y_ij²) / l²

    Returns:
    --------
    (a, b, c, d, e) : five arrays of shape (3,), indexed by edge
    """
    x = local_coordinates[:, 0]
    y = local_coordinates[:, 1]
    a = np.zeros(3)
    b = np.zeros(3)
    c = np.zeros(3)
    d = np.zeros(3)
    e = np.zeros(3)
    for k in range(3):
        nxt = (k + 1) % 3
        xij = x[k] - x[nxt]
        yij = y[k] - y[nxt]
        l2 = xij * xij + yij * yij
        a[k] = -xij / l2
        b[k] = 0.75 * xij * yij / l2
        c[k] = (0.25 * xij * xij - 0.5 * yij * yij) / l2
        d[k] = -yij / l2
        e[k] = (-0.5 * xij * xij + 0.25 * yij * yij) / l2
    return a, b, c, d, e


@dataclass(frozen=True, eq=False)
class DKTShapeFunctions:
    """
    Everything the DKT element needs at one integration point.

    Attributes:
    -----------
    N, dN_dx, dN_dy : np.ndarray
        6-node quadratic functions (corners 0-2, midsides 3-5) and their
        Cartesian derivatives, shape (6,)
    Hx, Hy : np.ndarray
        Rotation interpolation βx = Hx·U, βy = Hy·U, shape (9,)
    dHx_dx, dHx_dy, dHy_dx, dHy_dy : np.ndarray
        Derivatives of Hx, Hy, shape (9,)
    """
    N: np.ndarray
    dN_dx: np.ndarray
    dN_dy: np.ndarray
    Hx: np.ndarray
    Hy: np.ndarray
    dHx_dx: np.ndarray
    dHx_dy: np.ndarray
    dHy_dx: np.ndarray
    dHy_dy: np.ndarray

    @property
    def Bb(self) -> np.ndarray:
        """Curvature matrix [∂Hx/∂x; ∂Hy/∂y; ∂Hx/∂y + ∂Hy/∂x], shape (3, 9)."""
        return np.vstack([self.dHx_dx, self.dHy_dy, self.dHx_dy + self.dHy_dx])


def quadratic_shape_functions(
    L: np.ndarray,
    b: np.ndarray,
    c: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    6-node triangle functions at area coordinates L.

        N_i     = L_i (2 L_i - 1)              corners
        N_{3+i} = 4 L_i L_{i+1}                midside of edge i → i+1

    Derivatives by the chain rule with ∂L_i/∂x = b_i, ∂L_i/∂y = c_i.
    """
    N = np.zeros(6)
    dN_dx = np.zeros(6)
    dN_dy = np.zeros(6)
    for i in range(3):
        j = (i + 1) % 3
        N[i] = L[i] * (2.0 * L[i] - 1.0)
        dN_dx[i] = b[i] * (4.0 * L[i] - 1.0)
        dN_dy[i] = c[i] * (4.0 * L[i] - 1.0)

        N[3 + i] = 4.0 * L[i] * L[j]
        dN_dx[3 + i] = 4.0 * (b[i] * L[j] + b[j] * L[i])
        dN_dy[3 + i] = 4.0 * (c[i] * L[j] + c[j] * L[i])
    return N, dN_dx, dN_dy


def _h_functions(
    N: np.ndarray,
    edge: Tuple[np.ndarray, ...]
) -> Tuple[np.ndarray, np.ndarray]:
    """Assemble Hx, Hy (9 each) from any of N, ∂N/∂x, ∂N/∂y; the combination is linear."""
    a, b, c, d, e = edge
    Hx = np.zeros(9)
    Hy = np.zeros(9)
    for i in range(3):
        k = i               # edge i → i+1
        m = (i + 2) % 3     # edge i+2 → i
        Nk = N[3 + k]
        Nm = N[3 + m]

        Hx[3 * i] = 1.5 * (a[k] * Nk - a[m] * Nm)
        Hx[3 * i + 1] = b[k] * Nk + b[m] * Nm
        Hx[3 * i + 2] = N[i] - c[k] * Nk - c[m] * Nm

        Hy[3 * i] = 1.5 * (d[k] * Nk - d[m] * Nm)
        Hy[3 * i + 1] = -N[i] + e[k] * Nk + e[m] * Nm
        Hy[3 * i + 2] = -b[k] * Nk - b[m] * Nm
    return Hx, Hy


def dkt_shape_functions(
    L: np.ndarray,
    local_coordinates: np.ndarray,
    area: float
) -> DKTShapeFunctions:
    """
    Evaluate the DKT functions at one point.

    Parameters:
    -----------
    L : np.ndarray
        Area coordinates (L1, L2, L3) of the point
    local_coordinates : np.ndarray
        Node coordinates in the element frame
    area : float
        Element area

    Returns:
    --------
    DKTShapeFunctions
    """
    _, b, c = area_coordinate_coefficients(local_coordinates, area)
    edge = dkt_edge_coefficients(local_coordinates)

    N, dN_dx, dN_dy = quadratic_shape_functions(np.asarray(L, dtype=float), b, c)
    Hx, Hy = _h_functions(N, edge)
    dHx_dx, dHy_dx = _h_functions(dN_dx, edge)
    dHx_dy, dHy_dy = _h_functions(dN_dy, edge)

    return DKTShapeFunctions(
        N=N, dN_dx=dN_dx, dN_dy=dN_dy,
        Hx=Hx, Hy=Hy,
        dHx_dx=dHx_dx, dHx_dy=dHx_dy,
        dHy_dx=dHy_dx, dHy_dy=dHy_dy,
    )


def bending_stiffness(
    local_coordinates: np.ndarray,
    area: float,
    E: float,
    nu: float,
    h: float,
    n_points: int = 3
) -> np.ndarray:
    """
    DKT bending stiffness, shape (9, 9) on (w, θx, θy) per node.

    Kbe = Σ_g Bbᵀ·Db·Bb · w_g · ½ · detJ,   detJ = 2·Area
    """
    Db = plate_bending_matrix(E, nu, h)
    detJ = 2.0 * area
    points, weights = gauss_points_weights_triangle(n_points)

    Kbe = np.zeros((9, 9))
    for L, w in zip(points, weights):
        Bb = dkt_shape_functions(L, local_coordinates, area).Bb
        Kbe += Bb.T @ Db @ Bb * (0.5 * w * detJ)
    return Kbe


def stabilize_drilling(ke: np.ndarray, factor: float = DRILLING_FACTOR) -> np.ndarray:
    """
    Set each node's θz diagonal to factor × max(other five diagonal entries).

    Works in-place on an 18×18 local matrix and returns it.
    """
    diag = np.diag(ke)
    for node in range(ke.shape[0] // 6):
        base = 6 * node
        ke[base + DRILLING_DOF, base + DRILLING_DOF] = factor * np.max(diag[base:base + DRILLING_DOF])
    return ke


def interleave_shell_matrix(membrane: np.ndarray, bending: np.ndarray) -> np.ndarray:
    """
    Place a 6×6 membrane and a 9×9 bending matrix into an 18×18 shell matrix.

    Node i: membrane rows 2i..2i+1 → 6i+(0,1); bending rows 3i..3i+2 → 6i+(2,3,4).
    """
    m_idx = [6 * i + k for i in range(3) for k in MEMBRANE_DOFS]
    b_idx = [6 * i + k for i in range(3) for k in BENDING_DOFS]
    ke = np.zeros((18, 18))
    ke[np.ix_(m_idx, m_idx)] = membrane
    ke[np.ix_(b_idx, b_idx)] = bending
    return ke


def transformation_matrix(T: np.ndarray) -> np.ndarray:
    """
    18×18 global → local transform for a triangle.

    Block diagonal with six copies of Λ = Tᵀ: d_local = Te · d_global.
    """
    return np.kron(np.eye(6), T.T)


class ElementFormulation(ABC):
    """
    Element matrices for assembly.

    Static and modal analysis both go through this interface, so a
    formulation is written once and used by every assembler.
    """

    @abstractmethod
    def local_stiffness(self, element: Element) -> np.ndarray:
        """Stiffness in the element frame."""

    @abstractmethod
    def local_mass(self, element: Element) -> np.ndarray:
        """Consistent mass in the element frame."""

    def global_stiffness(self, element: Element) -> np.ndarray:
        Te = transformation_matrix(element.T)
        return Te.T @ self.local_stiffness(element) @ Te

    def global_mass(self, element: Element) -> np.ndarray:
        Te = transformation_matrix(element.T)
        return Te.T @ self.local_mass(element) @ Te


class DKTShellFormulation(ElementFormulation):
    """
    Flat shell: CST membrane + DKT bending + drilling stabilization.

    Parameters:
    -----------
    drilling_factor : float
        θz diagonal as a fraction of the node's largest other diagonal
    stiffness_points : int
        Integration points for the bending stiffness (3 is exact)
    mass_points : int
        Integration points for the consistent mass (7: degree 5)
    """

    def __init__(self, drilling_factor: float = DRILLING_FACTOR, stiffness_points: int = 3, mass_points: int = 7):
        self.drilling_factor = drilling_factor
        self.stiffness_points = stiffness_points
        self.mass_points = mass_points

    def local_stiffness(self, element: Element) -> np.ndarray:
        xy = element.local_coordinates
        A = element.area
        E, nu = element.material.E, element.material.nu
        h = element.section.thickness

        Kme = membrane_stiffness(xy, A, E, nu, h)
        Kbe = bending_stiffness(xy, A, E, nu, h, self.stiffness_points)
        return stabilize_drilling(interleave_shell_matrix(Kme, Kbe), self.drilling_factor)

    def local_mass(self, element: Element) -> np.ndarray:
        """
        Consistent mass, 18×18.

        Translation (u, v, w): ρh ∫ L Lᵀ dA with the linear area coordinates.
        Rotary inertia (w, θx, θy): ρh³/12 ∫ (Hx Hxᵀ + Hy Hyᵀ) dA.
        Membrane and bending are not coupled.
        """
        xy = element.local_coordinates
        A = element.area
        rho = element.material.density
        h = element.section.thickness
        detJ = 2.0 * A

        translational = rho * h
        rotary = rho * h ** 3 / 12.0

        b_idx = [6 * i + k for i in range(3) for k in BENDING_DOFS]
        points, weights = gauss_points_weights_triangle(self.mass_points)

        me = np.zeros((18, 18))
        for L, w in zip(points, weights):
            scale = 0.5 * w * detJ
            NN = np.outer(L, L) * translational * scale
            for k in range(3):
                idx = [6 * i + k for i in range(3)]
                me[np.ix_(idx, idx)] += NN

            sf = dkt_shape_functions(L, xy, A)
            me[np.ix_(b_idx, b_idx)] += (np.outer(sf.Hx, sf.Hx) + np.outer(sf.Hy, sf.Hy)) * rotary * scale

        return stabilize_drilling(me, self.drilling_factor)
