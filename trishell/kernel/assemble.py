# trishell/kernel/assemble.py
"""
ASSEMBLY: Global Matrix Assembly and Penalty Boundary Conditions
================================================================

PURPOSE:
--------
Scatter-add of element matrices into dense global matrices, plus the
penalty treatment of restrained DOFs.

The scatter-add does not care what the element matrix represents: the
same routine builds the global stiffness K and the global mass M. It only
needs, per element:
- its DOF map (global index of every element row/column)
- its matrix, already rotated to global coordinates

    K = zeros(ndof × ndof)
    for each element:
        for each (a, b) in element matrix:
            K[dof_map[a], dof_map[b]] += ke[a, b]

Elements that share a node add into the same global entries; that overlap
is what couples the mesh together.

USAGE:
------
    contributions = ((dof.element_dof_map(e.node_ids), ke_global(e)) for e in elements)
    K = assemble_global_matrix(ndof, contributions)
    K_bc = apply_penalty_bc(K, fixed_dofs, penalty=1e10)
"""

import numpy as np
from typing import Iterable, List, Sequence, Tuple


def assemble_global_matrix(
    ndof: int,
    contributions: Iterable[Tuple[List[int], np.ndarray]]
) -> np.ndarray:
    """
    Assemble a global matrix (stiffness or mass) from element contributions.

    Parameters:
    -----------
    ndof : int
        Total number of DOFs in the system (6 × n_nodes for shells)

    contributions : Iterable[Tuple[List[int], np.ndarray]]
        (dof_map, me) pairs, one per element:
        - dof_map: global DOF index of each element row/column
        - me: element matrix in global coordinates,
          shape (len(dof_map), len(dof_map))
        May be a generator; it is consumed exactly once.

    Returns:
    --------
    np.ndarray
        Global matrix, shape (ndof, ndof). Symmetric whenever every element
        matrix is symmetric.

    Raises:
    -------
    ValueError
        If an element matrix does not match its DOF map
    """
    K = np.zeros((ndof, ndof), dtype=float)

    for dof_map, me in contributions:
        n_element_dofs = len(dof_map)

        if me.shape != (n_element_dofs, n_element_dofs):
            raise ValueError(
                f"Element matrix shape {me.shape} doesn't match dof_map length {n_element_dofs}"
            )

        # Same as the double loop K[dof_map[a], dof_map[b]] += me[a, b];
        # an element never lists a DOF twice, so fancy-index += is safe.
        idx = np.asarray(dof_map, dtype=int)
        K[np.ix_(idx, idx)] += me

    return K


def apply_penalty_bc(
    K: np.ndarray,
    fixed_dofs: Sequence[int],
    penalty: float = 1.0e10
) -> np.ndarray:
    """
    Enforce restrained DOFs with the penalty method.

    For every restrained DOF d, row d and column d are zeroed and the
    diagonal is replaced by the penalty value:

        K[d, :] = 0,  K[:, d] = 0,  K[d, d] = penalty

    The restrained DOF is thereby decoupled from the rest of the system.
    Its displacement comes out as f[d] / penalty, i.e. approximately but
    not exactly zero.

    Parameters:
    -----------
    K : np.ndarray
        Global stiffness matrix (not modified)
    fixed_dofs : Sequence[int]
        Global indices of restrained DOFs (duplicates are harmless)
    penalty : float
        Diagonal value placed on restrained DOFs

    Returns:
    --------
    np.ndarray
        A new matrix with the boundary conditions applied
    """
    K_bc = K.copy()
    fixed = np.unique(np.asarray(fixed_dofs, dtype=int))
    if fixed.size == 0:
        return K_bc

    K_bc[fixed, :] = 0.0
    K_bc[:, fixed] = 0.0
    K_bc[fixed, fixed] = penalty
    return K_bc


def add_nodal_load(
    F: np.ndarray,
    node_id: int,
    load_vector: Sequence[float],
    dof_per_node: int
) -> None:
    """
    Add a nodal load to the global load vector (in-place).

    Parameters:
    -----------
    F : np.ndarray
        Global load vector (modified in-place)
    node_id : int
        Node to apply load to
    load_vector : Sequence[float]
        Load components at the node, at most dof_per_node long.
        For shells: [Fx, Fy, Fz, Mx, My, Mz]
    dof_per_node : int
        Number of DOFs per node

    Example:
    --------
    >>> F = np.zeros(12)
    >>> add_nodal_load(F, node_id=1, load_vector=[0, 0, -1000.0], dof_per_node=6)
    >>> float(F[8])
    -1000.0
    """
    base_dof = dof_per_node * node_id
    for i, val in enumerate(load_vector):
        F[base_dof + i] += val
