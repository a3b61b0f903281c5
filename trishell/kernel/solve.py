# trishell/kernel/solve.py
"""Linear system solve with penalty boundary conditions, mechanism detection, and reactions."""

import logging

import numpy as np
from typing import Sequence, Tuple

from .dof import DOFManager, DOF_SHELL

logger = logging.getLogger(__name__)


class SingularSystemError(RuntimeError):
    """
    Raised when K is still singular after boundary conditions.

    Typical cause: a rigid-body mode that no support restrains (a floating
    element, a line of pins a plate can rotate about, ...). The DOF that
    dominates the offending mode is attached for diagnosis.
    """

    def __init__(self, message: str, global_dof: int = None, node_id: int = None, dof: str = None):
        super().__init__(message)
        self.global_dof = global_dof
        self.node_id = node_id
        self.dof = dof


def free_dofs(ndof: int, fixed_dofs: Sequence[int]) -> np.ndarray:
    """Sorted array of DOF indices that are not restrained."""
    fixed = set(int(i) for i in fixed_dofs)
    return np.array([i for i in range(ndof) if i not in fixed], dtype=int)


def zero_stiffness_modes(
    K_free: np.ndarray,
    cond_limit: float = 1e12
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Spectral decomposition of the free-DOF stiffness block.

    A mode counts as zero-stiffness when its eigenvalue is below
    λ_max / cond_limit, the same bound a condition-number check would use.

    Args:
        K_free: Symmetric stiffness restricted to free DOFs
        cond_limit: Largest acceptable ratio λ_max / λ

    Returns:
        eigenvalues: Ascending eigenvalues, shape (n,)
        eigenvectors: Column eigenvectors, shape (n, n)
        is_null: Boolean mask of zero-stiffness modes, shape (n,)
    """
    n = K_free.shape[0]
    if n == 0:
        return np.zeros(0), np.zeros((0, 0)), np.zeros(0, dtype=bool)

    eigenvalues, eigenvectors = np.linalg.eigh(K_free)
    lam_max = float(np.max(np.abs(eigenvalues)))
    if lam_max == 0.0:
        return eigenvalues, eigenvectors, np.ones(n, dtype=bool)

    is_null = eigenvalues <= lam_max / cond_limit
    return eigenvalues, eigenvectors, is_null


def _mode_error(
    mode: np.ndarray,
    free: np.ndarray,
    dof_manager: DOFManager,
    reason: str
) -> SingularSystemError:
    """Build a SingularSystemError pointing at the DOF that dominates a mode."""
    k = int(np.argmax(np.abs(mode)))
    global_dof = int(free[k])
    node_id, label = dof_manager.locate(global_dof)
    return SingularSystemError(
        f"Unstable system: {reason} dominated by node {node_id} DOF '{label}' "
        f"(global DOF {global_dof}). Check supports.",
        global_dof=global_dof,
        node_id=node_id,
        dof=label,
    )


def check_stability(
    K: np.ndarray,
    fixed_dofs: Sequence[int],
    cond_limit: float = 1e12,
    dof_manager: DOFManager = DOF_SHELL
) -> None:
    """
    Raise SingularSystemError if the free-DOF block of K has any zero-stiffness mode.

    Used where every mode will be excited (modal analysis: each column of M
    is a right-hand side).
    """
    free = free_dofs(K.shape[0], fixed_dofs)
    _, eigenvectors, is_null = zero_stiffness_modes(K[np.ix_(free, free)], cond_limit)
    if np.any(is_null):
        first = int(np.flatnonzero(is_null)[0])
        raise _mode_error(
            eigenvectors[:, first], free, dof_manager,
            f"{int(np.count_nonzero(is_null))} zero-stiffness mode(s),"
        )


def solve_penalized(
    K_bc: np.ndarray,
    F: np.ndarray,
    fixed_dofs: Sequence[int],
    penalty: float = 1.0e10,
    cond_limit: float = 1e12,
    load_tolerance: float = 1e-6,
    dof_manager: DOFManager = DOF_SHELL
) -> np.ndarray:
    """
    Solve K·d = F where restrained DOFs were already penalized.

    The free-DOF block is checked for zero-stiffness modes first:
    - none: dense direct solve of the full penalized system
    - present but orthogonal to the load: the load cannot move the
      mechanism, so d is built from the stiff modes only and restrained
      DOFs get F / penalty (what the penalized rows give)
    - present and loaded: SingularSystemError

    Args:
        K_bc: Global stiffness with penalty BCs applied (ndof x ndof)
        F: Global load vector (ndof,)
        fixed_dofs: Restrained DOF indices (the penalized ones)
        penalty: Penalty value used on restrained DOFs
        cond_limit: Ratio λ_max / λ above which a mode counts as zero-stiffness
        load_tolerance: Relative load component along a zero-stiffness mode
            above which the system is declared unstable
        dof_manager: Used to name DOFs in error messages

    Returns:
        d: Displacement vector (ndof,)

    Raises:
        SingularSystemError: If a zero-stiffness mode is loaded, or the solve
            fails / yields non-finite values
    """
    ndof = K_bc.shape[0]
    free = free_dofs(ndof, fixed_dofs)
    fixed = np.array(sorted(set(int(i) for i in fixed_dofs)), dtype=int)

    eigenvalues, eigenvectors, is_null = zero_stiffness_modes(K_bc[np.ix_(free, free)], cond_limit)

    if not np.any(is_null):
        try:
            d = np.linalg.solve(K_bc, F)
        except np.linalg.LinAlgError as err:
            raise SingularSystemError(f"Direct solve failed: {err}") from err
    else:
        F_free = F[free]
        null_modes = eigenvectors[:, is_null]
        excitation = null_modes.T @ F_free
        threshold = load_tolerance * float(np.linalg.norm(F))

        loaded = np.abs(excitation) > threshold
        if np.any(loaded):
            worst = int(np.argmax(np.abs(excitation)))
            raise _mode_error(null_modes[:, worst], free, dof_manager, "load excites a zero-stiffness mode")

        logger.warning(
            "%d zero-stiffness mode(s) not excited by the load; solving on the stiff subspace",
            int(np.count_nonzero(is_null)),
        )
        keep = ~is_null
        V = eigenvectors[:, keep]
        d = np.zeros(ndof, dtype=float)
        d[free] = V @ ((V.T @ F_free) / eigenvalues[keep])
        d[fixed] = F[fixed] / penalty

    if not np.all(np.isfinite(d)):
        bad = int(np.flatnonzero(~np.isfinite(d))[0])
        node_id, label = dof_manager.locate(bad)
        raise SingularSystemError(
            f"Solve produced non-finite displacement at node {node_id} DOF '{label}' (global DOF {bad})",
            global_dof=bad,
            node_id=node_id,
            dof=label,
        )

    return d


def compute_reactions(
    K: np.ndarray,
    d: np.ndarray,
    F: np.ndarray,
    fixed_dofs: Sequence[int]
) -> np.ndarray:
    """
    Support reactions from the unpenalized stiffness.

    Restrained displacements are taken as exactly zero (the penalty
    residual F/penalty is dropped), then R = K·d - F is evaluated on the
    restrained DOFs. Free DOFs get 0.

    Args:
        K: Global stiffness BEFORE boundary conditions
        d: Displacement vector from solve_penalized
        F: Global load vector
        fixed_dofs: Restrained DOF indices

    Returns:
        R: Reaction vector (ndof,), non-zero only at restrained DOFs
    """
    fixed = np.array(sorted(set(int(i) for i in fixed_dofs)), dtype=int)
    R = np.zeros_like(F, dtype=float)
    if fixed.size == 0:
        return R

    d_clamped = d.copy()
    d_clamped[fixed] = 0.0
    R[fixed] = (K @ d_clamped - F)[fixed]
    return R
