# trishell/solve.py
"""
ANALYSIS DRIVERS: Static and Modal
==================================

PURPOSE:
--------
Run a complete analysis on a Model and return a Result:

    solve_static:  assemble K → apply supports → assemble F → solve → reactions
    solve_modal:   assemble K → apply supports → stability check
                   → assemble M → eigen(K⁻¹M) → eigenvalue check

Each call is a single pass with no retries. Any failure raises and no
Result is produced; a Result is only built once every stage succeeded.

USAGE:
------
    model = Model(nodes, elements, supports, loads)
    result = solve_static(model)
    result.displacement[model.dof.idx(1, 2)]   # uz of node 1

    modes = solve_modal(model, AnalysisSettings(eigen_strictness="strict"))
    modes.frequencies_hz()

Both take an optional should_cancel callable, polled before every stage
and once per element during assembly. deadline(seconds) builds one.
"""

import logging
import time

import numpy as np

from .assembly import (
    AnalysisCancelledError,
    CancelCheck,
    apply_supports,
    assemble_mass,
    assemble_stiffness,
    check_cancelled,
)
from .config import AnalysisSettings, DEFAULT_SETTINGS
from .elements import DKTShellFormulation, ElementFormulation
from .kernel.modal import check_eigenvalues, generalized_eigen
from .kernel.solve import check_stability, compute_reactions, solve_penalized
from .loads import assemble_load_vector
from .model import Model
from .post import Result

logger = logging.getLogger(__name__)

__all__ = ["solve_static", "solve_modal", "deadline", "AnalysisCancelledError"]


def deadline(seconds: float) -> CancelCheck:
    """Cancel check that turns True once `seconds` have elapsed from now."""
    end = time.monotonic() + seconds

    def expired() -> bool:
        return time.monotonic() >= end

    return expired


def solve_static(
    model: Model,
    settings: AnalysisSettings = None,
    formulation: ElementFormulation = None,
    should_cancel: CancelCheck = None
) -> Result:
    """
    Linear static analysis.

    Parameters:
    -----------
    model : Model
        Mesh, supports and loads
    settings : AnalysisSettings, optional
        Penalty value and singularity tolerances (DEFAULT_SETTINGS if omitted)
    formulation : ElementFormulation, optional
        DKTShellFormulation() if omitted
    should_cancel : Callable[[], bool], optional
        Returning True aborts with AnalysisCancelledError

    Returns:
    --------
    Result
        displacement and reactions filled, no modes

    Raises:
    -------
    SingularSystemError
        The supports leave a mechanism that the loads excite
    AnalysisCancelledError
        should_cancel returned True
    """
    settings = settings or DEFAULT_SETTINGS
    formulation = formulation or DKTShellFormulation()

    check_cancelled(should_cancel, "setup")
    logger.debug("Static analysis: %s", model)
    K = assemble_stiffness(model, formulation, should_cancel)

    check_cancelled(should_cancel, "boundary conditions")
    fixed = model.fixed_dofs()
    K_bc = apply_supports(K, model, settings.penalty)

    check_cancelled(should_cancel, "load assembly")
    F = assemble_load_vector(model)

    check_cancelled(should_cancel, "solve")
    d = solve_penalized(
        K_bc, F, fixed,
        penalty=settings.penalty,
        cond_limit=settings.cond_limit,
        load_tolerance=settings.load_tolerance,
        dof_manager=model.dof,
    )
    R = compute_reactions(K, d, F, fixed)

    logger.debug("Static analysis done: max |d| = %.6g", float(np.max(np.abs(d))) if d.size else 0.0)
    return Result(displacement=d, reactions=R)


def solve_modal(
    model: Model,
    settings: AnalysisSettings = None,
    formulation: ElementFormulation = None,
    should_cancel: CancelCheck = None
) -> Result:
    """
    Natural modes from K·φ = λ·M·φ with the model's supports applied.

    Loads are ignored. Eigenvalues are λ = ω² (complex, solver order) and
    eigenvectors the real parts, one column per mode; displacement and
    reactions are zero vectors.

    Raises:
    -------
    SingularSystemError
        The supported stiffness still has a zero-stiffness mode
    UnsupportedEigenResultError
        settings.eigen_strictness == 'strict' and an eigenvalue has a
        significant imaginary part
    AnalysisCancelledError
        should_cancel returned True
    """
    settings = settings or DEFAULT_SETTINGS
    formulation = formulation or DKTShellFormulation()

    check_cancelled(should_cancel, "setup")
    logger.debug("Modal analysis: %s", model)
    K = assemble_stiffness(model, formulation, should_cancel)

    check_cancelled(should_cancel, "boundary conditions")
    fixed = model.fixed_dofs()
    K_bc = apply_supports(K, model, settings.penalty)
    check_stability(K_bc, fixed, settings.cond_limit, model.dof)

    M = assemble_mass(model, formulation, should_cancel)

    check_cancelled(should_cancel, "eigen solve")
    eigenvalues, eigenvectors = generalized_eigen(K_bc, M)
    check_eigenvalues(eigenvalues, settings.eigen_strictness, settings.imag_tolerance)

    logger.debug("Modal analysis done: %d modes", len(eigenvalues))
    return Result(
        displacement=np.zeros(model.ndof),
        reactions=np.zeros(model.ndof),
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
    )
