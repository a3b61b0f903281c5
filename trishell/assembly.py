# trishell/assembly.py
"""Global K and M assembly for a shell Model, and support conditions."""

import logging
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from .elements import DKTShellFormulation, ElementFormulation
from .kernel.assemble import apply_penalty_bc, assemble_global_matrix
from .model import Element, Model

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


class AnalysisCancelledError(RuntimeError):
    """Raised when the caller's cancel check returns True; no result is produced."""


def check_cancelled(should_cancel: Optional[CancelCheck], stage: str) -> None:
    if should_cancel is not None and should_cancel():
        logger.info("Analysis cancelled during %s", stage)
        raise AnalysisCancelledError(f"Analysis cancelled during {stage}")


def _contributions(
    model: Model,
    element_matrix: Callable[[Element], np.ndarray],
    should_cancel: Optional[CancelCheck],
    stage: str
) -> Iterator[Tuple[List[int], np.ndarray]]:
    for e in model.elements:
        check_cancelled(should_cancel, stage)
        yield model.dof.element_dof_map(e.node_ids), element_matrix(e)


def assemble_stiffness(
    model: Model,
    formulation: ElementFormulation = None,
    should_cancel: Optional[CancelCheck] = None
) -> np.ndarray:
    """
    Global stiffness K (6N × 6N), before boundary conditions.

    Args:
        model: Built Model (element geometry attached)
        formulation: Element matrices; DKTShellFormulation() if omitted
        should_cancel: Polled once per element

    Returns:
        Symmetric K in global axes
    """
    formulation = formulation or DKTShellFormulation()
    K = assemble_global_matrix(
        model.ndof,
        _contributions(model, formulation.global_stiffness, should_cancel, "stiffness assembly"),
    )
    logger.debug("Assembled K: %d DOFs from %d elements", model.ndof, len(model.elements))
    return K


def assemble_mass(
    model: Model,
    formulation: ElementFormulation = None,
    should_cancel: Optional[CancelCheck] = None
) -> np.ndarray:
    """
    Global consistent mass M (6N × 6N).

    Same scatter and rotation as assemble_stiffness, with the
    formulation's mass matrix in place of its stiffness.
    """
    formulation = formulation or DKTShellFormulation()
    M = assemble_global_matrix(
        model.ndof,
        _contributions(model, formulation.global_mass, should_cancel, "mass assembly"),
    )
    logger.debug("Assembled M: %d DOFs, total translational mass %.6g", model.ndof, float(np.sum(M[0::6, 0::6])))
    return M


def apply_supports(K: np.ndarray, model: Model, penalty: float = 1.0e10) -> np.ndarray:
    """
    Copy of K with every restrained DOF of the model penalized.

    Row and column of each restrained DOF are zeroed and its diagonal
    set to the penalty value.
    """
    fixed = model.fixed_dofs()
    if not fixed:
        logger.warning("Model has no supports; stiffness will be singular")
    logger.debug("Applying %d restrained DOF(s), penalty %.3g", len(fixed), penalty)
    return apply_penalty_bc(K, fixed, penalty)
