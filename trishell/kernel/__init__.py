# trishell/kernel - Element-agnostic analysis core
"""
KERNEL: THE ELEMENT-AGNOSTIC FOUNDATION
=======================================

Everything here works on plain numpy arrays and DOF indices; nothing knows
what a triangle, a material or a support is:

- dof.py       (node_id, local_dof) ↔ global DOF index
- gauss.py     triangle integration rules
- assemble.py  scatter-add of element matrices, penalty boundary conditions
- solve.py     linear solve with mechanism detection, reactions
- modal.py     generalized eigenproblem via K⁻¹M

The shell-specific code (elements.py, assembly.py, solve.py at package
level) feeds element matrices and DOF lists into these functions.
"""

from .dof import DOFManager, DOF_SHELL, DOF_LABELS
from .solve import SingularSystemError, solve_penalized, compute_reactions
from .modal import (
    UnsupportedEigenResultError,
    UnsupportedEigenResultWarning,
    generalized_eigen,
)

__all__ = [
    'DOFManager', 'DOF_SHELL', 'DOF_LABELS',
    'SingularSystemError', 'solve_penalized', 'compute_reactions',
    'UnsupportedEigenResultError', 'UnsupportedEigenResultWarning', 'generalized_eigen',
]
