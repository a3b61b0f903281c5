# trishell/config.py
"""
Analysis configuration and defaults.
"""

from dataclasses import dataclass

from .kernel.modal import EIGEN_STRICTNESS


@dataclass(frozen=True)
class AnalysisSettings:
    """Numerical settings shared by static and modal analysis."""

    # Diagonal value placed on restrained DOFs
    penalty: float = 1.0e10

    # Free-DOF stiffness modes with λ <= λ_max / cond_limit are zero-stiffness
    cond_limit: float = 1e12

    # Load component along a zero-stiffness mode, relative to |F|, that
    # still counts as "not loaded"
    load_tolerance: float = 1e-6

    # Complex eigenvalues: 'ignore', 'warn' or 'strict'
    eigen_strictness: str = "warn"
    imag_tolerance: float = 1e-6

    def __post_init__(self):
        if not self.penalty > 0.0:
            raise ValueError(f"penalty must be positive, got {self.penalty}")
        if not self.cond_limit > 1.0:
            raise ValueError(f"cond_limit must be greater than 1, got {self.cond_limit}")
        if self.load_tolerance < 0.0:
            raise ValueError(f"load_tolerance must be non-negative, got {self.load_tolerance}")
        if self.eigen_strictness not in EIGEN_STRICTNESS:
            raise ValueError(
                f"eigen_strictness must be one of {EIGEN_STRICTNESS}, got {self.eigen_strictness!r}"
            )
        if self.imag_tolerance < 0.0:
            raise ValueError(f"imag_tolerance must be non-negative, got {self.imag_tolerance}")


# Default settings instance
DEFAULT_SETTINGS = AnalysisSettings()
