# trishell/kernel/modal.py
"""Modal analysis: generalized eigenproblem K·φ = λ·M·φ via K⁻¹M and eigenvalue checks."""

import logging
import warnings

import numpy as np
import scipy.linalg
from typing import List, Tuple

logger = logging.getLogger(__name__)

EIGEN_STRICTNESS = ("ignore", "warn", "strict")


class UnsupportedEigenResultError(RuntimeError):
    """Raised in strict mode when eigenvalues carry a non-negligible imaginary part."""

    def __init__(self, message: str, modes: List[int] = None):
        super().__init__(message)
        self.modes = list(modes or [])


class UnsupportedEigenResultWarning(RuntimeWarning):
    """Issued in warn mode for eigenvalues with a non-negligible imaginary part."""


def generalized_eigen(K: np.ndarray, M: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Solve K·φ = λ·M·φ through the standard eigenproblem of A = K⁻¹M.

    A·φ = μ·φ  ⇔  M·φ = μ·K·φ  ⇔  K·φ = (1/μ)·M·φ,  so λ = ω² = 1/μ.

    K must be non-singular (boundary conditions applied); M need not be
    invertible. A is generally non-symmetric, so eigenvalues come back
    complex with (ideally negligible) imaginary parts.

    Args:
        K: Global stiffness with boundary conditions applied
        M: Global mass matrix

    Returns:
        eigenvalues: λ = ω² per mode, complex, shape (ndof,); massless
            modes (μ = 0) are reported as inf. Order is the solver's, not
            sorted.
        eigenvectors: Real part of the mode shapes, one column per mode,
            shape (ndof, ndof)
    """
    # Solve K against every column of M
    A = np.linalg.solve(K, M)

    mu, phi = scipy.linalg.eig(A)

    eigenvalues = np.full(mu.shape, np.inf, dtype=complex)
    massive = mu != 0
    eigenvalues[massive] = 1.0 / mu[massive]

    if not np.all(massive):
        logger.warning("%d massless mode(s) reported with infinite eigenvalue", int(np.count_nonzero(~massive)))

    return eigenvalues, np.real(phi)


def check_eigenvalues(
    eigenvalues: np.ndarray,
    strictness: str = "warn",
    imag_tolerance: float = 1e-6
) -> List[int]:
    """
    Check that eigenvalues are real up to numerical noise.

    A mode is suspicious when |Im λ| > imag_tolerance · |Re λ|. Infinite
    (massless) eigenvalues are skipped.

    Args:
        eigenvalues: Complex eigenvalues from generalized_eigen
        strictness: 'ignore', 'warn' (UnsupportedEigenResultWarning) or
            'strict' (UnsupportedEigenResultError)
        imag_tolerance: Allowed ratio |Im λ| / |Re λ|

    Returns:
        Indices of suspicious modes (empty when all are fine)

    Raises:
        UnsupportedEigenResultError: In strict mode, if any mode is suspicious
        ValueError: If strictness is not recognised
    """
    if strictness not in EIGEN_STRICTNESS:
        raise ValueError(f"strictness must be one of {EIGEN_STRICTNESS}, got {strictness!r}")

    lam = np.asarray(eigenvalues, dtype=complex)
    finite = np.isfinite(lam)
    bad = finite & (np.abs(lam.imag) > imag_tolerance * np.abs(lam.real))
    modes = [int(i) for i in np.flatnonzero(bad)]

    if not modes or strictness == "ignore":
        return modes

    worst = max(modes, key=lambda i: abs(lam[i].imag) / max(abs(lam[i].real), np.finfo(float).tiny))
    message = (
        f"{len(modes)} eigenvalue(s) with significant imaginary part "
        f"(worst: mode {worst}, λ = {lam[worst]:.6g}); tolerance |Im| <= {imag_tolerance:g}·|Re|"
    )
    if strictness == "strict":
        raise UnsupportedEigenResultError(message, modes)

    logger.warning(message)
    warnings.warn(message, UnsupportedEigenResultWarning, stacklevel=2)
    return modes


def natural_frequencies_hz(eigenvalues: np.ndarray) -> np.ndarray:
    """
    Convert λ = ω² to natural frequencies in Hz: f = sqrt(Re λ) / 2π.

    Slightly negative real parts (numerical noise) are clamped to 0.
    """
    lam = np.real(np.asarray(eigenvalues, dtype=complex))
    omega = np.sqrt(np.maximum(lam, 0.0))
    return omega / (2.0 * np.pi)
