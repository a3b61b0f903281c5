# tests/test_modal.py
"""
MODAL ANALYSIS TESTS
====================

solve_modal forms A = K⁻¹·M and reports λ = 1/μ = ω² for each eigenvalue
μ of A. These tests check:
1. M is symmetric and carries the right total mass
2. Every eigenvalue of a supported, massive mesh has Re λ >= 0
3. The fundamental frequency of a simply supported plate matches
   Kirchhoff plate theory
4. The imaginary-part check ignores, warns or raises as configured
"""

import numpy as np
import pytest

from trishell import (
    AnalysisSettings,
    Element,
    Material,
    Model,
    Node,
    Section,
    SingularSystemError,
    Support,
    UnsupportedEigenResultError,
    UnsupportedEigenResultWarning,
    solve_modal,
)
from trishell.assembly import apply_supports, assemble_mass, assemble_stiffness
from trishell.kernel.modal import check_eigenvalues, generalized_eigen, natural_frequencies_hz
from trishell.post import Result


E, NU, RHO, H = 205000.0, 0.3, 7.85e-9, 10.0   # N, mm, t/mm³


def make_plate(a, b, nx, ny, h=H, density=RHO):
    nodes = []
    for j in range(ny + 1):
        for i in range(nx + 1):
            nodes.append(Node(len(nodes), a * i / nx, b * j / ny, 0.0))

    material = Material(E=E, nu=NU, density=density)
    section = Section(thickness=h)
    elements = []
    for j in range(ny):
        for i in range(nx):
            n0 = j * (nx + 1) + i
            n3 = n0 + nx + 2
            elements.append(Element(len(elements), (n0, n0 + 1, n3), material, section))
            elements.append(Element(len(elements), (n0, n3, n0 + nx + 1), material, section))
    return nodes, elements


def simply_supported_plate(a, b, nx, ny, **kwargs):
    """
    Plate with w = 0 along all four edges.

    In-plane rigid motion is removed by pinning (x, y) at node 0 and y at
    the corner (a, 0).
    """
    nodes, elements = make_plate(a, b, nx, ny, **kwargs)
    supports = []
    for n in nodes:
        on_edge = n.x in (0.0, a) or n.y in (0.0, b)
        if not on_edge:
            continue
        if n.id == 0:
            supports.append(Support(n.id, dx=True, dy=True, dz=True))
        elif n.id == nx:
            supports.append(Support(n.id, dy=True, dz=True))
        else:
            supports.append(Support(n.id, dz=True))
    return Model(nodes, elements, supports)


def corner_pinned_plate(a=1000.0, b=600.0, nx=3, ny=2, **kwargs):
    nodes, elements = make_plate(a, b, nx, ny, **kwargs)
    corners = [0, nx, ny * (nx + 1), ny * (nx + 1) + nx]
    return Model(nodes, elements, [Support.pinned(c) for c in corners])


QUIET = AnalysisSettings(eigen_strictness="ignore")


class TestMassMatrix:
    """Global consistent mass properties."""

    def test_mass_symmetric(self):
        model = corner_pinned_plate()
        M = assemble_mass(model)
        np.testing.assert_allclose(M, M.T, rtol=1e-12, atol=1e-12 * np.max(np.abs(M)))

    def test_total_mass(self):
        model = corner_pinned_plate(a=1000.0, b=600.0)
        M = assemble_mass(model)
        total = RHO * H * 1000.0 * 600.0
        for k in range(3):
            r = np.zeros(model.ndof)
            r[k::6] = 1.0
            assert r @ M @ r == pytest.approx(total, rel=1e-10)


class TestEigenvalues:
    """Eigenvalue sign and frequency checks."""

    def test_real_parts_non_negative(self):
        model = corner_pinned_plate()
        result = solve_modal(model, QUIET)

        lam = result.eigenvalues
        finite = np.isfinite(lam)
        assert np.all(finite)
        scale = np.max(np.abs(lam[finite]))
        assert np.all(np.real(lam[finite]) >= -1e-8 * scale)

    def test_result_shapes(self):
        model = corner_pinned_plate()
        result = solve_modal(model, QUIET)

        assert result.eigenvalues.shape == (model.ndof,)
        assert result.eigenvectors.shape == (model.ndof, model.ndof)
        assert np.isrealobj(result.eigenvectors)
        assert np.all(result.displacement == 0.0)
        assert result.n_modes == model.ndof

    def test_eigenpairs_satisfy_generalized_problem(self):
        """K_bc·φ = λ·M·φ for the lowest few modes."""
        model = corner_pinned_plate()
        result = solve_modal(model, QUIET)
        K_bc = apply_supports(assemble_stiffness(model), model)
        M = assemble_mass(model)

        for mode in result.mode_order()[:4]:
            phi = result.mode_shape(mode)
            lam = np.real(result.eigenvalues[mode])
            residual = K_bc @ phi - lam * (M @ phi)
            assert np.linalg.norm(residual) <= 1e-5 * np.linalg.norm(K_bc @ phi)

    def test_simply_supported_plate_fundamental_frequency(self):
        """
        Kirchhoff plate, simply supported on all edges:

            ω₁₁ = π² (1/a² + 1/b²) · sqrt(D / (ρ h)),   D = E h³ / (12 (1 - ν²))
        """
        a = b = 1000.0
        model = simply_supported_plate(a, b, nx=8, ny=8)
        result = solve_modal(model, QUIET)

        D = E * H ** 3 / (12.0 * (1.0 - NU ** 2))
        omega = np.pi ** 2 * (1.0 / a ** 2 + 1.0 / b ** 2) * np.sqrt(D / (RHO * H))
        f_exact = omega / (2.0 * np.pi)

        f_lowest = result.frequencies_hz()[result.mode_order()[0]]
        assert f_lowest == pytest.approx(f_exact, rel=0.08)

    def test_unsupported_mesh_is_singular(self):
        nodes, elements = make_plate(1000.0, 600.0, 2, 2)
        with pytest.raises(SingularSystemError):
            solve_modal(Model(nodes, elements), QUIET)

    def test_mechanism_in_supported_mesh_is_singular(self):
        """A single pinned corner leaves rigid rotations about it."""
        nodes, elements = make_plate(1000.0, 600.0, 2, 2)
        with pytest.raises(SingularSystemError):
            solve_modal(Model(nodes, elements, [Support.pinned(0)]), QUIET)


class TestGeneralizedEigen:
    """Kernel eigen routine on small systems with known answers."""

    def test_diagonal_system(self):
        K = np.diag([2.0, 8.0, 30.0])
        M = np.diag([1.0, 2.0, 3.0])
        lam, phi = generalized_eigen(K, M)
        np.testing.assert_allclose(np.sort(np.real(lam)), [2.0, 4.0, 10.0], rtol=1e-12)
        np.testing.assert_allclose(np.imag(lam), 0.0, atol=1e-12)
        assert phi.shape == (3, 3)

    def test_two_dof_spring_mass(self):
        """Two masses, two springs in series: ω² = (3 ± √5)/2 for unit k, m."""
        K = np.array([[2.0, -1.0], [-1.0, 1.0]])
        M = np.eye(2)
        lam, _ = generalized_eigen(K, M)
        expected = [(3.0 - np.sqrt(5.0)) / 2.0, (3.0 + np.sqrt(5.0)) / 2.0]
        np.testing.assert_allclose(np.sort(np.real(lam)), expected, rtol=1e-12)

    def test_massless_modes_are_infinite(self):
        lam, _ = generalized_eigen(np.eye(3), np.diag([1.0, 0.0, 0.0]))
        assert np.sum(np.isinf(lam)) == 2
        assert np.real(lam[np.isfinite(lam)]) == pytest.approx([1.0])

    def test_frequencies_from_eigenvalues(self):
        omega = 2.0 * np.pi * np.array([10.0, 25.0])
        np.testing.assert_allclose(natural_frequencies_hz(omega ** 2 + 0j), [10.0, 25.0])
        # Round-off negatives clamp to 0 Hz
        assert natural_frequencies_hz(np.array([-1e-12 + 0j]))[0] == 0.0


class TestImaginaryPartCheck:
    """Complex eigenvalues are handled according to eigen_strictness."""

    LAMBDA = np.array([4.0 + 0j, 9.0 + 1e-3j, 16.0 + 1e-12j, np.inf])

    def test_ignore(self, recwarn):
        bad = check_eigenvalues(self.LAMBDA, "ignore")
        assert bad == [1]
        assert not [w for w in recwarn if issubclass(w.category, UnsupportedEigenResultWarning)]

    def test_warn(self):
        with pytest.warns(UnsupportedEigenResultWarning, match="mode 1"):
            bad = check_eigenvalues(self.LAMBDA, "warn")
        assert bad == [1]

    def test_strict(self):
        with pytest.raises(UnsupportedEigenResultError) as exc:
            check_eigenvalues(self.LAMBDA, "strict")
        assert exc.value.modes == [1]

    def test_clean_eigenvalues_pass_strict(self):
        assert check_eigenvalues(np.array([1.0 + 0j, 2.0 + 1e-9j]), "strict") == []

    def test_unknown_strictness(self):
        with pytest.raises(ValueError):
            check_eigenvalues(self.LAMBDA, "loud")


class TestModeAccess:
    """Result helpers for modal output."""

    def make_result(self):
        omega = 2.0 * np.pi * np.array([30.0, 10.0, 20.0])
        return Result(
            displacement=np.zeros(6),
            reactions=np.zeros(6),
            eigenvalues=omega ** 2 + 0j,
            eigenvectors=np.arange(18, dtype=float).reshape(6, 3),
        )

    def test_mode_order_and_frequencies(self):
        result = self.make_result()
        np.testing.assert_array_equal(result.mode_order(), [1, 2, 0])
        np.testing.assert_allclose(result.frequencies_hz(), [30.0, 10.0, 20.0])

    def test_mode_shape(self):
        result = self.make_result()
        np.testing.assert_array_equal(result.mode_shape(2), np.arange(18).reshape(6, 3)[:, 2])

    def test_mode_out_of_range(self):
        result = self.make_result()
        with pytest.raises(IndexError):
            result.mode_shape(3)
        with pytest.raises(IndexError):
            result.mode_shape(-1)

    def test_static_result_has_no_modes(self):
        result = Result(displacement=np.zeros(6), reactions=np.zeros(6))
        with pytest.raises(ValueError):
            result.frequencies_hz()
