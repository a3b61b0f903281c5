# tests/test_kernel.py
"""
KERNEL TESTS: DOF map, integration rules, assembly, penalty solve
=================================================================

The kernel works on plain arrays, so these tests build tiny matrices by
hand instead of meshes.
"""

import logging
from math import factorial

import numpy as np
import pytest

from trishell.kernel.assemble import add_nodal_load, apply_penalty_bc, assemble_global_matrix
from trishell.kernel.dof import DOF_SHELL, DOFManager
from trishell.kernel.gauss import gauss_points_weights_triangle
from trishell.kernel.solve import (
    SingularSystemError,
    check_stability,
    compute_reactions,
    solve_penalized,
    zero_stiffness_modes,
)


class TestDOFManager:

    def test_index_round_trip(self):
        for node_id in range(4):
            for local in range(6):
                g = DOF_SHELL.idx(node_id, local)
                assert DOF_SHELL.locate(g) == (node_id, ("ux", "uy", "uz", "rx", "ry", "rz")[local])

    def test_element_dof_map(self):
        dof_map = DOF_SHELL.element_dof_map([2, 0, 1])
        assert len(dof_map) == 18
        assert dof_map[:6] == [12, 13, 14, 15, 16, 17]
        assert dof_map[6:12] == [0, 1, 2, 3, 4, 5]

    def test_other_dof_counts_use_numeric_labels(self):
        assert DOFManager(dof_per_node=3).locate(7) == (2, "1")


class TestTriangleIntegration:
    """∫ L1^a L2^b L3^c dA = a! b! c! 2A / (a + b + c + 2)!, divided by A here."""

    @staticmethod
    def exact_mean(a, b, c):
        return 2.0 * factorial(a) * factorial(b) * factorial(c) / factorial(a + b + c + 2)

    @staticmethod
    def rule_mean(n_points, a, b, c):
        points, weights = gauss_points_weights_triangle(n_points)
        return float(np.sum(weights * points[:, 0] ** a * points[:, 1] ** b * points[:, 2] ** c))

    @pytest.mark.parametrize("n_points", [1, 3, 7])
    def test_weights_sum_to_one(self, n_points):
        points, weights = gauss_points_weights_triangle(n_points)
        assert np.sum(weights) == pytest.approx(1.0, abs=1e-14)
        np.testing.assert_allclose(points.sum(axis=1), 1.0, atol=1e-14)

    @pytest.mark.parametrize("powers", [(2, 0, 0), (1, 1, 0), (0, 1, 1)])
    def test_midside_rule_exact_for_quadratics(self, powers):
        assert self.rule_mean(3, *powers) == pytest.approx(self.exact_mean(*powers), rel=1e-14)

    @pytest.mark.parametrize("powers", [(5, 0, 0), (2, 2, 1), (3, 1, 1), (2, 1, 0)])
    def test_seven_point_rule_exact_to_degree_five(self, powers):
        assert self.rule_mean(7, *powers) == pytest.approx(self.exact_mean(*powers), rel=1e-12)

    def test_rules_are_copies(self):
        points, weights = gauss_points_weights_triangle(3)
        points[:] = 0.0
        again, _ = gauss_points_weights_triangle(3)
        assert again[0, 0] == 0.5

    def test_unsupported_rule(self):
        with pytest.raises(ValueError, match="Unsupported"):
            gauss_points_weights_triangle(4)


class TestAssembly:

    def test_overlapping_contributions_add(self):
        ke = np.array([[1.0, -1.0], [-1.0, 1.0]])
        K = assemble_global_matrix(3, [([0, 1], ke), ([1, 2], 2.0 * ke)])
        np.testing.assert_array_equal(K, [
            [1.0, -1.0, 0.0],
            [-1.0, 3.0, -2.0],
            [0.0, -2.0, 2.0],
        ])

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            assemble_global_matrix(3, [([0, 1, 2], np.eye(2))])

    def test_penalty_bc_zeroes_full_row_and_column(self):
        K = np.arange(16, dtype=float).reshape(4, 4)
        K_bc = apply_penalty_bc(K, [2, 2], penalty=1e10)

        assert K_bc[2, 2] == 1e10
        assert np.all(np.delete(K_bc[2], 2) == 0.0)
        assert np.all(np.delete(K_bc[:, 2], 2) == 0.0)
        # Original untouched, other entries kept
        assert K[2, 2] == 10.0
        assert K_bc[0, 1] == K[0, 1]

    def test_add_nodal_load_accumulates(self):
        F = np.zeros(12)
        add_nodal_load(F, 1, [0.0, 0.0, -1000.0], dof_per_node=6)
        add_nodal_load(F, 1, [0.0, 0.0, -500.0, 20.0], dof_per_node=6)
        assert F[8] == -1500.0
        assert F[9] == 20.0


class TestPenalizedSolve:
    """One 6-DOF node with hand-made stiffness."""

    def test_regular_system(self):
        K = np.diag([1.0, 2.0, 4.0, 5.0, 6.0, 8.0])
        F = np.array([1.0, 2.0, 4.0, 0.0, 0.0, 8.0])
        K_bc = apply_penalty_bc(K, [0], penalty=1e10)
        d = solve_penalized(K_bc, F, [0])

        np.testing.assert_allclose(d, [1e-10, 1.0, 1.0, 0.0, 0.0, 1.0])
        R = compute_reactions(K, d, F, [0])
        np.testing.assert_allclose(R, [-1.0, 0, 0, 0, 0, 0])

    def test_loaded_zero_stiffness_mode_names_the_dof(self):
        K = np.diag([0.0, 1.0, 1.0, 1.0, 1.0, 1.0])
        F = np.zeros(6)
        F[0] = 1.0
        with pytest.raises(SingularSystemError) as exc:
            solve_penalized(K, F, [])

        assert exc.value.global_dof == 0
        assert exc.value.node_id == 0
        assert exc.value.dof == "ux"

    def test_unloaded_zero_stiffness_mode_is_skipped(self, caplog):
        K = np.diag([0.0, 1.0, 2.0, 1.0, 1.0, 1.0])
        F = np.array([0.0, 3.0, 4.0, 0.0, 0.0, 0.0])
        with caplog.at_level(logging.WARNING, logger="trishell"):
            d = solve_penalized(K, F, [])

        np.testing.assert_allclose(d, [0.0, 3.0, 2.0, 0.0, 0.0, 0.0], atol=1e-14)
        assert "zero-stiffness" in caplog.text

    def test_zero_stiffness_detection_threshold(self):
        _, _, is_null = zero_stiffness_modes(np.diag([1e-13, 1.0, 10.0]), cond_limit=1e12)
        assert list(is_null) == [True, False, False]
        _, _, is_null = zero_stiffness_modes(np.diag([1e-10, 1.0, 10.0]), cond_limit=1e12)
        assert not np.any(is_null)

    def test_check_stability(self):
        K = np.diag([1.0, 1.0, 1.0, 0.0, 1.0, 1.0])
        # Restraining the soft DOF removes the mechanism
        check_stability(apply_penalty_bc(K, [3]), [3])
        with pytest.raises(SingularSystemError, match="rx"):
            check_stability(K, [])
