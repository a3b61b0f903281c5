# tests/test_model_geometry.py
"""
MODEL CONSTRUCTION: Geometry and Connectivity Checks
====================================================

Every element gets its local frame, local coordinates and area when the
Model is built. These tests check that:
1. The frame is a proper rotation and the local z coordinates vanish
2. The global and local area agree for any non-degenerate triangle
3. Degenerate triangles and bad node references fail at construction
"""

import numpy as np
import pytest

from trishell.model import (
    Node,
    Material,
    Section,
    Support,
    Element,
    Model,
    DegenerateGeometryError,
    InvalidConnectivityError,
    compute_element_geometry,
)
from trishell.loads import NodalLoad


STEEL = Material(E=205000.0, nu=0.3, density=7.85e-9)
PLATE = Section(thickness=10.0)


def make_triangle_model(p0, p1, p2, supports=(), loads=()):
    nodes = [Node(i, *p) for i, p in enumerate((p0, p1, p2))]
    elements = [Element(0, (0, 1, 2), STEEL, PLATE)]
    return Model(nodes, elements, supports, loads)


class TestElementFrame:
    """Local frame and local coordinates of a single triangle."""

    def test_triangle_in_xy_plane_keeps_global_axes(self):
        model = make_triangle_model((0, 0, 0), (1000, 0, 0), (0, 1000, 0))
        e = model.elements[0]

        np.testing.assert_allclose(e.T, np.eye(3), atol=1e-15)
        np.testing.assert_allclose(
            e.local_coordinates,
            [[0, 0, 0], [1000, 0, 0], [0, 1000, 0]],
            atol=1e-9,
        )
        assert e.area == pytest.approx(5.0e5)

    def test_tilted_triangle_frame_is_a_rotation(self):
        """T must be orthonormal with det +1, and every node lies in local z = 0."""
        model = make_triangle_model((1.0, 2.0, 3.0), (4.0, 0.5, 1.0), (2.0, 5.0, -1.0))
        e = model.elements[0]

        np.testing.assert_allclose(e.T.T @ e.T, np.eye(3), atol=1e-12)
        assert np.linalg.det(e.T) == pytest.approx(1.0)
        np.testing.assert_allclose(e.local_coordinates[:, 2], 0.0, atol=1e-12)

        # Local x runs from node 0 to node 1, node 2 is on the +y side
        assert e.local_coordinates[1, 0] > 0.0
        assert e.local_coordinates[1, 1] == pytest.approx(0.0, abs=1e-12)
        assert e.local_coordinates[2, 1] > 0.0

    def test_local_coordinates_preserve_edge_lengths(self):
        p = [np.array(v, dtype=float) for v in ((0.0, 0.0, 0.0), (3.0, 1.0, 2.0), (-1.0, 4.0, 0.5))]
        geometry = compute_element_geometry(*p)
        for i in range(3):
            j = (i + 1) % 3
            global_length = np.linalg.norm(p[j] - p[i])
            local_length = np.linalg.norm(geometry.local_coordinates[j] - geometry.local_coordinates[i])
            assert local_length == pytest.approx(global_length, rel=1e-12)

    @pytest.mark.parametrize("points", [
        ((0, 0, 0), (1000, 0, 0), (0, 1000, 0)),
        ((0, 0, 0), (1, 0, 0), (0.5, 1e-3, 0)),
        ((10, -5, 2), (12, 7, -3), (-4, 1, 9)),
        ((0, 0, 0), (0, 0, 250), (0, 400, 0)),
    ])
    def test_global_and_local_area_agree(self, points):
        p0, p1, p2 = (np.array(p, dtype=float) for p in points)
        geometry = compute_element_geometry(p0, p1, p2)

        assert geometry.area > 0.0
        assert abs(geometry.area - geometry.local_area()) <= 1e-9 * geometry.area


class TestDegenerateGeometry:
    """Zero-area triangles must fail at construction, never produce NaN later."""

    def test_collinear_nodes(self):
        with pytest.raises(DegenerateGeometryError, match="Element 0"):
            make_triangle_model((0, 0, 0), (1, 1, 1), (2, 2, 2))

    def test_coincident_nodes(self):
        with pytest.raises(DegenerateGeometryError):
            make_triangle_model((0, 0, 0), (0, 0, 0), (0, 1, 0))

    def test_all_nodes_at_one_point(self):
        with pytest.raises(DegenerateGeometryError):
            make_triangle_model((5, 5, 5), (5, 5, 5), (5, 5, 5))

    def test_element_geometry_needs_a_model(self):
        e = Element(0, (0, 1, 2), STEEL, PLATE)
        with pytest.raises(RuntimeError):
            e.area


class TestConnectivity:
    """Node references are validated before any geometry is computed."""

    def test_element_node_out_of_range(self):
        nodes = [Node(0, 0, 0, 0), Node(1, 1, 0, 0), Node(2, 0, 1, 0)]
        with pytest.raises(InvalidConnectivityError, match="node 5"):
            Model(nodes, [Element(0, (0, 1, 5), STEEL, PLATE)])

    def test_node_ids_must_match_positions(self):
        nodes = [Node(0, 0, 0, 0), Node(2, 1, 0, 0), Node(1, 0, 1, 0)]
        with pytest.raises(InvalidConnectivityError):
            Model(nodes, [Element(0, (0, 1, 2), STEEL, PLATE)])

    def test_duplicate_element_ids(self):
        nodes = [Node(0, 0, 0, 0), Node(1, 1, 0, 0), Node(2, 0, 1, 0), Node(3, 1, 1, 0)]
        elements = [
            Element(7, (0, 1, 3), STEEL, PLATE),
            Element(7, (0, 3, 2), STEEL, PLATE),
        ]
        with pytest.raises(InvalidConnectivityError, match="Duplicate"):
            Model(nodes, elements)

    def test_element_needs_three_nodes(self):
        with pytest.raises(InvalidConnectivityError):
            Element(0, (0, 1), STEEL, PLATE)

    def test_support_on_missing_node(self):
        with pytest.raises(InvalidConnectivityError):
            make_triangle_model((0, 0, 0), (1, 0, 0), (0, 1, 0), supports=[Support.fixed(3)])

    def test_nodal_load_on_missing_node(self):
        with pytest.raises(InvalidConnectivityError):
            make_triangle_model((0, 0, 0), (1, 0, 0), (0, 1, 0), loads=[NodalLoad(-1, fz=1.0)])


class TestModelData:
    """Plain data validation and DOF bookkeeping."""

    def test_material_validation(self):
        with pytest.raises(ValueError):
            Material(E=0.0, nu=0.3)
        with pytest.raises(ValueError):
            Material(E=1.0, nu=0.5)
        with pytest.raises(ValueError):
            Material(E=1.0, nu=0.3, density=-1.0)

    def test_section_validation(self):
        with pytest.raises(ValueError):
            Section(thickness=0.0)

    def test_support_restrained_dofs(self):
        assert Support.fixed(2).restrained_dofs() == [12, 13, 14, 15, 16, 17]
        assert Support.pinned(2).restrained_dofs() == [12, 13, 14]
        assert Support(1, dz=True, rz=True).restrained_dofs() == [8, 11]

    def test_model_fixed_dofs_sorted_and_unique(self):
        model = make_triangle_model(
            (0, 0, 0), (1, 0, 0), (0, 1, 0),
            supports=[Support(1, dz=True), Support.pinned(0), Support(1, dz=True, rx=True)],
        )
        assert model.fixed_dofs() == [0, 1, 2, 8, 9]
        assert model.ndof == 18

    def test_elements_share_material_and_section(self):
        nodes = [Node(0, 0, 0, 0), Node(1, 1, 0, 0), Node(2, 0, 1, 0), Node(3, 1, 1, 0)]
        model = Model(nodes, [
            Element(0, (0, 1, 3), STEEL, PLATE),
            Element(1, (0, 3, 2), STEEL, PLATE),
        ])
        assert model.element(1).material is model.element(0).material
        assert model.element(1).section is model.element(0).section
