#!/usr/bin/env python3
"""
RUN_PLATE_STATIC: Corner-Supported Plate Under Self-Weight and a Point Load
===========================================================================

This demo shows a complete static shell analysis workflow:
1. Mesh a rectangular steel plate with triangles
2. Pin the four corners
3. Apply self-weight plus a point load at the centre
4. Solve for displacements and reactions
5. Print results as tables

Units: N and mm. GravityLoad takes the weight per unit volume as
density × 9.80665 × 1e-6.

Run with:
    python demos/run_plate_static.py
"""

import logging
import sys
from pathlib import Path

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from trishell import (
    Element,
    GravityLoad,
    Material,
    Model,
    NodalLoad,
    Node,
    Section,
    Support,
    setup_logging,
    solve_static,
)
from trishell.post import displacement_table


def print_header(text: str):
    """Print a formatted section header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def build_plate(a: float, b: float, nx: int, ny: int, material: Material, section: Section):
    """Rectangular plate in the XY plane; each grid cell becomes two triangles."""
    nodes = []
    for j in range(ny + 1):
        for i in range(nx + 1):
            nodes.append(Node(len(nodes), a * i / nx, b * j / ny, 0.0))

    elements = []
    for j in range(ny):
        for i in range(nx):
            n0 = j * (nx + 1) + i
            n3 = n0 + nx + 2
            elements.append(Element(len(elements), (n0, n0 + 1, n3), material, section))
            elements.append(Element(len(elements), (n0, n3, n0 + nx + 1), material, section))
    return nodes, elements


def main():
    setup_logging(logging.INFO)

    print_header("PLATE STATIC ANALYSIS")

    # =========================================================================
    # STEP 1: MESH
    # =========================================================================
    print_header("STEP 1: Mesh")

    a, b = 2000.0, 1500.0  # mm
    nx, ny = 8, 6
    steel = Material(E=205000.0, nu=0.3, density=7850.0)
    plate = Section(thickness=12.0)
    nodes, elements = build_plate(a, b, nx, ny, steel, plate)

    print(f"\nPlate {a:.0f} x {b:.0f} mm, t = {plate.thickness:.0f} mm")
    print(f"  Nodes: {len(nodes)}  Elements: {len(elements)}  DOFs: {6 * len(nodes)}")

    # =========================================================================
    # STEP 2: SUPPORTS AND LOADS
    # =========================================================================
    print_header("STEP 2: Supports and Loads")

    corners = [0, nx, ny * (nx + 1), ny * (nx + 1) + nx]
    centre = (ny // 2) * (nx + 1) + nx // 2
    supports = [Support.pinned(n) for n in corners]
    P = -5000.0  # N
    loads = [GravityLoad(0.0, 0.0, -1.0), NodalLoad(centre, fz=P)]

    print(f"\nPinned corners: {corners}")
    print(f"Point load: Fz = {P / 1000:.1f} kN at node {centre}")

    model = Model(nodes, elements, supports, loads)

    # =========================================================================
    # STEP 3: SOLVE
    # =========================================================================
    print_header("STEP 3: Solve")

    result = solve_static(model)
    uz = result.displacement[2::6]
    print(f"\nMax deflection: {uz.min():.4f} mm at node {int(np.argmin(uz))}")

    # =========================================================================
    # RESULTS
    # =========================================================================
    print_header("RESULTS: Support Reactions")

    df = displacement_table(model, result)
    print(df.loc[corners, ["node", "x", "y", "Rux", "Ruy", "Ruz"]].to_string(index=False))

    weight = sum(e.area * e.section.thickness * e.material.density for e in model.elements) * 9.80665e-6
    print(f"\nΣRz = {df['Ruz'].sum():.3f} N")
    print(f"Applied: self-weight {weight:.3f} N + point load {-P:.3f} N = {weight - P:.3f} N")

    print_header("RESULTS: Deflection Along Centre Line")
    row = df[np.isclose(df["y"], b / 2)]
    print(row[["node", "x", "uz", "|u|"]].to_string(index=False))


if __name__ == "__main__":
    main()
