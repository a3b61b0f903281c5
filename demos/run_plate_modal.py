#!/usr/bin/env python3
"""
RUN_PLATE_MODAL: Natural Frequencies of a Simply Supported Plate
================================================================

This demo shows the modal workflow:
1. Mesh a square steel plate
2. Restrain w along all edges (plus enough in-plane DOFs to stop drift)
3. Solve K·φ = ω²·M·φ
4. Compare the lowest frequencies with Kirchhoff plate theory

    f_mn = (π / 2) · (m²/a² + n²/b²) · sqrt(D / (ρ h))

Units: N, mm, t/mm³ (so frequencies come out in Hz).

Run with:
    python demos/run_plate_modal.py
"""

import logging
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from trishell import AnalysisSettings, Element, Material, Model, Node, Section, Support, setup_logging, solve_modal
from trishell.post import displacement_magnitudes, modal_table


def print_header(text: str):
    """Print a formatted section header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def build_simply_supported_plate(a: float, n: int, material: Material, section: Section) -> Model:
    nodes = []
    for j in range(n + 1):
        for i in range(n + 1):
            nodes.append(Node(len(nodes), a * i / n, a * j / n, 0.0))

    elements = []
    for j in range(n):
        for i in range(n):
            n0 = j * (n + 1) + i
            n3 = n0 + n + 2
            elements.append(Element(len(elements), (n0, n0 + 1, n3), material, section))
            elements.append(Element(len(elements), (n0, n3, n0 + n + 1), material, section))

    supports = []
    for node in nodes:
        if node.x in (0.0, a) or node.y in (0.0, a):
            if node.id == 0:
                supports.append(Support(node.id, dx=True, dy=True, dz=True))
            elif node.id == n:
                supports.append(Support(node.id, dy=True, dz=True))
            else:
                supports.append(Support(node.id, dz=True))
    return Model(nodes, elements, supports)


def main():
    setup_logging(logging.INFO)

    print_header("PLATE MODAL ANALYSIS")

    a = 1000.0  # mm
    E, nu, rho, h = 205000.0, 0.3, 7.85e-9, 10.0
    model = build_simply_supported_plate(a, 10, Material(E=E, nu=nu, density=rho), Section(thickness=h))
    print(f"\nSquare plate {a:.0f} mm, t = {h:.0f} mm, {len(model.elements)} elements, {model.ndof} DOFs")

    print_header("STEP 1: Solve Eigenproblem")
    result = solve_modal(model, AnalysisSettings(eigen_strictness="ignore"))
    table = modal_table(result)

    D = E * h ** 3 / (12.0 * (1.0 - nu ** 2))
    exact = sorted(
        np.pi / 2.0 * (m ** 2 + k ** 2) / a ** 2 * np.sqrt(D / (rho * h))
        for m in range(1, 4) for k in range(1, 4)
    )

    print_header("RESULTS: Lowest Frequencies")
    print(f"\n{'Mode':>6} {'FE (Hz)':>10} {'Theory (Hz)':>12} {'Error':>8}")
    for i in range(5):
        f_fe = table["frequency_hz"].iloc[i]
        print(f"{i + 1:>6} {f_fe:>10.2f} {exact[i]:>12.2f} {100 * (f_fe - exact[i]) / exact[i]:>7.2f}%")

    print_header("RESULTS: First Mode Shape")
    first = int(table["mode"].iloc[0])
    shape = result.mode_shape(first)
    mag = displacement_magnitudes(shape)
    peak = int(np.argmax(mag))
    node = model.nodes[peak]
    print(f"\nPeak amplitude at node {peak} ({node.x:.0f}, {node.y:.0f}) mm")

    # =========================================================================
    # STEP 2: Plot the first mode shape
    # =========================================================================
    coords = model.coordinates()
    triangles = [e.node_ids for e in model.elements]
    w = shape[2::6] / np.max(np.abs(shape[2::6]))

    fig, ax = plt.subplots(figsize=(7, 6))
    contour = ax.tricontourf(coords[:, 0], coords[:, 1], triangles, w, levels=20, cmap="RdBu_r")
    ax.triplot(coords[:, 0], coords[:, 1], triangles, color="k", linewidth=0.3, alpha=0.4)
    fig.colorbar(contour, ax=ax, label="w / max|w|")
    ax.set_aspect("equal")
    ax.set_xlabel("x (mm)")
    ax.set_ylabel("y (mm)")
    ax.set_title(f"Mode 1: {table['frequency_hz'].iloc[0]:.1f} Hz")

    plt.tight_layout()
    os.makedirs("artifacts", exist_ok=True)
    plot_path = "artifacts/plate_mode_1.png"
    plt.savefig(plot_path, dpi=150)
    plt.close()
    print(f"  Saved {plot_path}")


if __name__ == "__main__":
    main()
