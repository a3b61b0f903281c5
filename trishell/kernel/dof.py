# trishell/kernel/dof.py
"""
DOF MANAGER: Degree of Freedom Indexing for Shell Meshes
========================================================

PURPOSE:
--------
Every node of a shell mesh carries 6 DOFs, always in this order:

    0: ux   translation along global X
    1: uy   translation along global Y
    2: uz   translation along global Z
    3: rx   rotation about global X
    4: ry   rotation about global Y
    5: rz   rotation about global Z (drilling, once rotated into an element)

The node id IS the DOF block index, so the global DOF number is simply

    dof = node_id * 6 + local_dof

This module owns that arithmetic so assembly, boundary conditions, loads
and post-processing never repeat it.

USAGE:
------
    dof = DOFManager(dof_per_node=6)
    dof.idx(node_id=2, local_dof=2)     # → 14 (uz of node 2)
    dof.element_dof_map([0, 3, 4])      # → 18 global indices for a triangle
    dof.locate(14)                      # → (2, 'uz')
"""

from dataclasses import dataclass
from typing import List, Tuple


DOF_LABELS: Tuple[str, ...] = ("ux", "uy", "uz", "rx", "ry", "rz")


@dataclass(frozen=True)
class DOFManager:
    """
    Maps (node_id, local_dof) pairs to global DOF indices and back.

    Attributes:
    -----------
    dof_per_node : int
        Number of DOFs per node (6 for a shell: ux, uy, uz, rx, ry, rz)

    Examples:
    ---------
    >>> dof = DOFManager(dof_per_node=6)
    >>> dof.idx(1, 0)
    6
    >>> dof.ndof(4)
    24
    >>> dof.node_dofs(1)
    [6, 7, 8, 9, 10, 11]
    """
    dof_per_node: int

    def idx(self, node_id: int, local_dof: int) -> int:
        """
        Global DOF index for a node's local DOF.

        Parameters:
        -----------
        node_id : int
            The node identifier (0-indexed, equal to its list position)
        local_dof : int
            Local DOF within the node, 0 to dof_per_node-1

        Returns:
        --------
        int
            Row/column of this DOF in the global matrices
        """
        return self.dof_per_node * node_id + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Total DOF count (size of K and M) for n_nodes nodes."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_id: int) -> List[int]:
        """All global DOF indices of one node, in local DOF order."""
        base = self.dof_per_node * node_id
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_ids: List[int]) -> List[int]:
        """
        DOF map used to scatter an element matrix into the global matrix.

        Entry a of the returned list is the global index of row/column a
        of the element matrix. For a triangle with 6 DOF/node this has 18
        entries: node 0's six DOFs, then node 1's, then node 2's.

        Examples:
        ---------
        >>> DOFManager(dof_per_node=6).element_dof_map([2, 0, 1])[:7]
        [12, 13, 14, 15, 16, 17, 0]
        """
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result

    def locate(self, global_dof: int) -> Tuple[int, str]:
        """
        Inverse of idx(): which node and which DOF a global index refers to.

        Used to make solver diagnostics readable ("node 3, uz" instead of
        "DOF 20").

        Returns:
        --------
        Tuple[int, str]
            (node_id, label) where label is one of DOF_LABELS when
            dof_per_node == 6, otherwise the local index as a string
        """
        node_id, local_dof = divmod(int(global_dof), self.dof_per_node)
        if self.dof_per_node == len(DOF_LABELS):
            return node_id, DOF_LABELS[local_dof]
        return node_id, str(local_dof)


# Shell meshes: ux, uy, uz, rx, ry, rz
DOF_SHELL = DOFManager(dof_per_node=6)
