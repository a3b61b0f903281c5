# trishell - Static and modal analysis of thin triangular shells
"""
TRISHELL: Linear Analysis of Triangular Shell Meshes
====================================================

This package provides:
- Flat 3-node shell element (CST membrane + DKT bending, 6 DOF/node)
- Linear static analysis with penalty supports and reactions
- Modal analysis with a consistent mass matrix
- Plane-stress post-processing (principal, von Mises, max shear)

ARCHITECTURE:
-------------
    kernel/             Element-agnostic core (DOF map, Gauss rules, assembly, solve, eigen)
    model.py            Node, Material, Section, Support, Element, Model
    loads.py            NodalLoad, GravityLoad, load vector
    elements.py         Element matrices (ElementFormulation, DKTShellFormulation)
    assembly.py         Global K and M, supports
    solve.py            solve_static / solve_modal
    post.py             Result, StressField, tables
    config.py           AnalysisSettings
    logging_config.py   setup_logging for scripts
"""

import logging

from .kernel import DOFManager, DOF_SHELL, SingularSystemError, UnsupportedEigenResultError, UnsupportedEigenResultWarning
from .model import (
    Node,
    Material,
    Section,
    Support,
    Element,
    Model,
    DegenerateGeometryError,
    InvalidConnectivityError,
)
from .loads import NodalLoad, GravityLoad, assemble_load_vector
from .elements import ElementFormulation, DKTShellFormulation
from .assembly import AnalysisCancelledError, assemble_stiffness, assemble_mass
from .solve import solve_static, solve_modal, deadline
from .post import Result, StressField
from .config import AnalysisSettings, DEFAULT_SETTINGS
from .logging_config import setup_logging

# Library logging stays silent unless the application configures it
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
