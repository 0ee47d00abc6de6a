"""Scene graph layer registration for loop closure.

Given two regions of the scene graph believed to be the same place, this
package computes the rigid transform between them together with the node
correspondences supporting it.

Key components:
- find_correspondences: putative node pairs under a compatibility predicate
- register_layer: snapshot, robust solve, and validation of one layer
- DsgTeaserSolver / DsgAgentSolver: strategies used by the LCD pipeline
- LayerRegistrationConfig / TeaserParams: configuration
"""

from .config import LayerRegistrationConfig, load_solver_configs
from .correspondences import (
    Correspondence,
    CorrespondenceFunc,
    find_correspondences,
    pairwise_match,
    semantic_match,
)
from .layer_registration import (
    InlierIndexError,
    build_point_matrices,
    register_layer,
    register_layer_pairwise,
    register_layer_semantic,
    save_registration_problem,
)
from .problem import LayerRegistrationProblem, LayerRegistrationSolution
from .solvers import (
    DsgAgentSolver,
    DsgRegistrationInput,
    DsgRegistrationSolution,
    DsgRegistrationSolver,
    DsgTeaserSolver,
)
from .teaser import RobustRegistrationSolver, TeaserParams, make_teaser_solver

__all__ = [
    # Configuration
    "LayerRegistrationConfig",
    "TeaserParams",
    "load_solver_configs",
    # Correspondences
    "Correspondence",
    "CorrespondenceFunc",
    "find_correspondences",
    "pairwise_match",
    "semantic_match",
    # Layer registration
    "LayerRegistrationProblem",
    "LayerRegistrationSolution",
    "InlierIndexError",
    "build_point_matrices",
    "register_layer",
    "register_layer_pairwise",
    "register_layer_semantic",
    "save_registration_problem",
    # Solvers
    "RobustRegistrationSolver",
    "make_teaser_solver",
    "DsgRegistrationSolver",
    "DsgTeaserSolver",
    "DsgAgentSolver",
    "DsgRegistrationInput",
    "DsgRegistrationSolution",
]
