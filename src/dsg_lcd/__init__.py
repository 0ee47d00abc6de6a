"""DSG LCD - scene graph registration for loop closure detection."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .pose import SE3
from .scene_graph import (
    AgentNodeAttributes,
    DsgLayers,
    DynamicSceneGraph,
    NodeAttributes,
    NodeSymbol,
    SceneGraphLayer,
    SceneGraphNode,
    SemanticNodeAttributes,
)
from .registration import (
    DsgAgentSolver,
    DsgRegistrationInput,
    DsgRegistrationSolution,
    DsgRegistrationSolver,
    DsgTeaserSolver,
    InlierIndexError,
    LayerRegistrationConfig,
    LayerRegistrationProblem,
    LayerRegistrationSolution,
    TeaserParams,
    register_layer,
)

__all__ = [
    "__version__",
    # Pose
    "SE3",
    # Scene graph
    "DynamicSceneGraph",
    "SceneGraphLayer",
    "SceneGraphNode",
    "NodeSymbol",
    "NodeAttributes",
    "SemanticNodeAttributes",
    "AgentNodeAttributes",
    "DsgLayers",
    # Registration
    "LayerRegistrationConfig",
    "TeaserParams",
    "LayerRegistrationProblem",
    "LayerRegistrationSolution",
    "InlierIndexError",
    "register_layer",
    # Solvers
    "DsgRegistrationSolver",
    "DsgTeaserSolver",
    "DsgAgentSolver",
    "DsgRegistrationInput",
    "DsgRegistrationSolution",
]
