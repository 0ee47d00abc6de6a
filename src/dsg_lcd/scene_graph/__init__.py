"""Read-side scene graph used by loop-closure registration.

Key components:
- SceneGraphNode / attribute bundles: per-node data (position, label, pose)
- SceneGraphLayer: nodes of one hierarchy level
- DynamicSceneGraph: static layers, agent trajectories, and layer locks
"""

from .graph import DynamicSceneGraph
from .layer import DsgLayers, SceneGraphLayer
from .node import (
    AgentNodeAttributes,
    LayerId,
    NodeAttributes,
    NodeId,
    NodeSymbol,
    SceneGraphNode,
    SemanticNodeAttributes,
    node_label,
)

__all__ = [
    # Ids
    "NodeId",
    "LayerId",
    "NodeSymbol",
    "node_label",
    # Nodes
    "SceneGraphNode",
    "NodeAttributes",
    "SemanticNodeAttributes",
    "AgentNodeAttributes",
    # Layers / graph
    "SceneGraphLayer",
    "DsgLayers",
    "DynamicSceneGraph",
]
