"""A single layer of the scene graph."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from .node import LayerId, NodeAttributes, NodeId, SceneGraphNode, node_label


class DsgLayers:
    """Layer ids of the hierarchical scene graph."""

    OBJECTS: LayerId = 2
    AGENTS: LayerId = 2  # dynamic layer; agents live alongside objects
    PLACES: LayerId = 3
    ROOMS: LayerId = 4
    BUILDINGS: LayerId = 5


class SceneGraphLayer:
    """Nodes at one level of the hierarchy.

    The layer does no locking of its own. Writers and readers coordinate
    through the mutex the owning graph hands out for the layer.
    """

    def __init__(self, layer_id: LayerId) -> None:
        """Initialize an empty layer.

        Args:
            layer_id: Id of the layer in the graph hierarchy
        """
        self.id = layer_id
        self._nodes: dict[NodeId, SceneGraphNode] = {}

    def add_node(self, node_id: NodeId, attributes: NodeAttributes) -> SceneGraphNode:
        """Add a node to the layer.

        Raises:
            ValueError: if a node with the same id already exists
        """
        if node_id in self._nodes:
            raise ValueError(f"Node {node_label(node_id)} already in layer {self.id}")
        node = SceneGraphNode(id=node_id, layer=self.id, attributes=attributes)
        self._nodes[node_id] = node
        return node

    def remove_node(self, node_id: NodeId) -> bool:
        """Remove a node. Returns False if it was not present."""
        return self._nodes.pop(node_id, None) is not None

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: NodeId) -> SceneGraphNode | None:
        """Look up a node; None if it does not exist (or was deleted)."""
        return self._nodes.get(node_id)

    def get_position(self, node_id: NodeId) -> np.ndarray:
        """Return a copy of the node's world-frame position.

        Raises:
            KeyError: if the node is not in the layer
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise KeyError(f"Missing node {node_label(node_id)} in layer {self.id}")
        return node.position.copy()

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
