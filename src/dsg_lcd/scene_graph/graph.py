"""Minimal dynamic scene graph: static layers plus agent trajectories.

Only the queries needed by loop-closure registration are implemented.
Each static layer has a mutex that writers (the incremental update thread)
hold while mutating it and readers hold while snapshotting it.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from .layer import DsgLayers, SceneGraphLayer
from .node import (
    AgentNodeAttributes,
    LayerId,
    NodeAttributes,
    NodeId,
    NodeSymbol,
    SceneGraphNode,
)

DEFAULT_LAYERS = (
    DsgLayers.OBJECTS,
    DsgLayers.PLACES,
    DsgLayers.ROOMS,
    DsgLayers.BUILDINGS,
)


class DynamicSceneGraph:
    """Hierarchical scene graph with per-layer locks."""

    def __init__(self, layer_ids: Iterable[LayerId] = DEFAULT_LAYERS) -> None:
        """Initialize graph with empty layers.

        Args:
            layer_ids: Ids of the static layers to create
        """
        self._layers: dict[LayerId, SceneGraphLayer] = {}
        self._mutexes: dict[LayerId, threading.Lock] = {}
        for layer_id in layer_ids:
            self._layers[layer_id] = SceneGraphLayer(layer_id)
            self._mutexes[layer_id] = threading.Lock()

        # (layer_id, agent prefix) -> trajectory layer
        self._dynamic_layers: dict[tuple[LayerId, str], SceneGraphLayer] = {}
        self._dynamic_mutex = threading.Lock()

    def has_layer(self, layer_id: LayerId) -> bool:
        return layer_id in self._layers

    def get_layer(self, layer_id: LayerId) -> SceneGraphLayer:
        """Return a static layer.

        Raises:
            KeyError: if the graph has no such layer
        """
        if layer_id not in self._layers:
            raise KeyError(f"Scene graph has no layer {layer_id}")
        return self._layers[layer_id]

    def layer_mutex(self, layer_id: LayerId) -> threading.Lock:
        """Return the lock guarding mutation of a static layer."""
        if layer_id not in self._mutexes:
            raise KeyError(f"Scene graph has no layer {layer_id}")
        return self._mutexes[layer_id]

    @property
    def layer_ids(self) -> list[LayerId]:
        return sorted(self._layers)

    def add_node(
        self, layer_id: LayerId, node_id: NodeId, attributes: NodeAttributes
    ) -> SceneGraphNode:
        """Add a node to a static layer (under the layer lock)."""
        with self.layer_mutex(layer_id):
            return self._layers[layer_id].add_node(node_id, attributes)

    def remove_node(self, node_id: NodeId) -> bool:
        """Remove a node from whichever static layer holds it."""
        for layer_id, layer in self._layers.items():
            with self._mutexes[layer_id]:
                if layer.remove_node(node_id):
                    return True
        return False

    def add_agent_node(
        self,
        prefix: str,
        attributes: AgentNodeAttributes,
        layer_id: LayerId = DsgLayers.AGENTS,
    ) -> SceneGraphNode:
        """Append a pose to an agent trajectory.

        The node id is derived from the agent prefix and the position of the
        pose along the trajectory.
        """
        key = (layer_id, prefix)
        with self._dynamic_mutex:
            if key not in self._dynamic_layers:
                self._dynamic_layers[key] = SceneGraphLayer(layer_id)
            layer = self._dynamic_layers[key]
            node_id = NodeSymbol(prefix, layer.num_nodes).value
            return layer.add_node(node_id, attributes)

    def get_dynamic_node(self, node_id: NodeId) -> SceneGraphNode | None:
        """Look up an agent node; None if no trajectory contains it."""
        with self._dynamic_mutex:
            for layer in self._dynamic_layers.values():
                node = layer.get_node(node_id)
                if node is not None:
                    return node
        return None

    def get_node(self, node_id: NodeId) -> SceneGraphNode | None:
        """Look up a node in any static or dynamic layer."""
        for layer in self._layers.values():
            node = layer.get_node(node_id)
            if node is not None:
                return node
        return self.get_dynamic_node(node_id)

    @property
    def num_nodes(self) -> int:
        static = sum(layer.num_nodes for layer in self._layers.values())
        with self._dynamic_mutex:
            dynamic = sum(layer.num_nodes for layer in self._dynamic_layers.values())
        return static + dynamic
