"""Putative correspondence generation between two sets of scene graph nodes.

Every (source, destination) pair accepted by a compatibility predicate
becomes a correspondence. Regions are small at loop-closure time (tens of
nodes), so the exhaustive O(|src| * |dest|) search is affordable and lets
the robust solver decide which pairs are actually consistent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..scene_graph import NodeId, SceneGraphLayer, SceneGraphNode, node_label

logger = logging.getLogger(__name__)

Correspondence = tuple[NodeId, NodeId]
CorrespondenceFunc = Callable[[SceneGraphNode, SceneGraphNode], bool]


def pairwise_match(src_node: SceneGraphNode, dest_node: SceneGraphNode) -> bool:
    """Accept every pair."""
    return True


def semantic_match(src_node: SceneGraphNode, dest_node: SceneGraphNode) -> bool:
    """Accept pairs whose nodes share a semantic label.

    Nodes without a semantic label never match.
    """
    src_label = getattr(src_node.attributes, "semantic_label", None)
    dest_label = getattr(dest_node.attributes, "semantic_label", None)
    if src_label is None or dest_label is None:
        return False
    return src_label == dest_label


def find_correspondences(
    src_layer: SceneGraphLayer,
    dest_layer: SceneGraphLayer,
    src_nodes: Iterable[NodeId],
    dest_nodes: Iterable[NodeId],
    match: CorrespondenceFunc,
) -> list[Correspondence]:
    """Collect all node pairs accepted by ``match``.

    Pairs are ordered source-major following the iteration order of the
    inputs. Nodes that are no longer in their layer (removed between
    candidate proposal and registration) are skipped.

    Args:
        src_layer: Layer holding the source nodes
        dest_layer: Layer holding the destination nodes (may be src_layer)
        src_nodes: Source node ids
        dest_nodes: Destination node ids
        match: Compatibility predicate

    Returns:
        List of (source id, destination id) pairs
    """
    # resolve destination nodes once; dest_nodes may be a one-shot iterable
    dest_resolved: list[SceneGraphNode] = []
    for dest_id in dest_nodes:
        dest_node = dest_layer.get_node(dest_id)
        if dest_node is None:
            logger.debug(
                "[DSG LCD] Missing destination node %s from graph during registration",
                node_label(dest_id),
            )
            continue
        dest_resolved.append(dest_node)

    correspondences: list[Correspondence] = []
    for src_id in src_nodes:
        src_node = src_layer.get_node(src_id)
        if src_node is None:
            logger.debug(
                "[DSG LCD] Missing source node %s from graph during registration",
                node_label(src_id),
            )
            continue

        for dest_node in dest_resolved:
            if match(src_node, dest_node):
                correspondences.append((src_id, dest_node.id))

    return correspondences
