"""Registration strategies used by the loop-closure pipeline.

The pipeline picks one solver per scene graph layer and calls it through
``DsgRegistrationSolver.solve`` without knowing which strategy it holds:
- DsgTeaserSolver: robust point registration of the two regions' nodes
- DsgAgentSolver: relative pose between two agent nodes, for matches found
  directly on the agent layer where nodes already carry absolute poses
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..pose import SE3
from ..scene_graph import (
    AgentNodeAttributes,
    DsgLayers,
    DynamicSceneGraph,
    LayerId,
    NodeId,
    node_label,
)
from .config import LayerRegistrationConfig
from .correspondences import Correspondence
from .layer_registration import register_layer_pairwise, register_layer_semantic
from .problem import LayerRegistrationProblem
from .teaser import RobustRegistrationSolver, TeaserParams, make_teaser_solver

logger = logging.getLogger(__name__)


@dataclass
class DsgRegistrationInput:
    """A loop-closure candidate: two regions and their root nodes.

    Attributes:
        query_nodes: Node ids of the query (current) region
        match_nodes: Node ids of the matched (past) region
        query_root: Root node of the query region
        match_root: Root node of the matched region
    """

    query_nodes: set[NodeId]
    match_nodes: set[NodeId]
    query_root: NodeId
    match_root: NodeId


@dataclass
class DsgRegistrationSolution:
    """Registration result handed back to the loop-closure pipeline.

    Attributes:
        valid: Whether the candidate was registered
        from_node: Node the transform maps from
        to_node: Node the transform maps to
        to_T_from: Relative transform between the two nodes' frames
        level: Layer the registration was computed on (-1 if invalid)
        inliers: Supporting node correspondences (empty for agent matches)
    """

    valid: bool = False
    from_node: NodeId = 0
    to_node: NodeId = 0
    to_T_from: SE3 = field(default_factory=SE3.identity)
    level: int = -1
    inliers: list[Correspondence] = field(default_factory=list)


class DsgRegistrationSolver(ABC):
    """Strategy for turning a loop-closure candidate into a transform."""

    @abstractmethod
    def solve(
        self,
        dsg: DynamicSceneGraph,
        registration_input: DsgRegistrationInput,
        query_agent_id: NodeId,
    ) -> DsgRegistrationSolution:
        """Register a candidate.

        Args:
            dsg: Scene graph containing both regions
            registration_input: Candidate regions and roots
            query_agent_id: Agent node the query region was observed from

        Returns:
            Registration solution (invalid if the candidate is rejected)
        """


class DsgTeaserSolver(DsgRegistrationSolver):
    """Robust point registration of one scene graph layer.

    Owns a single robust solver that is reset and reused on every call;
    calls on the same instance are serialized.
    """

    def __init__(
        self,
        layer_id: LayerId,
        config: LayerRegistrationConfig,
        solver: RobustRegistrationSolver | None = None,
        params: TeaserParams | None = None,
    ) -> None:
        """Initialize layer solver.

        Args:
            layer_id: Scene graph layer to register
            config: Registration policy for the layer
            solver: Robust solver to own (a TEASER++ solver built from
                ``params`` if None)
            params: TEASER++ parameters, used only when solver is None
        """
        self.layer_id = layer_id
        self.config = config
        self.log_prefix = f"[DSG LCD] [layer {layer_id}]"
        self._solver = solver if solver is not None else make_teaser_solver(params)
        self._solver_lock = threading.Lock()

    def solve(
        self,
        dsg: DynamicSceneGraph,
        registration_input: DsgRegistrationInput,
        query_agent_id: NodeId,
    ) -> DsgRegistrationSolution:
        layer = dsg.get_layer(self.layer_id)
        problem = LayerRegistrationProblem(
            src_nodes=sorted(registration_input.query_nodes),
            dest_nodes=sorted(registration_input.match_nodes),
            src_mutex=dsg.layer_mutex(self.layer_id),
            min_correspondences=self.config.min_correspondences,
            min_inliers=self.config.min_inliers,
        )

        register = (
            register_layer_pairwise
            if self.config.use_pairwise_registration
            else register_layer_semantic
        )
        with self._solver_lock:
            solution = register(self.config, self._solver, problem, layer)

        if not solution.valid:
            logger.debug(
                "%s Registration failed for %s -> %s",
                self.log_prefix,
                node_label(registration_input.query_root),
                node_label(registration_input.match_root),
            )
            return DsgRegistrationSolution()

        logger.info(
            "%s Registered %s -> %s with %d inliers",
            self.log_prefix,
            node_label(registration_input.query_root),
            node_label(registration_input.match_root),
            len(solution.inliers),
        )
        return DsgRegistrationSolution(
            valid=True,
            from_node=query_agent_id,
            to_node=registration_input.match_root,
            to_T_from=solution.dest_T_src,
            level=self.layer_id,
            inliers=solution.inliers,
        )


class DsgAgentSolver(DsgRegistrationSolver):
    """Relative pose between the query and matched agent nodes."""

    def solve(
        self,
        dsg: DynamicSceneGraph,
        registration_input: DsgRegistrationInput,
        query_agent_id: NodeId,
    ) -> DsgRegistrationSolution:
        world_T_query = _agent_pose(dsg, registration_input.query_root)
        world_T_match = _agent_pose(dsg, registration_input.match_root)
        if world_T_query is None or world_T_match is None:
            return DsgRegistrationSolution()

        return DsgRegistrationSolution(
            valid=True,
            from_node=registration_input.query_root,
            to_node=registration_input.match_root,
            to_T_from=world_T_match.between(world_T_query),
            level=DsgLayers.AGENTS,
        )


def _agent_pose(dsg: DynamicSceneGraph, node_id: NodeId) -> SE3 | None:
    node = dsg.get_dynamic_node(node_id)
    if node is None:
        logger.debug("[DSG LCD] Missing agent node %s", node_label(node_id))
        return None
    if not isinstance(node.attributes, AgentNodeAttributes):
        logger.debug("[DSG LCD] Node %s has no agent pose", node_label(node_id))
        return None
    # attributes are mutable; the stored orientation may have been overwritten
    try:
        return node.attributes.pose
    except ValueError as e:
        logger.debug("[DSG LCD] Invalid pose for agent %s: %s", node_label(node_id), e)
        return None
