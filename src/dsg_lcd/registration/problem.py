"""Registration problem and solution types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from ..pose import SE3
from ..scene_graph import SceneGraphLayer
from .correspondences import Correspondence


class Mutex(Protocol):
    """Lock owned by the scene graph (``threading.Lock`` or compatible)."""

    def acquire(self, blocking: bool = ..., timeout: float = ...) -> bool: ...

    def release(self) -> None: ...


@dataclass
class LayerRegistrationProblem:
    """Two node sets to register plus the locks and thresholds to apply.

    The node containers only need a stable iteration order within one call:
    it fixes the order of the correspondences and therefore the meaning of
    the inlier indices reported by the solver.

    Attributes:
        src_nodes: Source node ids
        dest_nodes: Destination node ids
        dest_layer: Layer of the destination nodes; None registers the
            source layer against itself
        src_mutex: Lock to hold while reading the source layer
        dest_mutex: Lock to hold while reading the destination layer
        min_correspondences: Minimum correspondences to attempt a solve
        min_inliers: Minimum inliers to accept the solve
    """

    src_nodes: Sequence[int]
    dest_nodes: Sequence[int]
    dest_layer: SceneGraphLayer | None = None
    src_mutex: Mutex | None = None
    dest_mutex: Mutex | None = None
    min_correspondences: int = 5
    min_inliers: int = 5


@dataclass
class LayerRegistrationSolution:
    """Result of registering two node sets.

    The default instance (invalid, identity, no inliers) is the only value
    returned when registration is rejected, whatever the reason.

    Attributes:
        valid: Whether registration succeeded
        dest_T_src: Transform mapping source points into the destination
        inliers: Correspondences consistent with dest_T_src
    """

    valid: bool = False
    dest_T_src: SE3 = field(default_factory=SE3.identity)
    inliers: list[Correspondence] = field(default_factory=list)
