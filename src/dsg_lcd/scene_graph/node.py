"""Scene graph nodes, ids, and attribute bundles.

Node ids follow the symbol convention used throughout the scene graph: the
top byte of the 64-bit id holds a character prefix (``p`` for places, ``O``
for objects, ``a`` for agents, ...) and the remaining bits hold an index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeVar

import numpy as np

from ..pose import SE3

NodeId = int
LayerId = int

_CHAR_BITS = 8
_INDEX_BITS = 64 - _CHAR_BITS
_INDEX_MASK = (1 << _INDEX_BITS) - 1


@dataclass(frozen=True, order=True)
class NodeSymbol:
    """Readable (prefix, index) view of a node id."""

    category: str
    index: int

    def __post_init__(self) -> None:
        if len(self.category) != 1:
            raise ValueError(f"Category must be a single character, got {self.category!r}")
        if not 0 <= self.index <= _INDEX_MASK:
            raise ValueError(f"Index out of range: {self.index}")

    @classmethod
    def from_id(cls, node_id: NodeId) -> NodeSymbol:
        """Decode a packed node id."""
        return cls(chr((node_id >> _INDEX_BITS) & 0xFF), node_id & _INDEX_MASK)

    @property
    def value(self) -> NodeId:
        """Packed node id."""
        return (ord(self.category) << _INDEX_BITS) | self.index

    @property
    def label(self) -> str:
        """Label used in log messages, e.g. ``p12``."""
        return f"{self.category}{self.index}"

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.label


def node_label(node_id: NodeId) -> str:
    """Return the printable label of a node id."""
    return NodeSymbol.from_id(node_id).label


@dataclass
class NodeAttributes:
    """Attributes shared by every node: a position in the world frame."""

    position: np.ndarray

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=np.float64).flatten()
        if self.position.shape != (3,):
            raise ValueError(f"Position must be (3,), got {self.position.shape}")


@dataclass
class SemanticNodeAttributes(NodeAttributes):
    """Attributes of nodes carrying a semantic class (objects, rooms)."""

    semantic_label: int = 0
    name: str = ""


@dataclass
class AgentNodeAttributes(NodeAttributes):
    """Attributes of agent (trajectory) nodes.

    Attributes:
        position: body position in the world frame
        world_R_body: orientation quaternion (w, x, y, z)
        timestamp_ns: time the pose was recorded
    """

    world_R_body: np.ndarray = field(
        default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0])
    )
    timestamp_ns: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        self.world_R_body = np.asarray(self.world_R_body, dtype=np.float64).flatten()
        if self.world_R_body.shape != (4,):
            raise ValueError(
                f"Orientation must be a (w, x, y, z) quaternion, got {self.world_R_body.shape}"
            )
        if not np.any(self.world_R_body):
            raise ValueError("Orientation quaternion must have non-zero norm")

    @property
    def pose(self) -> SE3:
        """Agent pose ``world_T_body``."""
        qw, qx, qy, qz = self.world_R_body
        return SE3.from_quaternion(qw, qx, qy, qz, self.position)


AttrT = TypeVar("AttrT", bound=NodeAttributes)


@dataclass
class SceneGraphNode:
    """A node of the scene graph.

    Attributes:
        id: Node id (see NodeSymbol)
        layer: Id of the layer the node lives in
        attributes: Attribute bundle; its concrete type depends on the layer
    """

    id: NodeId
    layer: LayerId
    attributes: NodeAttributes

    def attributes_as(self, kind: type[AttrT]) -> AttrT:
        """Return the attributes checked against an expected bundle type.

        Raises:
            TypeError: if the node carries a different kind of attributes
        """
        if not isinstance(self.attributes, kind):
            raise TypeError(
                f"Node {node_label(self.id)} has {type(self.attributes).__name__}, "
                f"not {kind.__name__}"
            )
        return self.attributes

    @property
    def position(self) -> np.ndarray:
        """Node position in the world frame."""
        return self.attributes.position
