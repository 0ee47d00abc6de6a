"""Shared fixtures: scene graph builders and solver / lock test doubles."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
import pytest

from dsg_lcd.scene_graph import (
    NodeSymbol,
    SceneGraphLayer,
    SemanticNodeAttributes,
)


@dataclass
class FakeSolution:
    valid: bool
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))


class FakeSolver:
    """Robust solver double recording every call.

    Reports a fixed solution and inlier list; ``on_solve`` runs inside
    ``solve`` so tests can inspect state at solve time.
    """

    def __init__(
        self,
        valid: bool = True,
        inliers: list[int] | None = None,
        rotation: np.ndarray | None = None,
        translation: np.ndarray | None = None,
        on_solve: Callable[[], None] | None = None,
    ) -> None:
        self.valid = valid
        self.inliers = list(inliers) if inliers is not None else []
        self.rotation = np.eye(3) if rotation is None else rotation
        self.translation = np.zeros(3) if translation is None else translation
        self.on_solve = on_solve

        self.params = {"noise_bound": 0.5}
        self.reset_calls: list[dict] = []
        self.solve_calls: list[tuple[np.ndarray, np.ndarray]] = []
        self._solution: FakeSolution | None = None

    def getParams(self) -> dict:
        return self.params

    def reset(self, params: dict) -> None:
        self.reset_calls.append(params)
        self._solution = None

    def solve(self, src: np.ndarray, dst: np.ndarray) -> FakeSolution:
        self.solve_calls.append((src.copy(), dst.copy()))
        if self.on_solve is not None:
            self.on_solve()
        self._solution = FakeSolution(self.valid, self.rotation, self.translation)
        return self._solution

    def getSolution(self) -> FakeSolution:
        assert self._solution is not None, "getSolution called before solve"
        return self._solution

    def getInlierMaxClique(self) -> list[int]:
        return list(self.inliers)

    @property
    def num_solves(self) -> int:
        return len(self.solve_calls)


class RecordingLock:
    """Lock that counts acquisitions and reports whether it is held."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.acquire_count = 0

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        acquired = self._lock.acquire(blocking, timeout)
        if acquired:
            self.acquire_count += 1
        return acquired

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


def place_id(index: int) -> int:
    return NodeSymbol("p", index).value


def add_semantic_nodes(
    layer: SceneGraphLayer,
    prefix: str,
    positions: np.ndarray,
    labels: list[int] | None = None,
) -> list[int]:
    """Add one node per position to a layer and return their ids."""
    ids = []
    for i, position in enumerate(positions):
        node_id = NodeSymbol(prefix, i).value
        label = labels[i] if labels is not None else 0
        layer.add_node(node_id, SemanticNodeAttributes(position, semantic_label=label))
        ids.append(node_id)
    return ids


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(7)


@pytest.fixture
def recording_lock() -> RecordingLock:
    return RecordingLock()
