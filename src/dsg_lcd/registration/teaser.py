"""Adapter around the TEASER++ robust registration solver.

TEASER++ estimates a rigid transform from putative point correspondences
while rejecting outliers through a maximum-clique search over pairwise
consistent correspondences. Registration only relies on the small surface
described by ``RobustRegistrationSolver`` below, which is the one exposed by
the ``teaserpp_python`` binding. Tests provide their own implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Protocol

import numpy as np

_ROTATION_ALGORITHMS = ("GNC_TLS", "FGR")


class RobustSolution(Protocol):
    """Solution reported by the robust solver."""

    valid: bool
    rotation: np.ndarray
    translation: np.ndarray


class RobustRegistrationSolver(Protocol):
    """Stateful robust solver; state persists until the next ``reset``."""

    def getParams(self) -> Any: ...

    def reset(self, params: Any) -> None: ...

    def solve(self, src: np.ndarray, dst: np.ndarray) -> Any: ...

    def getSolution(self) -> RobustSolution: ...

    def getInlierMaxClique(self) -> list[int]: ...


@dataclass
class TeaserParams:
    """TEASER++ solver parameters.

    Attributes:
        noise_bound: Bound on correspondence noise, in meters
        cbar2: Square of the TLS truncation threshold
        estimate_scaling: Whether to estimate scale (off for rigid LCD)
        rotation_estimation_algorithm: "GNC_TLS" or "FGR"
        rotation_gnc_factor: GNC annealing factor
        rotation_max_iterations: Max iterations of the rotation solver
        rotation_cost_threshold: Rotation solver convergence threshold
        kcore_heuristic_threshold: Max-clique heuristic switch threshold
        max_clique_time_limit: Max-clique time budget in seconds
    """

    noise_bound: float = 0.5
    cbar2: float = 1.0
    estimate_scaling: bool = False
    rotation_estimation_algorithm: str = "GNC_TLS"
    rotation_gnc_factor: float = 1.4
    rotation_max_iterations: int = 100
    rotation_cost_threshold: float = 1.0e-6
    kcore_heuristic_threshold: float = 0.5
    max_clique_time_limit: float = 3600.0

    def __post_init__(self) -> None:
        if self.noise_bound <= 0.0:
            raise ValueError(f"noise_bound must be positive, got {self.noise_bound}")
        if self.rotation_estimation_algorithm not in _ROTATION_ALGORITHMS:
            raise ValueError(
                f"Unknown rotation estimation algorithm "
                f"{self.rotation_estimation_algorithm!r}, expected one of "
                f"{_ROTATION_ALGORITHMS}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TeaserParams:
        """Build params from a config mapping; unknown keys are rejected."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown TEASER parameters: {unknown}")
        return cls(**data)

    def to_teaser(self) -> Any:
        """Convert to ``teaserpp_python.RobustRegistrationSolver.Params``."""
        teaserpp_python = _import_teaser()
        solver_cls = teaserpp_python.RobustRegistrationSolver
        params = solver_cls.Params()
        params.noise_bound = self.noise_bound
        params.cbar2 = self.cbar2
        params.estimate_scaling = self.estimate_scaling
        params.rotation_estimation_algorithm = getattr(
            solver_cls.ROTATION_ESTIMATION_ALGORITHM,
            self.rotation_estimation_algorithm,
        )
        params.rotation_gnc_factor = self.rotation_gnc_factor
        params.rotation_max_iterations = self.rotation_max_iterations
        params.rotation_cost_threshold = self.rotation_cost_threshold
        params.kcore_heuristic_threshold = self.kcore_heuristic_threshold
        params.max_clique_time_limit = self.max_clique_time_limit
        return params


def make_teaser_solver(params: TeaserParams | None = None) -> RobustRegistrationSolver:
    """Create a TEASER++ solver.

    Args:
        params: Solver parameters (defaults if None)

    Returns:
        ``teaserpp_python.RobustRegistrationSolver`` instance
    """
    params = params or TeaserParams()
    teaserpp_python = _import_teaser()
    return teaserpp_python.RobustRegistrationSolver(params.to_teaser())


def _import_teaser() -> Any:
    try:
        import teaserpp_python
    except ImportError as e:
        raise ImportError(
            "TEASER++ python bindings are required for geometric registration; "
            "install with `pip install dsg-lcd[teaser]` or build TEASER++ "
            "with -DBUILD_PYTHON_BINDINGS=ON"
        ) from e
    return teaserpp_python
