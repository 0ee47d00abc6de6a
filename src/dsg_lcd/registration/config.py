"""Registration configuration and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from ..scene_graph import LayerId
from .teaser import TeaserParams


@dataclass
class LayerRegistrationConfig:
    """Per-layer registration policy.

    Attributes:
        min_correspondences: Fewer correspondences than this skip the solver
        min_inliers: Fewer solver inliers than this reject the registration
        log_registration_problem: Persist each problem for offline debugging
        use_pairwise_registration: Match every node pair instead of
            filtering by semantic label
        registration_output_path: Directory for persisted problems
    """

    min_correspondences: int = 5
    min_inliers: int = 5
    log_registration_problem: bool = False
    use_pairwise_registration: bool = False
    registration_output_path: str = ""

    def __post_init__(self) -> None:
        if self.min_correspondences < 0:
            raise ValueError(
                f"min_correspondences must be >= 0, got {self.min_correspondences}"
            )
        if self.min_inliers < 0:
            raise ValueError(f"min_inliers must be >= 0, got {self.min_inliers}")
        if self.log_registration_problem and not self.registration_output_path:
            raise ValueError(
                "registration_output_path is required when log_registration_problem is set"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LayerRegistrationConfig:
        """Build a config from a mapping; unknown keys are rejected."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown layer registration options: {unknown}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> LayerRegistrationConfig:
        """Load a config from a YAML file holding a single mapping."""
        return cls.from_dict(_load_yaml(path))


def load_solver_configs(
    path: str | Path,
) -> tuple[dict[LayerId, LayerRegistrationConfig], TeaserParams]:
    """Load registration configs for several layers.

    Expected layout::

        layers:
          3: {min_correspondences: 5, min_inliers: 5}
          2: {use_pairwise_registration: true}
        teaser:
          noise_bound: 0.5

    Args:
        path: YAML file path

    Returns:
        Tuple of (layer id -> config, solver params)
    """
    data = _load_yaml(path)
    layers = data.get("layers") or {}
    if not isinstance(layers, dict):
        raise ValueError(f"'layers' must be a mapping in {path}")

    configs = {
        int(layer_id): LayerRegistrationConfig.from_dict(layer_data)
        for layer_id, layer_data in layers.items()
    }
    return configs, TeaserParams.from_dict(data.get("teaser"))


def _load_yaml(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data
