"""SE(3) rigid transforms used for registration results and agent poses."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass
class SE3:
    """Rigid body transformation (rotation + translation) in SE(3).

    Poses are named ``a_T_b``: the transform that maps points expressed in
    frame ``b`` into frame ``a``:

        p_a = R @ p_b + t

    A registration result ``dest_T_src`` therefore maps source-region points
    into the destination region, and an agent pose ``world_T_body`` maps body
    points into the world.

    Attributes:
        rotation: 3x3 orthonormal rotation matrix (det = +1)
        translation: 3D translation vector
    """

    rotation: np.ndarray  # 3x3 rotation matrix
    translation: np.ndarray  # (3,) translation vector

    def __post_init__(self) -> None:
        """Validate and normalize inputs."""
        self.rotation = np.asarray(self.rotation, dtype=np.float64)
        self.translation = np.asarray(self.translation, dtype=np.float64).flatten()

        if self.rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got {self.rotation.shape}")
        if self.translation.shape != (3,):
            raise ValueError(
                f"Translation must be (3,), got {self.translation.shape}"
            )

    @classmethod
    def identity(cls) -> SE3:
        """Return the identity transform."""
        return cls(rotation=np.eye(3), translation=np.zeros(3))

    @classmethod
    def from_Rt(cls, R: np.ndarray, t: np.ndarray) -> SE3:
        """Create SE3 from a rotation matrix and translation vector.

        The robust solver reports its estimate in this form.

        Args:
            R: 3x3 rotation matrix
            t: translation vector (any shape that flattens to 3)

        Returns:
            SE3 transformation
        """
        return cls(rotation=R, translation=t)

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> SE3:
        """Create SE3 from a 4x4 homogeneous matrix [[R, t], [0, 1]]."""
        T = np.asarray(T)
        if T.shape != (4, 4):
            raise ValueError(f"Transform must be 4x4, got {T.shape}")
        return cls(rotation=T[:3, :3], translation=T[:3, 3])

    @classmethod
    def from_rvec_tvec(cls, rvec: np.ndarray, tvec: np.ndarray) -> SE3:
        """Create SE3 from an axis-angle (Rodrigues) vector and translation.

        Args:
            rvec: rotation axis scaled by the rotation angle in radians
            tvec: translation vector

        Returns:
            SE3 transformation
        """
        R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64).reshape(3, 1))
        return cls(rotation=R, translation=np.asarray(tvec).flatten())

    @classmethod
    def from_quaternion(
        cls,
        qw: float,
        qx: float,
        qy: float,
        qz: float,
        translation: np.ndarray,
    ) -> SE3:
        """Create SE3 from a Hamilton quaternion (w, x, y, z) and translation.

        Agent nodes store their orientation this way. The quaternion does not
        need to be normalized.

        Raises:
            ValueError: if the quaternion has zero norm
        """
        norm = np.sqrt(qw * qw + qx * qx + qy * qy + qz * qz)
        if norm == 0.0:
            raise ValueError("Quaternion must have non-zero norm")
        qw, qx, qy, qz = qw / norm, qx / norm, qy / norm, qz / norm

        R = np.array(
            [
                [
                    1 - 2 * (qy * qy + qz * qz),
                    2 * (qx * qy - qz * qw),
                    2 * (qx * qz + qy * qw),
                ],
                [
                    2 * (qx * qy + qz * qw),
                    1 - 2 * (qx * qx + qz * qz),
                    2 * (qy * qz - qx * qw),
                ],
                [
                    2 * (qx * qz - qy * qw),
                    2 * (qy * qz + qx * qw),
                    1 - 2 * (qx * qx + qy * qy),
                ],
            ],
            dtype=np.float64,
        )
        return cls(rotation=R, translation=np.asarray(translation).flatten())

    def to_matrix(self) -> np.ndarray:
        """Return the 4x4 homogeneous matrix [[R, t], [0, 1]]."""
        T = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def to_rvec_tvec(self) -> tuple[np.ndarray, np.ndarray]:
        """Return the (axis-angle vector, translation) pair."""
        rvec, _ = cv2.Rodrigues(self.rotation)
        return rvec.flatten(), self.translation.copy()

    def inverse(self) -> SE3:
        """Return ``b_T_a`` for ``self = a_T_b``: [R^T, -R^T @ t]."""
        R_inv = self.rotation.T
        return SE3(rotation=R_inv, translation=-R_inv @ self.translation)

    def compose(self, other: SE3) -> SE3:
        """Return ``self @ other``.

        ``a_T_b.compose(b_T_c)`` gives ``a_T_c``.
        """
        R = self.rotation @ other.rotation
        t = self.rotation @ other.translation + self.translation
        return SE3(rotation=R, translation=t)

    def between(self, other: SE3) -> SE3:
        """Return the relative transform ``self^-1 @ other``.

        For two poses in a common frame, ``world_T_a.between(world_T_b)``
        is ``a_T_b``.
        """
        return self.inverse().compose(other)

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """Apply the transform to an (N, 3) array of points."""
        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 1:
            points = points.reshape(1, 3)

        if points.shape[1] != 3:
            raise ValueError(f"Points must be Nx3, got {points.shape}")

        return (self.rotation @ points.T).T + self.translation

    @property
    def rotation_angle(self) -> float:
        """Rotation magnitude in radians, in [0, pi]."""
        rvec, _ = self.to_rvec_tvec()
        return float(np.linalg.norm(rvec))

    def __repr__(self) -> str:
        """Return string representation."""
        t = self.translation
        return (
            f"SE3(translation=[{t[0]:.3f}, {t[1]:.3f}, {t[2]:.3f}], "
            f"angle={np.degrees(self.rotation_angle):.2f}deg)"
        )

    def __matmul__(self, other: SE3) -> SE3:
        """Composition operator: ``a_T_b @ b_T_c``."""
        return self.compose(other)
