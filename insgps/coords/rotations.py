"""Quaternion and rotation algebra for the error-state filter.

This module collects the rotation operations used by mechanization,
linearization and error injection:
- Skew-symmetric (cross-product) matrices
- Hamilton quaternion product and normalization
- Exponential map from rotation vectors to quaternions / rotation matrices
- Two-vector alignment (minimal rotation taking one direction onto another)
- Quaternion to rotation matrix and to roll-pitch-yaw (for display)

Conventions:
- Quaternions: [qw, qx, qy, qz], scalar first, Hamilton product
- A quaternion q represents the body-to-navigation rotation: v_n = R(q) @ v_b
- Euler angles: [roll, pitch, yaw] in radians (ZYX/3-2-1 convention)
- Rotation vectors: axis * angle, radians
"""

import numpy as np
from numpy.typing import NDArray

# Below this rotation angle the exponential map uses its first-order form.
SMALL_ANGLE_RAD = 1e-12

IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])


def skew(v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the 3x3 skew-symmetric matrix [v]x such that [v]x @ u = v x u.

    Args:
        v: Vector of shape (3,).

    Returns:
        Skew-symmetric matrix of shape (3, 3).

    Raises:
        ValueError: If v is not a 3-element vector.
    """
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"Expected 3-element vector, got shape {v.shape}")

    return np.array(
        [
            [0.0, -v[2], v[1]],
            [v[2], 0.0, -v[0]],
            [-v[1], v[0], 0.0],
        ],
        dtype=np.float64,
    )


def quat_multiply(
    q1: NDArray[np.float64],
    q2: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Hamilton product q1 ⊗ q2.

    With body-to-navigation quaternions, q1 ⊗ q2 applies q2 first
    (in the body frame) and then q1.

    Args:
        q1: Left quaternion [qw, qx, qy, qz].
        q2: Right quaternion [qw, qx, qy, qz].

    Returns:
        Product quaternion, shape (4,). Not renormalized.
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2

    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ],
        dtype=np.float64,
    )


def quat_normalize(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize a quaternion to unit norm.

    Raises:
        ValueError: If q has zero (or non-finite) norm.
    """
    norm = np.linalg.norm(q)
    if not np.isfinite(norm) or norm == 0.0:
        raise ValueError(f"Cannot normalize quaternion with norm {norm}")
    return np.asarray(q, dtype=np.float64) / norm


def quat_from_rotvec(theta: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map: rotation vector -> unit quaternion.

    q = [cos(|θ|/2), sin(|θ|/2) * θ/|θ|]

    For |θ| below SMALL_ANGLE_RAD the first-order form [1, θ/2] is used
    (normalized). A zero vector maps exactly to the identity quaternion.

    Args:
        theta: Rotation vector (axis * angle), shape (3,). Units: rad.

    Returns:
        Unit quaternion [qw, qx, qy, qz].

    Example:
        >>> q = quat_from_rotvec(np.array([0.0, 0.0, np.pi / 2]))  # 90° yaw
        >>> np.allclose(q, [np.cos(np.pi / 4), 0.0, 0.0, np.sin(np.pi / 4)])
        True
    """
    theta = np.asarray(theta, dtype=np.float64)
    if theta.shape != (3,):
        raise ValueError(f"Expected 3-element rotation vector, got shape {theta.shape}")

    angle = np.linalg.norm(theta)
    if angle < SMALL_ANGLE_RAD:
        if angle == 0.0:
            return IDENTITY_QUAT.copy()
        return quat_normalize(np.concatenate(([1.0], 0.5 * theta)))

    half = 0.5 * angle
    return np.concatenate(([np.cos(half)], np.sin(half) * theta / angle))


def rotvec_to_rotation_matrix(theta: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map: rotation vector -> rotation matrix (Rodrigues).

    R = I + sin(a) [u]x + (1 - cos(a)) [u]x²,  a = |θ|, u = θ/a

    Args:
        theta: Rotation vector, shape (3,). Units: rad.

    Returns:
        3x3 rotation matrix.
    """
    theta = np.asarray(theta, dtype=np.float64)
    if theta.shape != (3,):
        raise ValueError(f"Expected 3-element rotation vector, got shape {theta.shape}")

    angle = np.linalg.norm(theta)
    if angle < SMALL_ANGLE_RAD:
        return np.eye(3) + skew(theta)

    K = skew(theta / angle)
    return np.eye(3) + np.sin(angle) * K + (1.0 - np.cos(angle)) * (K @ K)


def quat_to_rotation_matrix(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a unit quaternion to the rotation matrix R with v_n = R @ v_b.

    Args:
        q: Unit quaternion [qw, qx, qy, qz].

    Returns:
        3x3 rotation matrix.

    Raises:
        ValueError: If q is not a 4-element array.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")

    qw, qx, qy, qz = q

    return np.array(
        [
            [
                1.0 - 2.0 * (qy * qy + qz * qz),
                2.0 * (qx * qy - qw * qz),
                2.0 * (qx * qz + qw * qy),
            ],
            [
                2.0 * (qx * qy + qw * qz),
                1.0 - 2.0 * (qx * qx + qz * qz),
                2.0 * (qy * qz - qw * qx),
            ],
            [
                2.0 * (qx * qz - qw * qy),
                2.0 * (qy * qz + qw * qx),
                1.0 - 2.0 * (qx * qx + qy * qy),
            ],
        ],
        dtype=np.float64,
    )


def quat_from_two_vectors(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Minimal rotation taking the direction of `a` onto the direction of `b`.

    Returns q such that R(q) @ (a/|a|) = b/|b|. For anti-parallel inputs the
    rotation is 180° about an axis orthogonal to `a`.

    Args:
        a: Source vector, shape (3,). Non-zero.
        b: Target vector, shape (3,). Non-zero.

    Returns:
        Unit quaternion [qw, qx, qy, qz].

    Raises:
        ValueError: If either vector has zero length.

    Example:
        >>> q = quat_from_two_vectors(np.array([0, 0, 9.81]), np.array([0, 0, 9.7]))
        >>> np.allclose(q, [1, 0, 0, 0])
        True
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != (3,) or b.shape != (3,):
        raise ValueError(f"Expected 3-element vectors, got {a.shape} and {b.shape}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        raise ValueError("Cannot align zero-length vectors")

    u = a / norm_a
    v = b / norm_b
    c = float(np.dot(u, v))

    if c < -1.0 + 1e-12:
        # Anti-parallel: pick the basis axis least aligned with u
        axis = np.eye(3)[np.argmin(np.abs(u))]
        axis = np.cross(u, axis)
        axis /= np.linalg.norm(axis)
        return np.concatenate(([0.0], axis))

    q = np.concatenate(([1.0 + c], np.cross(u, v)))
    return quat_normalize(q)


def quat_to_euler(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a unit quaternion to [roll, pitch, yaw] in radians (ZYX).

    Handles gimbal lock by clamping the pitch sine to [-1, 1].

    Raises:
        ValueError: If q is not a 4-element array.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")

    qw, qx, qy, qz = q

    roll = np.arctan2(2.0 * (qw * qx + qy * qz), 1.0 - 2.0 * (qx * qx + qy * qy))
    sin_pitch = np.clip(2.0 * (qw * qy - qz * qx), -1.0, 1.0)
    pitch = np.arcsin(sin_pitch)
    yaw = np.arctan2(2.0 * (qw * qz + qx * qy), 1.0 - 2.0 * (qy * qy + qz * qz))

    return np.array([roll, pitch, yaw], dtype=np.float64)
