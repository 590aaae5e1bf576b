"""Third-person follow camera with aim mode, smoothing and collision against boxes."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from tpsengine.vecmath import (
    Mat4,
    Vec3,
    cross,
    distance_squared,
    length_squared,
    lerp,
    look_at,
    perspective,
)

_DEG_TO_RAD = 3.14159265 / 180.0
_NO_SLAB = 1e10
_SOCKET_OFFSET = Vec3(0.0, 1.7, 0.0)
_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class AABB:
    min: Vec3
    max: Vec3


def ray_aabb_intersect(origin: Vec3, direction: Vec3, box: AABB) -> Optional[float]:
    """Slab test; return the distance to the hit along ``direction`` or None."""

    def inverse(component: float) -> float:
        return _NO_SLAB if component == 0.0 else 1.0 / component

    inv = Vec3(inverse(direction.x), inverse(direction.y), inverse(direction.z))
    t1 = (box.min.x - origin.x) * inv.x
    t2 = (box.max.x - origin.x) * inv.x
    t3 = (box.min.y - origin.y) * inv.y
    t4 = (box.max.y - origin.y) * inv.y
    t5 = (box.min.z - origin.z) * inv.z
    t6 = (box.max.z - origin.z) * inv.z

    t_min = max(min(t1, t2), min(t3, t4), min(t5, t6))
    t_max = min(max(t1, t2), max(t3, t4), max(t5, t6))
    if t_max < 0.0 or t_min > t_max:
        return None
    return t_min if t_min > 0.0 else t_max


def _atof(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group()) if match else 0.0


def _wrap_degrees(angle: float) -> float:
    while angle > 360.0:
        angle -= 360.0
    while angle < 0.0:
        angle += 360.0
    return angle


def _basis(yaw: float, pitch: float) -> tuple[Vec3, Vec3]:
    yaw_rad = yaw * _DEG_TO_RAD
    pitch_rad = pitch * _DEG_TO_RAD
    forward = Vec3(
        math.cos(pitch_rad) * math.sin(yaw_rad),
        math.sin(pitch_rad),
        -math.cos(pitch_rad) * math.cos(yaw_rad),
    )
    right = Vec3(math.cos(yaw_rad), 0.0, math.sin(yaw_rad))
    return forward, right


class ThirdPersonCamera:
    """Orbiting camera on a spring arm behind the player.

    Tunables come from ``TPS_CAM_LAG``, ``TPS_CAM_ROT_LAG``, ``TPS_MOUSE_SENS``
    and ``TPS_FOV`` in ``environ`` (the process environment by default).
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ

        self._yaw = 0.0
        self._pitch = -15.0
        self._current_length = 6.0
        self._position = Vec3()
        self._aim_mode = False

        self._lag_speed = 8.0
        self._rot_lag_speed = 12.0
        self._mouse_sensitivity = 0.15
        self._fov = 75.0

        if "TPS_CAM_LAG" in env:
            self._lag_speed = _atof(env["TPS_CAM_LAG"])
        if "TPS_CAM_ROT_LAG" in env:
            self._rot_lag_speed = _atof(env["TPS_CAM_ROT_LAG"])
        if "TPS_MOUSE_SENS" in env:
            self._mouse_sensitivity = _atof(env["TPS_MOUSE_SENS"])
        if "TPS_FOV" in env:
            self._fov = _atof(env["TPS_FOV"])

        self._target_yaw = 0.0
        self._target_pitch = -15.0
        self._target_arm_length = 6.0
        self._current_target_offset = Vec3()
        self._current_lag_speed = self._lag_speed
        self._current_pitch_floor = -35.0

    @property
    def yaw(self) -> float:
        return self._yaw

    @property
    def pitch(self) -> float:
        return self._pitch

    @property
    def arm_length(self) -> float:
        return self._current_length

    @property
    def position(self) -> Vec3:
        return self._position

    @property
    def aim_mode(self) -> bool:
        return self._aim_mode

    def on_mouse_motion(self, dx: int, dy: int) -> None:
        self._target_yaw -= dx * self._mouse_sensitivity
        self._target_pitch -= dy * self._mouse_sensitivity
        self._target_yaw = _wrap_degrees(self._target_yaw)

    def set_aim_mode(self, aim_mode: bool) -> None:
        self._aim_mode = aim_mode

    def update(
        self,
        delta_time: float,
        player_pos: Vec3,
        scene_bounds: Sequence[AABB] = (),
    ) -> None:
        """Advance smoothing by ``delta_time`` seconds and pull the arm in on hits."""
        dt = min(delta_time, 0.05)

        if self._aim_mode:
            target_arm, target_offset, target_lag, target_floor = 3.5, Vec3(1.0, 0.0, 0.0), 20.0, -45.0
        else:
            target_arm, target_offset, target_lag, target_floor = 6.0, Vec3(), self._lag_speed, -35.0

        aim_factor = 1.0 - math.exp(-dt * 15.0)
        self._target_arm_length = lerp(self._target_arm_length, target_arm, aim_factor)
        self._current_target_offset = lerp(self._current_target_offset, target_offset, aim_factor)
        self._current_lag_speed = lerp(self._current_lag_speed, target_lag, aim_factor)
        self._current_pitch_floor = lerp(self._current_pitch_floor, target_floor, aim_factor)

        self._target_pitch = min(max(self._target_pitch, self._current_pitch_floor), 60.0)

        rot_factor = 1.0 - math.exp(-dt * self._rot_lag_speed)
        yaw_diff = self._target_yaw - self._yaw
        if yaw_diff > 180.0:
            yaw_diff -= 360.0
        if yaw_diff < -180.0:
            yaw_diff += 360.0
        self._yaw = _wrap_degrees(self._yaw + yaw_diff * rot_factor)
        self._pitch = lerp(self._pitch, self._target_pitch, rot_factor)

        forward, right = _basis(self._yaw, self._pitch)
        arm_root = player_pos + _SOCKET_OFFSET
        offset = self._current_target_offset
        look_at_pos = arm_root + right * offset.x + Vec3(0.0, offset.y, 0.0)

        # A camera sitting on its own target would give a degenerate view matrix.
        if math.sqrt(distance_squared(look_at_pos, self._position)) < 0.001:
            return

        ideal_pos = look_at_pos - forward * self._target_arm_length
        safe_length = self._target_arm_length
        bounds = list(scene_bounds or ())
        if bounds:
            ray = ideal_pos - look_at_pos
            ray_len = math.sqrt(length_squared(ray))
            if ray_len > 0.001:
                ray = ray * (1.0 / ray_len)
                closest = ray_len
                for box in bounds:
                    hit = ray_aabb_intersect(look_at_pos, ray, box)
                    if hit is not None and 0.0 < hit < closest:
                        closest = hit
                safe_length = closest * 0.9

        if self._current_length > safe_length:
            self._current_length = safe_length
        else:
            self._current_length = lerp(
                self._current_length, safe_length, 1.0 - math.exp(-dt * 5.0)
            )

        target_pos = look_at_pos - forward * self._current_length
        pos_factor = 1.0 - math.exp(-dt * self._current_lag_speed)
        self._position = lerp(self._position, target_pos, pos_factor)

    def view_matrix(self) -> Mat4:
        forward, right = _basis(self._yaw, self._pitch)
        up = cross(right, forward)
        return look_at(self._position, self._position + forward, up)

    def projection_matrix(self, aspect_ratio: float) -> Mat4:
        return perspective(self._fov * _DEG_TO_RAD, aspect_ratio, 0.1, 500.0)