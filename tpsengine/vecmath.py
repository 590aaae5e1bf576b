"""Small 3D vector and 4x4 matrix helpers used by the camera and renderer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, TypeVar, Union

_IDENTITY: tuple[tuple[float, ...], ...] = (
    (1.0, 0.0, 0.0, 0.0),
    (0.0, 1.0, 0.0, 0.0),
    (0.0, 0.0, 1.0, 0.0),
    (0.0, 0.0, 0.0, 1.0),
)


@dataclass(frozen=True)
class Vec3:
    """An immutable three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vec3:
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z


@dataclass(frozen=True)
class Mat4:
    """A 4x4 matrix stored as rows; ``m[i][j]`` matches the engine's layout."""

    m: tuple[tuple[float, ...], ...] = _IDENTITY

    def __post_init__(self) -> None:
        rows = tuple(tuple(float(value) for value in row) for row in self.m)
        if len(rows) != 4 or any(len(row) != 4 for row in rows):
            raise ValueError("Mat4 requires exactly 4 rows of 4 values")
        object.__setattr__(self, "m", rows)

    @classmethod
    def identity(cls) -> Mat4:
        return cls()

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Mat4:
        return cls(tuple(tuple(row) for row in rows))

    def __getitem__(self, index: int) -> tuple[float, ...]:
        return self.m[index]


def dot(a: Vec3, b: Vec3) -> float:
    return a.x * b.x + a.y * b.y + a.z * b.z


def length_squared(v: Vec3) -> float:
    return dot(v, v)


def distance_squared(a: Vec3, b: Vec3) -> float:
    return length_squared(a - b)


def normalized_or_zero(v: Vec3) -> Vec3:
    """Return ``v`` scaled to unit length, or the zero vector if it is too short."""
    len_sq = length_squared(v)
    if len_sq <= 1e-10:
        return Vec3()
    return v * (1.0 / math.sqrt(len_sq))


def cross(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


_L = TypeVar("_L", float, Vec3)


def lerp(a: _L, b: _L, t: float) -> _L:
    """Linear interpolation between two scalars or two vectors."""
    if isinstance(a, Vec3):
        return Vec3(
            a.x + (b.x - a.x) * t,
            a.y + (b.y - a.y) * t,
            a.z + (b.z - a.z) * t,
        )
    return a + (b - a) * t


def look_at(eye: Vec3, center: Vec3, up: Vec3) -> Mat4:
    """Right-handed view matrix looking from ``eye`` towards ``center``."""
    f = normalized_or_zero(center - eye)
    s = normalized_or_zero(cross(f, up))
    u = cross(s, f)

    m = [list(row) for row in _IDENTITY]
    m[0][0], m[1][0], m[2][0] = s.x, s.y, s.z
    m[0][1], m[1][1], m[2][1] = u.x, u.y, u.z
    m[0][2], m[1][2], m[2][2] = -f.x, -f.y, -f.z
    m[3][0] = -dot(s, eye)
    m[3][1] = -dot(u, eye)
    m[3][2] = dot(f, eye)
    return Mat4.from_rows(m)


def perspective(fov_y: float, aspect: float, z_near: float, z_far: float) -> Mat4:
    """Perspective projection with a [0, 1] depth range."""
    tan_half_fovy = math.tan(fov_y * 0.5)
    m = [list(row) for row in _IDENTITY]
    m[3][3] = 0.0
    m[0][0] = 1.0 / (aspect * tan_half_fovy)
    m[1][1] = 1.0 / tan_half_fovy
    m[2][2] = z_far / (z_near - z_far)
    m[2][3] = -1.0
    m[3][2] = -(z_far * z_near) / (z_far - z_near)
    return Mat4.from_rows(m)


Number = Union[float, int]