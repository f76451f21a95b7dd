"""Small vector, quaternion and reference-frame toolkit used by the simulation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Iterator, Sequence, Tuple

Matrix3 = Tuple[Tuple[float, float, float], Tuple[float, float, float], Tuple[float, float, float]]


@dataclass(frozen=True)
class Vec2:
    """Immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y

    def length(self) -> float:
        return math.sqrt(self.length_sq())


@dataclass(frozen=True)
class Vec3:
    """Immutable 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def zero(cls) -> Vec3:
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> Vec3:
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vec3:
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def with_z(self, z: float) -> Vec3:
        return Vec3(self.x, self.y, z)

    def xy(self) -> Vec2:
        return Vec2(self.x, self.y)

    def dot(self, other: Vec3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> Vec3:
        """Unit vector in the same direction; the zero vector is returned unchanged."""
        length = self.length()
        if length == 0.0:
            return self
        return self / length


@dataclass(frozen=True)
class Quat:
    """Immutable quaternion, w first."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> Quat:
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_z_angle(cls, angle: float) -> Quat:
        half = angle * 0.5
        return cls(math.cos(half), 0.0, 0.0, math.sin(half))

    @classmethod
    def from_x_angle(cls, angle: float) -> Quat:
        half = angle * 0.5
        return cls(math.cos(half), math.sin(half), 0.0, 0.0)

    @classmethod
    def from_three_axis_angle(cls, v: Vec3) -> Quat:
        """Rotation by |v| radians about the axis v."""
        angle = v.length()
        if angle == 0.0:
            return cls.identity()
        axis = v / angle
        s = math.sin(angle * 0.5)
        return cls(math.cos(angle * 0.5), axis.x * s, axis.y * s, axis.z * s)

    def __iter__(self) -> Iterator[float]:
        yield self.w
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Quat) -> Quat:
        return Quat(self.w + other.w, self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Quat) -> Quat:
        return Quat(self.w - other.w, self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, other):
        if isinstance(other, Quat):
            return Quat(
                self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
                self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
                self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
                self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
            )
        return Quat(self.w * other, self.x * other, self.y * other, self.z * other)

    def __rmul__(self, scalar: float) -> Quat:
        return self * scalar

    def dot(self, other: Quat) -> float:
        return self.w * other.w + self.x * other.x + self.y * other.y + self.z * other.z

    def normalized(self) -> Quat:
        norm = math.sqrt(self.dot(self))
        if norm == 0.0:
            return Quat.identity()
        return Quat(self.w / norm, self.x / norm, self.y / norm, self.z / norm)

    def to_matrix(self) -> Matrix3:
        """Rotation matrix R such that R applied to a local vector gives a world vector."""
        w, x, y, z = self.normalized()
        return (
            (1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)),
            (2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)),
            (2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)),
        )


def _apply(matrix: Matrix3, v: Vec3) -> Vec3:
    return Vec3(*(row[0] * v.x + row[1] * v.y + row[2] * v.z for row in matrix))


def _transpose(matrix: Matrix3) -> Matrix3:
    return tuple(zip(*matrix))  # type: ignore[return-value]


@dataclass(frozen=True)
class Plane:
    """Plane given by normal . p + offset = 0."""

    normal: Vec3
    offset: float

    def normalized(self) -> Plane:
        length = self.normal.length()
        if length == 0.0:
            return self
        return Plane(self.normal / length, self.offset / length)


class FrustumSide(IntEnum):
    RIGHT = 0
    LEFT = 1
    TOP = 2
    BOTTOM = 3
    NEAR = 4
    FAR = 5


@dataclass(frozen=True)
class Frustum:
    """Six clipping planes extracted from a combined view-projection matrix."""

    sides: Tuple[Plane, ...]

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[float]]) -> Frustum:
        def plane(column: int, sign: float) -> Plane:
            values = [matrix[r][3] + sign * matrix[r][column] for r in range(4)]
            return Plane(Vec3(*values[:3]), values[3]).normalized()

        return cls((
            plane(0, -1.0),  # right
            plane(0, 1.0),   # left
            plane(1, -1.0),  # top
            plane(1, 1.0),   # bottom
            plane(2, -1.0),  # near
            plane(2, 1.0),   # far
        ))

    def is_aabb_outside(self, mins: Vec3, maxs: Vec3) -> bool:
        """True when every box corner lies behind the right-hand side plane."""
        corners = [
            Vec3(x, y, z)
            for z in (mins.z, maxs.z)
            for y in (mins.y, maxs.y)
            for x in (mins.x, maxs.x)
        ]
        # Only the first side is tested, and only through the plane normal.
        for side in self.sides[:1]:
            if all(side.normal.dot(p) < 0.0 for p in corners):
                return True
        return False


@dataclass
class ReferenceFrame:
    """A position and orientation with cached rotation matrices."""

    position: Vec3 = field(default_factory=Vec3.zero)
    orientation: Quat = field(default_factory=Quat.identity)
    orientation_matrix: Matrix3 = field(init=False, repr=False)
    inverse_orientation_matrix: Matrix3 = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.update_matrices()

    def update_matrices(self) -> None:
        self.orientation_matrix = self.orientation.to_matrix()
        self.inverse_orientation_matrix = _transpose(self.orientation_matrix)

    def copy(self) -> ReferenceFrame:
        return replace(self)

    def loc_to_world_point(self, point: Vec3) -> Vec3:
        return self.position + _apply(self.orientation_matrix, point)

    def loc_to_world_vector(self, vector: Vec3) -> Vec3:
        return _apply(self.orientation_matrix, vector)

    def world_to_loc_vector(self, vector: Vec3) -> Vec3:
        return _apply(self.inverse_orientation_matrix, vector)

    def world_to_loc_point(self, point: Vec3) -> Vec3:
        return _apply(self.inverse_orientation_matrix, point - self.position)


def pull_toward(current, target, amount: float):
    """Move current exponentially toward target; works for numbers, vectors and quaternions."""
    return target + (current - target) * math.exp(-amount)