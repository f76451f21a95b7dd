"""Per-vehicle wheel state, control inputs and vehicle parts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .damage import Damage
from .vecmath import ReferenceFrame, Vec2, Vec3


def _clamp(value: float, low: float, high: float) -> float:
    return low if value < low else high if value > high else value


@dataclass
class Wheel:
    """Suspension, spin, steering and bump state of one wheel of a vehicle."""

    ride_pos: float = 0.0
    ride_vel: float = 0.0
    spin_pos: float = 0.0
    spin_vel: float = 0.0
    turn_pos: float = 0.0
    bumplast: float = 0.0
    bumpnext: float = 0.0
    bumptravel: float = 0.0
    skidding: float = 0.0
    dirtthrow: float = 0.0
    dirtthrowpos: Vec3 = field(default_factory=Vec3.zero)
    dirtthrowvec: Vec3 = field(default_factory=Vec3.zero)
    ref_world: ReferenceFrame = field(default_factory=ReferenceFrame)
    ref_world_lowest_point: ReferenceFrame = field(default_factory=ReferenceFrame)

    def reset(self) -> None:
        """Stop the wheel and clear suspension, bump and dirt state."""
        self.ride_pos = 0.0
        self.ride_vel = 0.0
        self.spin_pos = 0.0
        self.spin_vel = 0.0
        self.turn_pos = 0.0
        self.bumplast = 0.0
        self.bumpnext = 0.0
        self.bumptravel = 0.0
        self.skidding = 0.0
        self.dirtthrow = 0.0
        self.dirtthrowpos = Vec3.zero()
        self.dirtthrowvec = Vec3.zero()

    def lowest_point(self) -> Vec3:
        """World point where the wheel would touch the ground, including the current bump."""
        pos = self.ref_world_lowest_point.position
        bump = self.bumplast + (self.bumpnext - self.bumplast) * self.bumptravel
        return Vec3(pos.x, pos.y, pos.z + bump)


@dataclass
class Controls:
    """Control inputs of a vehicle, each in its valid range after clamp()."""

    throttle: float = 0.0
    brake1: float = 0.0
    brake2: float = 0.0
    turn: Vec3 = field(default_factory=Vec3.zero)
    aim: Vec2 = field(default_factory=lambda: Vec2(0.0, 0.0))
    collective: float = 0.0

    def set_zero(self) -> None:
        self.throttle = 0.0
        self.brake1 = 0.0
        self.brake2 = 0.0
        self.turn = Vec3.zero()
        self.aim = Vec2(0.0, 0.0)
        self.collective = 0.0

    def clamp(self) -> None:
        """Limit brakes to [0, 1] and every other input to [-1, 1]."""
        self.throttle = _clamp(self.throttle, -1.0, 1.0)
        self.brake1 = _clamp(self.brake1, 0.0, 1.0)
        self.brake2 = _clamp(self.brake2, 0.0, 1.0)
        self.turn = Vec3(
            _clamp(self.turn.x, -1.0, 1.0),
            _clamp(self.turn.y, -1.0, 1.0),
            _clamp(self.turn.z, -1.0, 1.0),
        )
        self.aim = Vec2(_clamp(self.aim.x, -1.0, 1.0), _clamp(self.aim.y, -1.0, 1.0))
        self.collective = _clamp(self.collective, -1.0, 1.0)


@dataclass
class VehiclePart:
    """Running state of one part of a vehicle: its frames, wheels and damage."""

    ref_local: ReferenceFrame = field(default_factory=ReferenceFrame)
    ref_world: ReferenceFrame = field(default_factory=ReferenceFrame)
    wheels: List[Wheel] = field(default_factory=list)
    damage: Damage = field(default_factory=Damage)