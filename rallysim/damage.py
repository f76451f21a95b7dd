"""Per-corner damage bookkeeping for a vehicle part."""

from __future__ import annotations

import math
import sys
from enum import IntEnum
from typing import Iterable, List

from .collision import VehicleClip
from .vecmath import ReferenceFrame, Vec3

_BIG = sys.float_info.max


class DamageSide(IntEnum):
    """The four corners of a vehicle part that collect damage."""

    FRONT_LEFT = 0
    FRONT_RIGHT = 1
    REAR_LEFT = 2
    REAR_RIGHT = 3


class Damage:
    """Damage accumulated at each corner, with a one-shot flash flag per corner."""

    def __init__(self, clips: Iterable[VehicleClip] = ()):
        self.center: List[Vec3] = [Vec3.zero() for _ in DamageSide]
        self.damage: List[float] = [0.0 for _ in DamageSide]
        self.flash: List[bool] = [False for _ in DamageSide]
        self.set_clip(clips)

    def set_clip(self, clips: Iterable[VehicleClip]) -> None:
        """Place the corner centres from the extents of the clips and clear all damage."""
        lo = [_BIG, _BIG, _BIG]
        hi = [-_BIG, -_BIG, -_BIG]
        for clip in clips:
            for axis, value in enumerate(clip.pt):
                lo[axis] = min(lo[axis], value)
                hi[axis] = max(hi[axis], value)
        mid_z = 0.5 * hi[2]
        self.center = [
            Vec3(lo[0], hi[1], mid_z),  # front left
            Vec3(hi[0], hi[1], mid_z),  # front right
            Vec3(lo[0], lo[1], mid_z),  # rear left
            Vec3(hi[0], lo[1], mid_z),  # rear right
        ]
        self.damage = [0.0 for _ in DamageSide]
        self.flash = [False for _ in DamageSide]

    def _nearest(self, point: Vec3, frame: ReferenceFrame | None) -> DamageSide | None:
        minimum = math.inf
        nearest = None
        for side in DamageSide:
            center = self.center[side]
            if frame is not None:
                center = frame.loc_to_world_point(center)
            distance = (point - center).length()
            if distance < minimum:
                minimum = distance
                nearest = side
        return nearest

    def add_damage(self, crashpoint: Vec3, increment: float, ref_world: ReferenceFrame) -> None:
        """Add damage to the corner closest to a world-space crash point."""
        side = self._nearest(crashpoint, ref_world)
        if side is not None:
            self.damage[side] += increment
            self.flash[side] = True

    def side_damage(self, side: int) -> float:
        """Damage of a corner; -1.0 once after it was hit, to flash an indicator."""
        if side not in range(len(DamageSide)):
            return 0.0
        if self.flash[side]:
            self.flash[side] = False
            return -1.0
        return self.damage[side]

    def damage_near(self, position: Vec3) -> float:
        """Damage of the corner closest to a local position, capped at 1.0."""
        side = self._nearest(position, None)
        if side is None:
            return 0.0
        return min(self.damage[side], 1.0)