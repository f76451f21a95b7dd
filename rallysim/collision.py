"""Axis-aligned collision checks between a vehicle part and world objects."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

from .vecmath import ReferenceFrame, Vec3


class ClipType(Enum):
    """How a clip point interacts with the ground."""

    BODY = "body"
    DRIVE_LEFT = "drive-left"
    DRIVE_RIGHT = "drive-right"
    HOVER = "hover"


@dataclass
class VehicleClip:
    """A contact point on a vehicle part, in part-local coordinates."""

    type: ClipType
    pt: Vec3 = field(default_factory=Vec3.zero)
    force: float = 0.0
    dampening: float = 0.0


@dataclass
class Foliage:
    """A world object (plant or road sign) standing on the terrain."""

    pos: Vec3 = field(default_factory=Vec3.zero)
    ang: float = 0.0
    scale: float = 1.0
    rigidity: float = 0.0


class Collision:
    """World-space bounding box of a part's clips, from their tops down to local z = 0."""

    def __init__(self, clips: Iterable[VehicleClip], ref_world: ReferenceFrame):
        lo = [math.inf, math.inf, math.inf]
        hi = [-math.inf, -math.inf, -math.inf]
        for clip in clips:
            top = clip.pt
            bottom = top.with_z(0.0)
            for point in (ref_world.loc_to_world_point(top), ref_world.loc_to_world_point(bottom)):
                for axis, value in enumerate(point):
                    lo[axis] = min(lo[axis], value)
                    hi[axis] = max(hi[axis], value)
        self.boxmin = Vec3(*lo)
        self.boxmax = Vec3(*hi)

    def check_contact(self, foliage: Iterable[Foliage]) -> List[Foliage]:
        """Objects whose vertical extent overlaps the bounding box."""
        lo, hi = self.boxmin, self.boxmax
        contact = []
        for obj in foliage:
            fmin = obj.pos
            fmax = obj.pos.with_z(obj.pos.z + obj.scale)
            if (fmin.x <= hi.x and fmax.x >= lo.x
                    and fmin.y <= hi.y and fmax.y >= lo.y
                    and fmin.z <= hi.z and fmax.z >= lo.z):
                contact.append(obj)
        return contact

    @staticmethod
    def towards_contact(body: Vec3, contact: Vec3, diff: Vec3) -> bool:
        """True when moving body by diff brings it closer to contact."""
        return (body - contact).length() > (body + diff - contact).length()

    @staticmethod
    def crash_point(body: Vec3, foliage: Foliage) -> Vec3:
        """Where to apply crash force: the object's position, at the lower of body height and object top."""
        return foliage.pos.with_z(min(body.z, foliage.pos.z + foliage.scale))