"""Rigid bodies that integrate accumulated forces and torques over time."""

from __future__ import annotations

from .vecmath import Quat, ReferenceFrame, Vec3


def _component_mul(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(a.x * b.x, a.y * b.y, a.z * b.z)


def _quat_mul(a: Quat, b: Quat) -> Quat:
    """Hamilton product a * b."""
    return Quat(
        a.w * b.w - a.x * b.x - a.y * b.y - a.z * b.z,
        a.w * b.x + a.x * b.w + a.y * b.z - a.z * b.y,
        a.w * b.y + a.y * b.w + a.z * b.x - a.x * b.z,
        a.w * b.z + a.z * b.w + a.x * b.y - a.y * b.x,
    )


class RigidBody(ReferenceFrame):
    """A reference frame with mass that moves under gravity, forces and torques."""

    def __init__(self, gravity: Vec3):
        super().__init__()
        self.gravity = gravity
        self.mass = 1.0
        self.mass_inv = 1.0
        self.angmass = Vec3(1.0, 1.0, 1.0)
        self.angmass_inv = Vec3(1.0, 1.0, 1.0)
        self.linvel = Vec3.zero()
        self.angvel = Vec3.zero()
        self.accum_force = Vec3.zero()
        self.accum_torque = Vec3.zero()

    def set_mass_cuboid(self, mass: float, rad: Vec3) -> None:
        """Set the mass and derive the angular mass of a cuboid with half sizes rad.

        Nothing changes when the current mass or any dimension is not positive.
        """
        if self.mass <= 0.0 or rad.x <= 0.0 or rad.y <= 0.0 or rad.z <= 0.0:
            return
        self.mass = mass
        self.mass_inv = 1.0 / mass
        self.angmass = Vec3(rad.y * rad.z, rad.z * rad.x, rad.x * rad.y) * (mass * 0.4)
        self.angmass_inv = Vec3(1.0 / self.angmass.x, 1.0 / self.angmass.y, 1.0 / self.angmass.z)

    def add_force(self, force: Vec3) -> None:
        """Add a world-space force through the centre of mass."""
        self.accum_force = self.accum_force + force

    def add_loc_force(self, force: Vec3) -> None:
        """Add a local-space force through the centre of mass."""
        self.add_force(self.loc_to_world_vector(force))

    def add_force_at_point(self, force: Vec3, point: Vec3) -> None:
        """Add a world-space force applied at a world-space point."""
        self.accum_force = self.accum_force + force
        offset = point - self.position
        self.accum_torque = self.accum_torque + force.cross(offset)

    def add_loc_force_at_point(self, force: Vec3, point: Vec3) -> None:
        """Add a local-space force applied at a world-space point."""
        self.add_force_at_point(self.loc_to_world_vector(force), point)

    def add_force_at_loc_point(self, force: Vec3, point: Vec3) -> None:
        """Add a world-space force applied at a local-space point."""
        self.add_force_at_point(force, self.loc_to_world_point(point))

    def add_loc_force_at_loc_point(self, force: Vec3, point: Vec3) -> None:
        """Add a local-space force applied at a local-space point."""
        self.add_force_at_point(self.loc_to_world_vector(force), self.loc_to_world_point(point))

    def add_torque(self, torque: Vec3) -> None:
        """Add a world-space torque."""
        self.accum_torque = self.accum_torque + torque

    def add_loc_torque(self, torque: Vec3) -> None:
        """Add a local-space torque."""
        self.add_torque(self.loc_to_world_vector(torque))

    def linear_vel_at_point(self, point: Vec3) -> Vec3:
        """Velocity of a world-space point fixed to the body."""
        offset = point - self.position
        return self.linvel + offset.cross(self.angvel)

    def linear_vel_at_loc_point(self, point: Vec3) -> Vec3:
        """Velocity of a local-space point fixed to the body."""
        return self.linear_vel_at_point(self.loc_to_world_point(point))

    def tick(self, delta: float) -> None:
        """Integrate the accumulated force and torque over delta seconds, then clear them."""
        self.linvel = self.linvel + (self.accum_force * self.mass_inv + self.gravity) * delta
        self.position = self.position + self.linvel * delta

        ang_accel = _component_mul(self.accum_torque, self.angmass_inv)
        self.angvel = self.angvel + ang_accel * delta

        angdelta = Quat.from_three_axis_angle(self.angvel * delta)
        self.orientation = _quat_mul(self.orientation, angdelta)

        self.accum_force = Vec3.zero()
        self.accum_torque = Vec3.zero()
        self.update_matrices()