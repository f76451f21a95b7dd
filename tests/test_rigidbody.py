import pytest

from rallysim.rigidbody import RigidBody
from rallysim.vecmath import Vec3


def make_body(gravity=None):
    body = RigidBody(gravity if gravity is not None else Vec3.zero())
    body.update_matrices()
    return body


def assert_vec(v, x, y, z):
    assert v.x == pytest.approx(x, abs=1e-9)
    assert v.y == pytest.approx(y, abs=1e-9)
    assert v.z == pytest.approx(z, abs=1e-9)


def test_defaults_are_unit_mass():
    body = make_body()
    assert body.mass == 1.0
    assert body.mass_inv == 1.0
    assert_vec(body.angmass, 1.0, 1.0, 1.0)
    assert_vec(body.linvel, 0.0, 0.0, 0.0)


def test_set_mass_cuboid_inverses_are_consistent():
    body = make_body()
    body.set_mass_cuboid(4.0, Vec3(1.0, 2.0, 3.0))
    assert body.mass == 4.0
    assert body.mass * body.mass_inv == pytest.approx(1.0)
    for a, inv in zip(body.angmass, body.angmass_inv):
        assert a * inv == pytest.approx(1.0)


def test_set_mass_cuboid_symmetric_cube_has_equal_axes():
    body = make_body()
    body.set_mass_cuboid(3.0, Vec3(2.0, 2.0, 2.0))
    assert body.angmass.x == pytest.approx(body.angmass.y)
    assert body.angmass.y == pytest.approx(body.angmass.z)


@pytest.mark.parametrize("rad", [Vec3(0.0, 1.0, 1.0), Vec3(1.0, -1.0, 1.0), Vec3(1.0, 1.0, 0.0)])
def test_set_mass_cuboid_ignores_bad_dimensions(rad):
    body = make_body()
    body.set_mass_cuboid(5.0, rad)
    assert body.mass == 1.0
    assert_vec(body.angmass, 1.0, 1.0, 1.0)


def test_tick_applies_gravity_and_clears_accumulators():
    gravity = Vec3(0.0, 0.0, -9.81)
    body = make_body(gravity)
    body.add_force(Vec3(2.0, 0.0, 0.0))
    body.add_torque(Vec3(0.0, 0.0, 1.0))
    body.tick(0.5)
    assert body.linvel.x == pytest.approx(2.0 * 0.5)
    assert body.linvel.z == pytest.approx(-9.81 * 0.5)
    assert body.position.x == pytest.approx(body.linvel.x * 0.5)
    assert_vec(body.accum_force, 0.0, 0.0, 0.0)
    assert_vec(body.accum_torque, 0.0, 0.0, 0.0)


def test_force_at_centre_makes_no_torque():
    body = make_body()
    body.position = Vec3(3.0, -1.0, 2.0)
    body.update_matrices()
    body.add_force_at_point(Vec3(1.0, 2.0, 3.0), Vec3(3.0, -1.0, 2.0))
    assert_vec(body.accum_force, 1.0, 2.0, 3.0)
    assert_vec(body.accum_torque, 0.0, 0.0, 0.0)


def test_force_parallel_to_offset_makes_no_torque():
    body = make_body()
    body.add_force_at_point(Vec3(0.0, 0.0, 5.0), Vec3(0.0, 0.0, 2.0))
    assert_vec(body.accum_torque, 0.0, 0.0, 0.0)


def test_off_centre_force_torque_is_perpendicular():
    body = make_body()
    force = Vec3(0.0, 1.0, 0.0)
    point = Vec3(2.0, 0.0, 0.0)
    body.add_force_at_point(force, point)
    torque = body.accum_torque
    assert torque.dot(force) == pytest.approx(0.0)
    assert torque.dot(point) == pytest.approx(0.0)
    assert torque.length() > 0.0


def test_local_force_matches_world_force_at_identity():
    body = make_body()
    body.add_loc_force(Vec3(1.0, 2.0, 3.0))
    assert_vec(body.accum_force, 1.0, 2.0, 3.0)


def test_local_force_at_local_point_matches_world_versions_at_identity():
    a = make_body()
    b = make_body()
    a.add_loc_force_at_loc_point(Vec3(0.0, 1.0, 0.0), Vec3(1.0, 0.0, 0.0))
    b.add_force_at_point(Vec3(0.0, 1.0, 0.0), Vec3(1.0, 0.0, 0.0))
    for u, v in zip(a.accum_torque, b.accum_torque):
        assert u == pytest.approx(v)


def test_velocity_at_centre_is_linear_velocity():
    body = make_body()
    body.linvel = Vec3(1.0, 2.0, 3.0)
    body.angvel = Vec3(0.0, 0.0, 4.0)
    v = body.linear_vel_at_point(body.position)
    assert_vec(v, 1.0, 2.0, 3.0)


def test_velocity_at_loc_point_matches_world_point_at_identity():
    body = make_body()
    body.angvel = Vec3(0.0, 0.0, 1.0)
    p = Vec3(1.0, 0.0, 0.0)
    a = body.linear_vel_at_loc_point(p)
    b = body.linear_vel_at_point(p)
    for u, v in zip(a, b):
        assert u == pytest.approx(v)
    assert a.dot(p) == pytest.approx(0.0)


def test_spinning_body_keeps_unit_orientation():
    body = make_body()
    body.angvel = Vec3(0.0, 0.0, 2.0)
    for _ in range(10):
        body.tick(0.01)
    ori = body.orientation
    assert ori.dot(ori) == pytest.approx(1.0, abs=1e-6)
    assert abs(ori.dot(type(ori).identity())) < 1.0