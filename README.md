# rallysim

Building blocks for an off-road rally simulation: vector and quaternion
maths, height-mapped terrain with foliage and road signs, vehicle type
definitions read from XML, an engine with an automatic gearbox, rigid-body
integration, collision with roadside objects and per-corner damage.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Modules

- `rallysim.vecmath` — immutable `Vec2`, `Vec3` and `Quat`; `Plane` and
  `Frustum` (built from a 4×4 matrix with `Frustum.from_matrix`);
  `ReferenceFrame`, a position and orientation with cached rotation
  matrices and `loc_to_world_point`, `loc_to_world_vector`,
  `world_to_loc_vector`; and `pull_toward`, which moves a number, vector or
  quaternion exponentially toward a target.
- `rallysim.util` — `MaterialTable` of `TerrainMaterial` entries (map
  colour, friction, resistance and `DirtInfo`), filled by the caller and
  queried by colour or name; path helpers `assemble_path` (resolves `..`
  and raises `ValueError` above the root) and `extract_path_from_filename`;
  `get_token`; `load_root_element` (raises `LoadError`); `copy_file`;
  `find_files`; `format_int`, `format_time` (`MM:SS.CC`) and
  `format_time_short` (`M:SS`).
- `rallysim.terrainconfig` — `parse_terrain_element` reads a `<terrain>`
  XML element into a validated `TerrainConfig` with its `FoliageBand` and
  `RoadSign` entries; `parse_blur_filter` reads the height blur filter.
- `rallysim.heightfield` — `blur_heightmap`, `strip_indices` for tile
  triangle strips, `sprite_quads` for crossed foliage quads and
  `shadow_mesh` for a shadow draped over the terrain; each mesh is a
  `Mesh` of interleaved vertices and indices.
- `rallysim.terrain` — `Terrain`, built from image maps (loaded with
  Pillow) or with `Terrain.from_element`; `get_height`, `contact_info`
  (surface point and normal), `foliage_level`, `tile_coords` and
  `terrain_color`.
- `rallysim.tiles` — `TileCache` builds `TerrainTile`s on demand, reuses
  the least recently used ones, places foliage and road signs as
  `SpriteBatch`es and answers `tile_at_pos`, `foliage_at_pos` and
  `visible_tiles`.
- `rallysim.engine` — `Engine` (power curve in radians per second, gear
  ratios, `horse_power`, `power_at_rps`) and `EngineInstance` (engine
  speed, automatic gear changes and output torque per `tick`).
- `rallysim.vehicletype` — `VehicleType.load` reads a `.vehicle` XML file
  into parts, clips, wheels, engine, control rates and drag, angular-drag
  and lift coefficients; `wheel_drive_label` names the drive layout.
- `rallysim.rigidbody` — `RigidBody`, a `ReferenceFrame` with mass that
  accumulates forces and torques and integrates them in `tick`.
- `rallysim.collision` — `VehicleClip`, `Foliage` and `Collision`, the
  world-space box of a part's clips with `check_contact`,
  `towards_contact` and `crash_point`.
- `rallysim.damage` — `Damage`, damage collected at the four `DamageSide`
  corners of a part.
- `rallysim.wheel` — `Wheel` state, `Controls` inputs and `VehiclePart`
  running state.

Textures and models are never loaded by the package itself:
`Terrain.from_element`, `parse_terrain_element` and `VehicleType.load` take
a loader callable that is given a path and returns whatever object the
caller uses. Models used to measure a vehicle must provide `extents()`.

## Examples

```python
from rallysim.engine import Engine, EngineInstance

engine = Engine()
engine.add_power_curve_point(1000, 50000)
engine.add_power_curve_point(6000, 150000)
engine.add_gear(0.05)
engine.add_gear(0.08)

running = EngineInstance(engine)
running.tick(0.004, 1.0, 10.0)
print(running.currentgear, running.out_torque)
```

```python
from rallysim.rigidbody import RigidBody
from rallysim.vecmath import Vec3

body = RigidBody(Vec3(0.0, 0.0, -9.81))
body.add_force(Vec3(0.0, 0.0, 9.81))  # cancels gravity for a unit mass
body.tick(0.01)
print(body.linvel)                    # Vec3(x=0.0, y=0.0, z=0.0)
```

```python
from rallysim.util import format_time, assemble_path

format_time(83.25)                                        # "01:23.25"
assemble_path("../tex/grass.png", "maps/a/level.level")   # "maps/tex/grass.png"
```

## What it does not do

The package supplies the pieces a vehicle simulation is made of, but not
the driver that joins them: there is no vehicle object that couples a
`VehicleType`, its `Wheel`s, `EngineInstance` and `RigidBody` against the
`Terrain`, and no simulation container that advances all bodies in fixed
time steps. It does not draw anything, play sound, run a race or provide a
command-line program.