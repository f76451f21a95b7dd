import pytest

from rallysim.terrain import Image, Terrain
from rallysim.terrainconfig import FoliageBand, RoadSign, TerrainConfig
from rallysim.tiles import TileCache
from rallysim.vecmath import Vec3

CMAP = Image(16, 16, 3, bytes(i % 256 for i in range(768)))


def make_terrain(bands=(), signs=()):
    cfg = TerrainConfig(
        tilesize=4, heightmap="h.png", colormap="c.png",
        foliage_bands=list(bands), roadsigns=list(signs),
    )
    return Terrain(cfg, Image(16, 16, 1, bytes([100]) * 256), CMAP)


def no_rigidity(name):
    return 0.0


def test_tile_vertices_and_bounds():
    terrain = make_terrain()
    tile = TileCache(terrain, no_rigidity).get_tile(0, 0)
    assert len(tile.vertices) == (terrain.tilesize + 1) ** 2
    assert tile.mins.z == pytest.approx(100.0)
    assert tile.maxs.z == pytest.approx(100.0)
    assert tile.vertices[-1].x == terrain.tilesize * terrain.scale_hz


def test_color_piece_comes_from_colormap():
    terrain = make_terrain()
    tile = TileCache(terrain, no_rigidity).get_tile(1, 0)
    cs = terrain.cmaptilesize
    assert len(tile.color) == cs * cs * 3
    assert tile.color[:cs * 3] == CMAP.data[cs * 3:2 * cs * 3]


def test_get_tile_returns_cached_tile():
    cache = TileCache(make_terrain(), no_rigidity)
    first = cache.get_tile(2, 3)
    first.lru_counter = 5
    assert cache.get_tile(2, 3) is first
    assert first.lru_counter == 0
    assert len(cache) == 1


def test_tile_at_pos_and_foliage_at_pos():
    terrain = make_terrain()
    cache = TileCache(terrain, no_rigidity)
    pos = Vec3(5.0, 1.0, 0.0)
    assert cache.tile_at_pos(pos) is None
    assert cache.foliage_at_pos(pos) is None
    tile = cache.get_tile(*terrain.tile_coords(pos.x, pos.y))
    assert cache.tile_at_pos(pos) is tile
    assert cache.foliage_at_pos(pos) == []


def test_visible_tiles_block_and_reuse():
    terrain = make_terrain()
    cache = TileCache(terrain, no_rigidity)
    step = terrain.tilesize * terrain.scale_hz
    visible = cache.visible_tiles(Vec3(0.5, 0.5, 0.0))
    assert len(visible) == 49
    assert {(t.posx, t.posy) for t in visible} == {
        (x, y) for x in range(-3, 4) for y in range(-3, 4)
    }
    assert len(cache.visible_tiles(Vec3(0.5, 0.5, 0.0))) == 49
    assert len(cache) == 49
    cache.visible_tiles(Vec3(100 * step + 0.5, 0.5, 0.0))
    assert len(cache) == 98
    third = cache.visible_tiles(Vec3(200 * step + 0.5, 0.5, 0.0))
    assert len(cache) < 3 * 49
    assert all(t.posx >= 197 for t in third)


def test_foliage_generation():
    band = FoliageBand(middle=0.0, range=0.5, density=0.01, sprite_name="tree.png", sprite_count=2)
    terrain = make_terrain(bands=[band])
    assert band.trycount > 0
    rigid = {"tree.png": 0.5}.get
    tile = TileCache(terrain, lambda name: rigid(name, 0.0)).get_tile(1, 1)
    batch = tile.foliage[0]
    assert len(batch.instances) == band.trycount
    assert batch.numelem == 6 * band.sprite_count * len(batch.instances)
    assert all(inst.rigidity == 0.5 for inst in tile.straight)
    assert len(tile.straight) == len(batch.instances)
    size = terrain.tilesize * terrain.scale_hz
    for inst in batch.instances:
        assert size <= inst.pos.x <= 2 * size
        assert size <= inst.pos.y <= 2 * size
        assert inst.pos.z == pytest.approx(100.0)


def test_foliage_is_deterministic():
    band = FoliageBand(middle=0.0, range=0.5, density=0.01, sprite_name="tree.png")
    terrain = make_terrain(bands=[band])
    a = TileCache(terrain, no_rigidity).get_tile(0, 0).foliage[0].instances
    b = TileCache(terrain, no_rigidity).get_tile(0, 0).foliage[0].instances
    assert [i.pos for i in a] == [i.pos for i in b]


def test_roadsign_only_on_its_tile():
    sign = RoadSign(sprite=object(), sprite_name="sign.png", scale=2.0, x=1.0, y=1.0)
    terrain = make_terrain(signs=[sign])
    cache = TileCache(terrain, lambda name: 1.0 if name == "sign.png" else 0.0)
    home = cache.get_tile(0, 0)
    away = cache.get_tile(2, 2)
    assert len(home.roadsignset) == 1 and len(away.roadsignset) == 1
    assert len(home.roadsignset[0].instances) == 1
    assert home.roadsignset[0].instances[0].scale == 2.0
    assert home.straight[0].rigidity == 1.0
    assert away.roadsignset[0].instances == []
    assert away.roadsignset[0].numelem == 0