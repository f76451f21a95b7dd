import xml.etree.ElementTree as ET

import pytest
from PIL import Image as PILImage

from rallysim.terrain import Image, Terrain
from rallysim.terrainconfig import TerrainConfig
from rallysim.util import LoadError


def gray(size_x, size_y, value=100):
    return Image(size_x, size_y, 1, bytes([value]) * (size_x * size_y))


def config(**kwargs):
    base = dict(tilesize=4, heightmap="h.png", colormap="c.png")
    base.update(kwargs)
    return TerrainConfig(**base)


def flat_terrain(**kwargs):
    return Terrain(config(**kwargs), gray(16, 16), Image(16, 16, 3, bytes(768)))


def test_flat_height_and_normal():
    terrain = flat_terrain()
    assert terrain.get_height(3.3, -7.1) == pytest.approx(100.0)
    info = terrain.contact_info(3.3, 7.1)
    assert info.pos.x == 3.3 and info.pos.y == 7.1
    assert info.pos.z == pytest.approx(100.0)
    assert info.normal.z == pytest.approx(1.0)


def test_ramp_interpolates_and_tilts_normal():
    data = bytes(4 * x for y in range(16) for x in range(16))
    terrain = Terrain(config(scale_hz=2.0), Image(16, 16, 1, data), Image(16, 16, 3, bytes(768)))
    assert terrain.get_height(5.5 * 2.0, 6.0) == pytest.approx(22.0)
    normal = terrain.contact_info(11.0, 6.0).normal
    assert normal.x < 0.0
    assert normal.y == pytest.approx(0.0)
    assert normal.length() == pytest.approx(1.0)


def test_tile_coords_floor_and_negative_quirk():
    terrain = flat_terrain()
    assert terrain.tile_coords(0.5, 5.0) == (0, 1)
    assert terrain.tile_coords(-0.5, 0.0) == (-1, 0)


def test_heightmap_errors():
    with pytest.raises(LoadError):
        Terrain(config(), Image(16, 8, 1, bytes(128)), gray(16, 16))
    with pytest.raises(LoadError):
        Terrain(config(), gray(8, 8), gray(8, 8))


def test_colormap_too_small():
    with pytest.raises(LoadError):
        Terrain(config(), gray(16, 16), gray(2, 2))


def test_foliage_map_size_mismatch_and_levels():
    with pytest.raises(LoadError):
        Terrain(config(), gray(16, 16), gray(16, 16), foliagemap=gray(8, 8))
    terrain = Terrain(config(), gray(16, 16), gray(16, 16), foliagemap=gray(16, 16, 255))
    assert terrain.foliage_level(4.2, 9.9) == pytest.approx(1.0)


def test_terrainmap_must_be_square():
    with pytest.raises(LoadError):
        Terrain(config(), gray(16, 16), gray(16, 16), terrainmap=Image(4, 2, 1, bytes(8)))


def test_indices_match_tilesize():
    terrain = flat_terrain()
    assert max(terrain.indices) == (terrain.tilesize + 1) ** 2 - 1
    assert terrain.tilecount * terrain.tilesize == terrain.totsize


def test_image_open_flips_rows(tmp_path):
    im = PILImage.new("L", (16, 16), 0)
    for x in range(16):
        im.putpixel((x, 0), 255)
    path = tmp_path / "h.png"
    im.save(path)
    loaded = Image.open(str(path))
    assert loaded.channels == 1
    assert loaded.data[:16] == bytes(16)
    assert loaded.data[-16:] == bytes([255]) * 16


def test_from_element_loads_files(tmp_path):
    PILImage.new("L", (16, 16), 100).save(tmp_path / "h.png")
    PILImage.new("RGB", (16, 16), (1, 2, 3)).save(tmp_path / "c.png")
    element = ET.fromstring('<terrain tilesize="4" heightmap="h.png" colormap="c.png"/>')
    terrain = Terrain.from_element(element, str(tmp_path / "level.xml"), lambda p: None, True, True)
    assert terrain.get_height(1.0, 1.0) == pytest.approx(100.0)
    assert terrain.colormap.pixel(0, 0) == (1, 2, 3)


def test_from_element_missing_file(tmp_path):
    element = ET.fromstring('<terrain tilesize="4" heightmap="nope.png" colormap="c.png"/>')
    with pytest.raises(LoadError):
        Terrain.from_element(element, str(tmp_path / "level.xml"), lambda p: None, True, True)