import math
import xml.etree.ElementTree as ET

import pytest

from rallysim.terrainconfig import (
    DEFAULT_BLUR_FILTER,
    TerrainConfig,
    parse_blur_filter,
    parse_terrain_element,
)
from rallysim.util import LoadError

BASE = 'tilesize="16" heightmap="h.png" colormap="c.png"'


class _Loader:
    def __init__(self, result="tex"):
        self.paths = []
        self.result = result

    def __call__(self, path):
        self.paths.append(path)
        return self.result


def _parse(xml, loader=None, foliage=True, roadsigns=True):
    return parse_terrain_element(
        ET.fromstring(xml), "levels/a.level", loader or _Loader(), foliage, roadsigns
    )


def test_default_blur_filter():
    assert parse_blur_filter(ET.fromstring("<terrain/>")) == DEFAULT_BLUR_FILTER


def test_blur_filter_rows():
    xml = '<terrain><blurfilter><row data="1 2 3"/><row/><row data="0.5 x 7"/></blurfilter></terrain>'
    assert parse_blur_filter(ET.fromstring(xml)) == [[1.0, 2.0, 3.0], [0.5]]


def test_attributes_are_read():
    cfg = _parse(
        f'<terrain {BASE} horizontalscale="2.5" verticalscale="40" roadmap="r.png" '
        'terrainmap="t.png" hudmap="hud.png" foliagemap="f.png"/>'
    )
    assert cfg.tilesize == 16
    assert cfg.scale_hz == 2.5
    assert cfg.scale_vt == 40.0
    assert (cfg.roadmap, cfg.terrainmap, cfg.hudmap, cfg.foliagemap) == (
        "r.png", "t.png", "hud.png", "f.png"
    )


def test_missing_heightmap():
    with pytest.raises(LoadError, match="no heightmap"):
        _parse('<terrain tilesize="16" colormap="c.png"/>')


def test_missing_colormap():
    with pytest.raises(LoadError, match="no colormap"):
        _parse('<terrain tilesize="16" heightmap="h.png"/>')


@pytest.mark.parametrize("size", ["12", "2", "0"])
def test_bad_tilesize(size):
    with pytest.raises(LoadError, match="tile size"):
        _parse(f'<terrain tilesize="{size}" heightmap="h.png" colormap="c.png"/>')


@pytest.mark.parametrize("attrs", ['horizontalscale="0"', 'verticalscale="0"', 'horizontalscale="-1"'])
def test_bad_scale(attrs):
    with pytest.raises(LoadError, match="scale"):
        _parse(f"<terrain {BASE} {attrs}/>")


def test_validate_on_dataclass():
    cfg = TerrainConfig(tilesize=8, heightmap="h", colormap="c")
    cfg.validate()
    cfg.tilesize = 6
    with pytest.raises(LoadError):
        cfg.validate()


def test_foliage_disabled():
    cfg = _parse(f'<terrain {BASE} foliagemap="f.png"><foliageband/></terrain>', foliage=False)
    assert cfg.foliagemap == ""
    assert cfg.foliage_bands == []


def test_foliage_band_defaults_and_values():
    loader = _Loader()
    cfg = _parse(
        f'<terrain {BASE}><foliageband/>'
        '<foliageband middle="0.2" density="3" sprite="tree.png" spritecount="2"/></terrain>',
        loader,
    )
    first, second = cfg.foliage_bands
    assert (first.middle, first.range, first.density, first.scale, first.sprite_count) == (
        0.5, 0.5, 1.0, 1.0, 1
    )
    assert first.sprite is None
    assert (second.middle, second.density, second.sprite_count) == (0.2, 3.0, 2)
    assert second.sprite == "tex"
    assert loader.paths == ["levels/tree.png"]


def test_roadsign_locations():
    loader = _Loader()
    cfg = _parse(
        f'<terrain {BASE}><roadsign sprite="sign.png" scale="2">'
        '<location coords="10, 20" oridegrees="90"/>'
        '<location coords="5,6"/>'
        '<location coords="oops"/>'
        '</roadsign></terrain>',
        loader,
    )
    assert [(s.x, s.y) for s in cfg.roadsigns] == [(10.0, 20.0), (5.0, 6.0)]
    assert cfg.roadsigns[0].deg == pytest.approx(math.radians(90))
    assert cfg.roadsigns[1].deg == 0.0
    assert all(s.scale == 2.0 for s in cfg.roadsigns)
    assert cfg.roadsigns[0].sprite_name == "levels/sign.png"


def test_roadsign_without_texture_is_dropped():
    cfg = _parse(
        f'<terrain {BASE}><roadsign sprite="sign.png"><location coords="1,2"/></roadsign></terrain>',
        _Loader(result=None),
    )
    assert cfg.roadsigns == []


def test_roadsigns_disabled():
    cfg = _parse(
        f'<terrain {BASE}><roadsign sprite="sign.png"><location coords="1,2"/></roadsign></terrain>',
        roadsigns=False,
    )
    assert cfg.roadsigns == []