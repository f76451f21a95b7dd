"""Reading the <terrain> element of a level file."""

from __future__ import annotations

import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Optional

from .util import LoadError, assemble_path

TextureLoader = Callable[[str], Optional[Any]]

DEFAULT_BLUR_FILTER = [
    [0.03, 0.12, 0.03],
    [0.12, 0.40, 0.12],
    [0.03, 0.12, 0.03],
]

_FLOAT = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_INT = re.compile(r"\s*[-+]?\d+")


def _atof(text: str) -> float:
    match = _FLOAT.match(text)
    return float(match.group(0)) if match else 0.0


def _atoi(text: str) -> int:
    match = _INT.match(text)
    return int(match.group(0)) if match else 0


def _scan_floats(text: str, count: int) -> Optional[List[float]]:
    """Read count comma-separated numbers from the start of text, or None."""
    parts = text.split(",")
    if len(parts) < count:
        return None
    values = []
    for part in parts[:count]:
        match = _FLOAT.match(part)
        if match is None:
            return None
        values.append(float(match.group(0)))
    return values


@dataclass
class FoliageBand:
    """A kind of foliage sprite spread over a band of the foliage map."""

    middle: float = 0.5
    range: float = 0.5
    density: float = 1.0
    scale: float = 1.0
    sprite: Optional[Any] = None
    sprite_name: str = ""
    sprite_count: int = 1
    trycount: int = 0


@dataclass
class RoadSign:
    """A road-sign sprite placed at a map position."""

    sprite: Optional[Any] = None
    sprite_name: str = ""
    scale: float = 1.0
    sprite_count: int = 1
    x: float = 0.0
    y: float = 0.0
    deg: float = 0.0


@dataclass
class TerrainConfig:
    """Settings read from a <terrain> element, before any image is loaded."""

    tilesize: int = 0
    scale_hz: float = 1.0
    scale_vt: float = 1.0
    heightmap: str = ""
    colormap: str = ""
    terrainmap: str = ""
    roadmap: str = ""
    foliagemap: str = ""
    hudmap: str = ""
    blurfilter: List[List[float]] = field(default_factory=lambda: [list(r) for r in DEFAULT_BLUR_FILTER])
    foliage_bands: List[FoliageBand] = field(default_factory=list)
    roadsigns: List[RoadSign] = field(default_factory=list)

    def validate(self) -> None:
        """Raise LoadError if the settings cannot describe a terrain."""
        if not self.heightmap:
            raise LoadError("Load failed: terrain has no heightmap")
        if not self.colormap:
            raise LoadError("Load failed: terrain has no colormap")
        if self.tilesize != (self.tilesize & -self.tilesize) or self.tilesize < 4:
            raise LoadError("Load failed: tile size not power of two dimension, or too small")
        if self.scale_hz <= 0.0 or self.scale_vt == 0.0:
            raise LoadError("Load failed: invalid scale value")


def parse_blur_filter(element: ET.Element) -> List[List[float]]:
    """Rows of the <blurfilter> child, or the default 3x3 filter when there is none."""
    node = element.find("blurfilter")
    if node is None:
        return [list(row) for row in DEFAULT_BLUR_FILTER]
    rows = []
    for row_el in node.findall("row"):
        data = row_el.get("data")
        if data is None:
            continue
        row = []
        for word in data.split():
            try:
                row.append(float(word))
            except ValueError:
                break
        rows.append(row)
    return rows


def _load_sprite(name: str, filepath: str, texture_loader: TextureLoader):
    try:
        path = assemble_path(name, filepath)
    except ValueError:
        return None, ""
    return texture_loader(path), path


def _parse_roadsigns(walk: ET.Element, filepath: str, texture_loader: TextureLoader) -> List[RoadSign]:
    sign = RoadSign()
    val = walk.get("sprite")
    if val is not None:
        sign.sprite, sign.sprite_name = _load_sprite(val, filepath, texture_loader)
    val = walk.get("scale")
    if val is not None:
        sign.scale = _atof(val)
    val = walk.get("spritecount")
    if val is not None:
        sign.sprite_count = int(_atof(val))

    signs = []
    for location in walk:
        if location.tag != "location":
            continue
        deg = 0.0
        val = location.get("oridegrees")
        if val is not None:
            deg = math.radians(_atof(val))
        val = location.get("coords")
        if val is None:
            continue
        coords = _scan_floats(val, 2)
        if coords is None:
            continue
        sign = replace(sign, x=coords[0], y=coords[1], deg=deg)
        if sign.sprite is not None:
            signs.append(sign)
    return signs


def _parse_foliage_band(walk: ET.Element, filepath: str, texture_loader: TextureLoader) -> FoliageBand:
    band = FoliageBand()
    for attr in ("middle", "range", "density", "scale"):
        val = walk.get(attr)
        if val is not None:
            setattr(band, attr, _atof(val))
    val = walk.get("sprite")
    if val is not None:
        band.sprite, band.sprite_name = _load_sprite(val, filepath, texture_loader)
    val = walk.get("spritecount")
    if val is not None:
        band.sprite_count = _atoi(val)
    return band


def parse_terrain_element(
    element: ET.Element,
    filepath: str,
    texture_loader: TextureLoader,
    foliage: bool,
    roadsigns: bool,
) -> TerrainConfig:
    """Read and validate a <terrain> element; sprites are loaded through texture_loader."""
    cfg = TerrainConfig()

    val = element.get("tilesize")
    if val is not None:
        cfg.tilesize = _atoi(val)
    val = element.get("horizontalscale")
    if val is not None:
        cfg.scale_hz = _atof(val)
    val = element.get("verticalscale")
    if val is not None:
        cfg.scale_vt = _atof(val)

    for attr in ("heightmap", "colormap", "terrainmap", "roadmap", "hudmap"):
        val = element.get(attr)
        if val is not None:
            setattr(cfg, attr, val)
    val = element.get("foliagemap")
    if val is not None and foliage:
        cfg.foliagemap = val

    cfg.blurfilter = parse_blur_filter(element)

    for walk in element:
        if walk.tag == "roadsign" and roadsigns:
            cfg.roadsigns.extend(_parse_roadsigns(walk, filepath, texture_loader))
        elif walk.tag == "foliageband" and foliage:
            cfg.foliage_bands.append(_parse_foliage_band(walk, filepath, texture_loader))

    cfg.validate()
    return cfg