"""Height-mapped terrain: loading the maps of a level and sampling them."""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from PIL import Image as PILImage

from .heightfield import blur_heightmap, is_power_of_two, strip_indices
from .terrainconfig import TerrainConfig, TextureLoader, parse_terrain_element
from .util import LoadError, assemble_path
from .vecmath import Vec3

_CHANNELS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


@dataclass(frozen=True)
class Image:
    """Raw 8-bit pixels, bottom row first, channels interleaved."""

    width: int
    height: int
    channels: int
    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != self.width * self.height * self.channels:
            raise ValueError("image data does not match its dimensions")

    @classmethod
    def open(cls, path: str) -> Image:
        """Read an image file; rows are stored bottom to top."""
        try:
            with PILImage.open(path) as im:
                im.load()
                if im.mode == "P":
                    im = im.convert("RGBA" if "transparency" in im.info else "RGB")
                elif im.mode not in _CHANNELS:
                    bands = im.getbands()
                    if "A" in bands:
                        im = im.convert("RGBA")
                    elif len(bands) == 1:
                        im = im.convert("L")
                    else:
                        im = im.convert("RGB")
                raw = im.tobytes()
                channels = _CHANNELS[im.mode]
                width, height = im.size
        except OSError as exc:
            raise LoadError(f'{path}: {exc}') from exc
        stride = width * channels
        data = b"".join(raw[(height - 1 - y) * stride:(height - y) * stride] for y in range(height))
        return cls(width, height, channels, data)

    def pixel(self, x: int, y: int) -> Tuple[int, ...]:
        start = (y * self.width + x) * self.channels
        return tuple(self.data[start:start + self.channels])

    def piece(self, offx: int, offy: int, sizex: int, sizey: int) -> bytes:
        """The pixels of a rectangle, row by row."""
        c = self.channels
        return b"".join(
            self.data[((offy + row) * self.width + offx) * c:((offy + row) * self.width + offx + sizex) * c]
            for row in range(sizey)
        )


@dataclass(frozen=True)
class ContactInfo:
    """A point on the terrain surface and the surface normal there."""

    pos: Vec3
    normal: Vec3


def _load_map(name: str, filepath: str, what: str) -> Image:
    try:
        return Image.open(assemble_path(name, filepath))
    except (LoadError, ValueError) as exc:
        raise LoadError(f'Load failed: couldn\'t open {what} "{name}"') from exc


class Terrain:
    """A wrapping square height field with colour, terrain, road and foliage maps."""

    def __init__(
        self,
        config: TerrainConfig,
        heightmap: Image,
        colormap: Image,
        terrainmap: Optional[Image] = None,
        roadmap: Optional[Image] = None,
        foliagemap: Optional[Image] = None,
        hud_texture: Optional[Any] = None,
    ):
        config.validate()
        self.config = config
        self.scale_hz = config.scale_hz
        self.scale_vt = config.scale_vt
        self.scale_hz_inv = 1.0 / self.scale_hz
        self.scale_vt_inv = 1.0 / self.scale_vt
        self.scale_tile_inv = self.scale_hz_inv / config.tilesize

        size = heightmap.width
        if size != heightmap.height or not is_power_of_two(size) or size < 16:
            raise LoadError(
                "Load failed: heightmap not square, or not power of two dimension, or too small"
            )
        self.totsize = size
        self.totsizesq = size * size
        self.tilesize = min(config.tilesize, size)
        self.tilecount = size // self.tilesize
        self.totmask = size - 1
        self.heights: List[float] = blur_heightmap(
            heightmap.data, size, heightmap.channels, config.blurfilter, self.scale_vt
        )

        cmapsize = colormap.width
        if cmapsize != colormap.height or not is_power_of_two(cmapsize) or cmapsize < self.tilecount:
            raise LoadError(
                "Load failed: colormap not square, or not power of two dimension, or too small"
            )
        self.colormap = colormap
        self.cmaptilesize = cmapsize // self.tilecount
        self.cmaptotmask = cmapsize - 1

        if terrainmap is not None and terrainmap.width != terrainmap.height:
            raise LoadError("Load failed: terrainmap not square")
        self.terrainmap = terrainmap
        if roadmap is not None and roadmap.width != roadmap.height:
            raise LoadError("Load failed: roadmap not square")
        self.roadmap = roadmap

        self.foliage_bands = config.foliage_bands
        self.roadsigns = config.roadsigns
        for band in self.foliage_bands:
            band.trycount = int(band.density * self.totsizesq * self.scale_hz * self.scale_hz)

        if foliagemap is None:
            self.fmap: List[float] = [0.0] * self.totsizesq
        else:
            if foliagemap.width != size or foliagemap.height != size:
                raise LoadError("Load failed: foliage map size doesn't match heightmap")
            c = foliagemap.channels
            self.fmap = [foliagemap.data[i * c] / 255.0 for i in range(self.totsizesq)]

        self.hud_texture = hud_texture
        self.indices = strip_indices(self.tilesize)

    @classmethod
    def from_element(
        cls,
        element: ET.Element,
        filepath: str,
        texture_loader: TextureLoader,
        foliage: bool,
        roadsigns: bool,
    ) -> Terrain:
        """Build a terrain from a <terrain> element, loading maps relative to filepath."""
        config = parse_terrain_element(element, filepath, texture_loader, foliage, roadsigns)
        heightmap = _load_map(config.heightmap, filepath, "heightmap")
        colormap = _load_map(config.colormap, filepath, "colormap")
        terrainmap = _load_map(config.terrainmap, filepath, "terrainmap") if config.terrainmap else None
        roadmap = _load_map(config.roadmap, filepath, "roadmap") if config.roadmap else None
        foliagemap = _load_map(config.foliagemap, filepath, "foliage map") if config.foliagemap else None
        hud_texture = None
        if config.hudmap:
            try:
                hud_texture = texture_loader(assemble_path(config.hudmap, filepath))
            except ValueError:
                hud_texture = None
        return cls(config, heightmap, colormap, terrainmap, roadmap, foliagemap, hud_texture)

    def _sample(self, grid: List[float], x: float, y: float) -> Tuple[float, float, float]:
        """Bilinear value of a wrapping grid at world (x, y) and its world-space slopes."""
        fx = x * self.scale_hz_inv
        fy = y * self.scale_hz_inv
        x0 = math.floor(fx)
        y0 = math.floor(fy)
        tx = fx - x0
        ty = fy - y0
        mask, size = self.totmask, self.totsize

        def at(ix: int, iy: int) -> float:
            return grid[(iy & mask) * size + (ix & mask)]

        h00, h10 = at(x0, y0), at(x0 + 1, y0)
        h01, h11 = at(x0, y0 + 1), at(x0 + 1, y0 + 1)
        value = (h00 * (1 - tx) * (1 - ty) + h10 * tx * (1 - ty)
                 + h01 * (1 - tx) * ty + h11 * tx * ty)
        dx = ((h10 - h00) * (1 - ty) + (h11 - h01) * ty) * self.scale_hz_inv
        dy = ((h01 - h00) * (1 - tx) + (h11 - h10) * tx) * self.scale_hz_inv
        return value, dx, dy

    def get_height(self, x: float, y: float) -> float:
        return self._sample(self.heights, x, y)[0]

    def contact_info(self, x: float, y: float) -> ContactInfo:
        """Surface point below (x, y) and the upward surface normal."""
        height, dx, dy = self._sample(self.heights, x, y)
        return ContactInfo(Vec3(x, y, height), Vec3(-dx, -dy, 1.0).normalized())

    def foliage_level(self, x: float, y: float) -> float:
        return self._sample(self.fmap, x, y)[0]

    def tile_coords(self, x: float, y: float) -> Tuple[int, int]:
        """Tile holding world position (x, y)."""
        tilex = int(x * self.scale_tile_inv)
        tiley = int(y * self.scale_tile_inv)
        if x < 0.0:
            tilex -= 1
        if y < 0.0:
            tiley -= 1
        return tilex, tiley

    def terrain_color(self, x: float, y: float) -> Optional[Tuple[int, ...]]:
        """Terrain-map pixel under world (x, y), or None without a terrain map."""
        tmap = self.terrainmap
        if tmap is None:
            return None
        ratio = tmap.width / self.totsize
        px = math.floor(x * self.scale_hz_inv * ratio) % tmap.width
        py = math.floor(y * self.scale_hz_inv * ratio) % tmap.height
        return tmap.pixel(px, py)