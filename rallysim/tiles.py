"""Cache of terrain tiles with their vertices, colour pieces, foliage and road signs."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .collision import Foliage
from .heightfield import Mesh, sprite_quads
from .terrain import Terrain
from .vecmath import Vec3

RigidityLookup = Callable[[str], float]

VIEW_BEHIND = 3
VIEW_AHEAD = 4
MIN_UNUSED_TILES = 10


@dataclass
class SpriteBatch:
    """Sprite instances of one kind on a tile and the mesh that draws them."""

    instances: List[Foliage] = field(default_factory=list)
    mesh: Mesh = field(default_factory=lambda: Mesh([], []))

    @property
    def numelem(self) -> int:
        return len(self.mesh.indices)


@dataclass
class TerrainTile:
    """One square piece of terrain ready for drawing and collision queries."""

    posx: int
    posy: int
    mins: Vec3
    maxs: Vec3
    vertices: List[Vec3]
    color: bytes
    lru_counter: int = 0
    foliage: List[SpriteBatch] = field(default_factory=list)
    roadsignset: List[SpriteBatch] = field(default_factory=list)
    straight: List[Foliage] = field(default_factory=list)


class TileCache:
    """Builds tiles on demand and reuses the least recently used ones."""

    def __init__(self, terrain: Terrain, rigidity: RigidityLookup):
        self.terrain = terrain
        self.rigidity = rigidity
        self.tiles: List[TerrainTile] = []

    def __len__(self) -> int:
        return len(self.tiles)

    def get_tile(self, tilex: int, tiley: int) -> TerrainTile:
        best_lru = 0
        best_index: Optional[int] = None
        unused = 0
        for index, tile in enumerate(self.tiles):
            if tile.posx == tilex and tile.posy == tiley:
                tile.lru_counter = 0
                return tile
            if best_lru < tile.lru_counter:
                best_lru = tile.lru_counter
                best_index = index
            if tile.lru_counter > 1:
                unused += 1

        tile = self._build(tilex, tiley)
        if unused < MIN_UNUSED_TILES or best_lru <= 1 or best_index is None:
            self.tiles.append(tile)
        else:
            self.tiles[best_index] = tile
        return tile

    def tile_at_pos(self, pos: Vec3) -> Optional[TerrainTile]:
        tilex, tiley = self.terrain.tile_coords(pos.x, pos.y)
        for tile in self.tiles:
            if tile.posx == tilex and tile.posy == tiley:
                return tile
        return None

    def foliage_at_pos(self, pos: Vec3) -> Optional[List[Foliage]]:
        """Solid world objects on the tile at pos, or None if that tile is not built."""
        tile = self.tile_at_pos(pos)
        return tile.straight if tile is not None else None

    def visible_tiles(self, campos: Vec3) -> List[TerrainTile]:
        """Age every tile, then fetch the block of tiles around the camera."""
        for tile in self.tiles:
            tile.lru_counter += 1
        ctx, cty = self.terrain.tile_coords(campos.x, campos.y)
        return [
            self.get_tile(tx, ty)
            for ty in range(cty - VIEW_BEHIND, cty + VIEW_AHEAD)
            for tx in range(ctx - VIEW_BEHIND, ctx + VIEW_AHEAD)
        ]

    def _build(self, tilex: int, tiley: int) -> TerrainTile:
        t = self.terrain
        ts, s = t.tilesize, t.scale_hz
        size, mask = t.totsize, t.totmask

        vertices = []
        for y in range(ts + 1):
            posy = tiley * ts + y
            row = (posy & mask) * size
            for x in range(ts + 1):
                posx = tilex * ts + x
                vertices.append(Vec3(posx * s, posy * s, t.heights[row + (posx & mask)]))
        low = min(1e9, min(v.z for v in vertices))
        high = max(-1e9, max(v.z for v in vertices))

        cs = t.cmaptilesize
        color = t.colormap.piece(
            (tilex * cs) & t.cmaptotmask, (tiley * cs) & t.cmaptotmask, cs, cs
        )

        tile = TerrainTile(
            posx=tilex,
            posy=tiley,
            mins=Vec3(tilex * s, tiley * s, low),
            maxs=Vec3((tilex + 1) * s, (tiley + 1) * s, high),
            vertices=vertices,
            color=color,
        )
        self._add_foliage(tile)
        self._add_roadsigns(tile)
        return tile

    def _add_foliage(self, tile: TerrainTile) -> None:
        t = self.terrain
        ts, s = t.tilesize, t.scale_hz
        rng = random.Random(1)
        for band in t.foliage_bands:
            instances = []
            for _ in range(band.trycount):
                fx = (tile.posx * ts + rng.random() * ts) * s
                fy = (tile.posy * ts + rng.random() * ts) * s
                fol = t.foliage_level(fx, fy)
                if band.range:
                    deviation = abs((fol - band.middle) / band.range)
                else:
                    deviation = 0.0 if fol == band.middle else math.inf
                if 1.0 - deviation < rng.random():
                    continue
                ang = rng.random() * math.pi * 2.0
                spread = rng.random() * rng.random() + 0.5
                inst = Foliage(
                    pos=Vec3(fx, fy, t.get_height(fx, fy)),
                    ang=ang,
                    scale=(band.scale + fol * 0.5) * spread * 1.4,
                )
                rigidity = self.rigidity(band.sprite_name)
                if rigidity != 0.0:
                    inst.rigidity = rigidity
                    tile.straight.append(inst)
                instances.append(inst)
            tile.foliage.append(SpriteBatch(instances, sprite_quads(instances, band.sprite_count)))

    def _add_roadsigns(self, tile: TerrainTile) -> None:
        t = self.terrain
        ts, s = t.tilesize, t.scale_hz
        minx, miny = tile.posx * ts * s, tile.posy * ts * s
        maxx, maxy = (tile.posx * ts + ts) * s, (tile.posy * ts + ts) * s
        for sign in t.roadsigns:
            fx, fy = sign.x * s, sign.y * s
            if not (minx <= fx <= maxx and miny <= fy <= maxy):
                tile.roadsignset.append(SpriteBatch())
                continue
            inst = Foliage(pos=Vec3(fx, fy, t.get_height(fx, fy)), ang=sign.deg, scale=sign.scale)
            rigidity = self.rigidity(sign.sprite_name)
            if rigidity != 0.0:
                inst.rigidity = rigidity
                tile.straight.append(inst)
            tile.roadsignset.append(SpriteBatch([inst], sprite_quads([inst], 1)))