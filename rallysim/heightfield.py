"""Height-field processing and mesh building for terrain tiles, sprites and shadows."""

from __future__ import annotations

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

from .collision import Foliage
from .vecmath import Vec3

Vertex = Tuple[float, float, float, float, float]  # s, t, x, y, z

SPRITE_HALF_WIDTH = 1.0
SPRITE_HEIGHT = 2.0
SHADOW_LIFT = 0.05


class Mesh(NamedTuple):
    """Interleaved vertices (texture coordinates first) and element indices."""

    vertices: List[Vertex]
    indices: List[int]


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def blur_heightmap(
    pixels: Sequence[int],
    size: int,
    channels: int,
    blurfilter: Sequence[Sequence[float]],
    scale_vt: float,
) -> List[float]:
    """Convolve the first channel of a square, wrapping image and scale it vertically.

    The filter is centred on each pixel; the image size must be a power of two.
    """
    mask = size - 1
    taps = []
    row_off = (len(blurfilter) - 1) // 2
    for yi, row in enumerate(blurfilter):
        col_off = (len(row) - 1) // 2
        taps.extend((yi - row_off, xi - col_off, coef) for xi, coef in enumerate(row))

    heights = []
    for y in range(size):
        for x in range(size):
            accum = 0.0
            for dy, dx, coef in taps:
                index = ((y + dy) & mask) * size + ((x + dx) & mask)
                accum += pixels[index * channels] * coef
            heights.append(accum * scale_vt)
    return heights


def strip_indices(tilesize: int) -> List[int]:
    """Triangle-strip indices over a (tilesize+1)^2 vertex grid, rows joined by degenerate triangles."""
    side = tilesize + 1
    indices: List[int] = []
    index = 0
    for y in range(tilesize):
        upper = (y + 1) * side
        lower = y * side
        if y > 0:
            indices.append(upper)
        for x in range(side):
            indices.append(x + upper)
            index = x + lower
            indices.append(index)
        if y + 1 < tilesize:
            indices.append(index)
    return indices


def sprite_quads(instances: Iterable[Foliage], sprite_count: int) -> Mesh:
    """Crossed vertical quads for each instance, sprite_count of them spread over half a turn."""
    vertices: List[Vertex] = []
    indices: List[int] = []
    step = math.pi / sprite_count
    for inst in instances:
        anga = 0.0
        while anga < math.pi - 0.01:
            ang = inst.ang + anga
            c = math.cos(ang) * SPRITE_HALF_WIDTH
            s = math.sin(ang) * SPRITE_HALF_WIDTH
            start = len(vertices)
            corners = (
                (1.0, 0.0, Vec3(c, s, 0.0)),
                (0.0, 0.0, Vec3(-c, -s, 0.0)),
                (0.0, 1.0, Vec3(-c, -s, SPRITE_HEIGHT)),
                (1.0, 1.0, Vec3(c, s, SPRITE_HEIGHT)),
            )
            for st_s, st_t, offset in corners:
                p = inst.pos + offset * inst.scale
                vertices.append((st_s, st_t, p.x, p.y, p.z))
            indices.extend(start + i for i in (0, 1, 2, 0, 2, 3))
            anga += step
    return Mesh(vertices, indices)


def shadow_mesh(
    heights: Sequence[float],
    size: int,
    scale_hz: float,
    x: float,
    y: float,
    scale: float,
    angle: float,
) -> Mesh:
    """A strip of terrain under a shadow of the given world size and rotation, centred on (x, y).

    Texture coordinates map the shadow square onto [0, 1]; vertices sit slightly above the ground.
    """
    x /= scale_hz
    y /= scale_hz
    half = scale * 0.5

    def low(v: float) -> int:
        return int(v) - 1 if v < 0.0 else int(v)

    def high(v: float, extra: int) -> int:
        return int(v) + extra - (1 if v < 0.0 else 0)

    miny = low(y - half)
    maxy = high(y + half, 1)
    minx = low(x - half)
    maxx = high(x + half, 2)

    texscale = 0.5 / half
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    mask = size - 1

    vertices: List[Vertex] = []
    for y2 in range(miny, maxy + 1):
        row = (y2 & mask) * size
        for x2 in range(minx, maxx):
            px = (x2 - x) * texscale
            py = (y2 - y) * texscale
            u = cos_a * px - sin_a * py + 0.5
            v = sin_a * px + cos_a * py + 0.5
            vertices.append((u, v, x2 * scale_hz, y2 * scale_hz, heights[row + (x2 & mask)] + SHADOW_LIFT))

    stride = maxx - minx
    indices: List[int] = []
    for y2 in range(maxy - miny):
        for x2 in range(stride):
            indices.append((y2 + 1) * stride + x2)
            indices.append(y2 * stride + x2)
        indices.extend((0, 0))  # restart strip
    return Mesh(vertices, indices)