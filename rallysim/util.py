"""File, path, formatting and terrain-material helpers."""

from __future__ import annotations

import logging
import os
import re
import shutil
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

log = logging.getLogger(__name__)

UNKNOWN = "Unknown"

RGB = Tuple[int, int, int]


class LoadError(Exception):
    """Raised when a data file cannot be loaded."""


@dataclass(frozen=True)
class DirtInfo:
    """Parameters of the dirt particles a surface throws up."""

    start_size: float
    decay: float
    end_size: float


@dataclass(frozen=True)
class TerrainMaterial:
    """A terrain-map surface: its map colour and its physical properties."""

    name: str
    color: RGB
    friction: float
    resistance: float
    dirt: DirtInfo


_UNKNOWN_DIRT = DirtInfo(0.10, 0.50, 6.00)


class MaterialTable:
    """Lookup of terrain materials by map colour or by name."""

    def __init__(self, materials: Iterable[TerrainMaterial] = ()):
        self._materials = list(materials)
        self._by_name = {m.name: m for m in self._materials}

    def __iter__(self):
        return iter(self._materials)

    def __len__(self) -> int:
        return len(self._materials)

    def road_surface(self, color: RGB) -> str:
        """Name of the first material whose colour matches, or 'Unknown'."""
        color = tuple(color)
        for material in self._materials:
            if material.color == color:
                return material.name
        return UNKNOWN

    def friction(self, name: str) -> float:
        material = self._by_name.get(name)
        return material.friction if material else 1.00

    def resistance(self, name: str) -> float:
        material = self._by_name.get(name)
        return material.resistance if material else 0.00

    def dirt_info(self, name: str) -> DirtInfo:
        material = self._by_name.get(name)
        return material.dirt if material else _UNKNOWN_DIRT

    def describe(self, name: str) -> str:
        """Debug string: name, friction and resistance."""
        material = self._by_name.get(name)
        if material is None:
            return "Unknown 1.00 0.00"
        return f"{material.name} {material.friction:.2f} {material.resistance:.2f}"

    def color(self, name: str) -> RGB:
        material = self._by_name.get(name)
        return material.color if material else (0, 0, 0)


def get_token(line: str) -> Optional[Tuple[str, str]]:
    """Split a line into the token before the first blank and the rest.

    Leading blanks are skipped and one trailing newline is removed from the
    value. Returns None when the line holds no blank to split on.
    """
    stripped = line.lstrip(" \t")
    if stripped:
        line = stripped
    match = re.search(r"[ \t]", line)
    if match is None:
        return None
    split = match.start()
    value = line[split + 1:]
    if value.endswith("\n"):
        value = value[:-1]
    return line[:split], value


def extract_path_from_filename(filename: str) -> str:
    """Directory part of a path, with its trailing slash; empty if there is none."""
    found = filename.rfind("/")
    if found < 0:
        return ""
    return filename[:found + 1]


def assemble_path(relativefile: str, parentfile: str) -> str:
    """Resolve a file named relative to another file, collapsing '..' parts.

    A leading slash makes the file relative to the root instead. Raises
    ValueError when the path climbs above the root.
    """
    if relativefile.startswith("/"):
        totalpath = relativefile[1:]
    else:
        totalpath = extract_path_from_filename(parentfile) + relativefile

    original = totalpath
    while True:
        found = totalpath.find("../")
        if found < 0:
            return totalpath
        if found < 2:
            raise ValueError(f'path above local root: "{original}"')
        crunch = totalpath[:found - 1].rfind("/")
        if crunch < 0:
            crunch = 0
            found += 1
        totalpath = totalpath[:crunch] + totalpath[found + 2:]


def load_root_element(filename: str, root_name: str) -> ET.Element:
    """Parse an XML file and return its root element, which must be named root_name."""
    try:
        tree = ET.parse(filename)
    except OSError as exc:
        raise LoadError(f"Load failed: {filename}: {exc}") from exc
    except ET.ParseError as exc:
        raise LoadError(f"Load failed: XML error in {filename}: {exc}") from exc
    root = tree.getroot()
    if root.tag != root_name:
        raise LoadError(
            f'Load failed: {filename}: expected root element "{root_name}", found "{root.tag}"'
        )
    return root


def copy_file(file_from: str, file_to: str) -> None:
    """Copy a file, creating the destination directory if needed."""
    log.info('Copying "%s" to "%s"', file_from, file_to)
    directory = extract_path_from_filename(file_to)
    if directory:
        os.makedirs(directory, exist_ok=True)
    shutil.copyfile(file_from, file_to)


def find_files(basedir: str, extension: str) -> list[str]:
    """All files below basedir, recursively, whose names end with extension."""
    try:
        names = sorted(os.listdir(basedir))
    except OSError as exc:
        log.error("Error enumerating files: %s", exc)
        return []
    results: list[str] = []
    for name in names:
        path = f"{basedir}/{name}"
        if os.path.isdir(path):
            results.extend(find_files(path, extension))
        elif path.endswith(extension):
            results.append(path)
    return results


def format_int(value: int, width: Optional[int] = None) -> str:
    """Decimal text of value; with a width, the last width digits, zero padded."""
    if width is None:
        return str(int(value))
    if value < 0:
        raise ValueError("fixed-width formatting needs a non-negative value")
    if width <= 0:
        return ""
    return str(int(value) % 10 ** width).zfill(width)


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS.CC."""
    minutes = int(seconds / 60.0)
    seconds -= minutes * 60
    secs = int(seconds)
    seconds -= secs
    centis = int(seconds * 100.0)
    return f"{format_int(minutes, 2)}:{format_int(secs, 2)}.{format_int(centis, 2)}"


def format_time_short(seconds: float) -> str:
    """Format seconds as M:SS."""
    minutes = int(seconds / 60.0)
    seconds -= minutes * 60
    secs = int(seconds)
    return f"{format_int(minutes)}:{format_int(secs, 2)}"