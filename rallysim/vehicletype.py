"""Vehicle type definitions read from .vehicle XML files."""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from .collision import ClipType, VehicleClip
from .engine import Engine
from .util import LoadError, assemble_path, load_root_element
from .vecmath import Quat, ReferenceFrame, Vec2, Vec3

log = logging.getLogger(__name__)

ModelLoader = Callable[[str], Optional[Any]]

# Cars come out smaller than they should; reference areas are enlarged by this.
DRAG_HACK_AREA = 1.777777
AIR_DENSITY = 1.2

_FLOAT = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_COMMA = re.compile(r"\s*,")


def _atof(text: str) -> float:
    match = _FLOAT.match(text)
    return float(match.group(0)) if match else 0.0


def _scan(text: str, count: int) -> List[float]:
    """Read up to count comma-separated numbers, stopping at the first that does not parse."""
    values: List[float] = []
    rest = text
    for i in range(count):
        if i:
            comma = _COMMA.match(rest)
            if comma is None:
                break
            rest = rest[comma.end():]
        match = _FLOAT.match(rest)
        if match is None:
            break
        values.append(float(match.group(0)))
        rest = rest[match.end():]
    return values


def _scan_vec3(text: str, base: Vec3) -> Vec3:
    values = _scan(text, 3)
    return Vec3(*(values + list(base)[len(values):]))


def _scan_quat(text: str, base: Quat) -> Quat:
    values = _scan(text, 4)
    return Quat(*(values + list(base)[len(values):]))


class CoreType(Enum):
    """Kind of vehicle, which selects its control behaviour."""

    CAR = "car"
    TANK = "tank"
    HELICOPTER = "helicopter"
    PLANE = "plane"
    HOVERCRAFT = "hovercraft"


@dataclass
class TypeWheel:
    """A wheel of a vehicle type, in part-local coordinates."""

    pt: Vec3 = field(default_factory=Vec3.zero)
    radius: float = 1.0
    drive: float = 0.0
    steer: float = 0.0
    brake1: float = 0.0
    brake2: float = 0.0
    force: float = 0.0
    dampening: float = 0.0
    friction: float = 0.02


@dataclass
class TypePart:
    """A rigid part of a vehicle type with its clips, wheels and jet flames."""

    name: str = ""
    parentname: str = ""
    parent: int = -1
    ref_local: ReferenceFrame = field(default_factory=ReferenceFrame)
    render_ref_local: ReferenceFrame = field(default_factory=ReferenceFrame)
    model: Optional[Any] = None
    scale: float = 1.0
    clips: List[VehicleClip] = field(default_factory=list)
    wheels: List[TypeWheel] = field(default_factory=list)
    flames: List[ReferenceFrame] = field(default_factory=list)


@dataclass
class ControlRates:
    """How fast each control input may move toward its requested value, per second."""

    throttle: float = 10.0
    brake1: float = 10.0
    brake2: float = 10.0
    turn: Vec3 = field(default_factory=lambda: Vec3(10.0, 10.0, 10.0))
    collective: float = 10.0
    aim: Vec2 = field(default_factory=lambda: Vec2(10.0, 10.0))


@dataclass
class VehicleParams:
    """Control parameters of a vehicle type."""

    speed: float = 0.0
    turnspeed: Vec3 = field(default_factory=Vec3.zero)
    turnspeed_a: float = 1.0
    turnspeed_b: float = 0.0
    fineffect: Vec2 = field(default_factory=Vec2)


@dataclass
class _Aero:
    drag: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    angdrag: float = 1.0
    lift: float = 1.0


def wheel_drive_label(drives: Sequence[float]) -> str:
    """Human-readable drive layout from the drive values of all wheels, in file order."""
    if len(drives) == 4:
        driven = [d > 0 for d in drives]
        idle = [d == 0 for d in drives]
        if all(driven):
            return "4WD"
        if driven[0] and driven[1] and idle[2] and idle[3]:
            return "FWD"
        if idle[0] and idle[1] and driven[2] and driven[3]:
            return "RWD"
        return "non standard layout"
    count = sum(1 for d in drives if d > 0)
    return f"{count} driving out of {len(drives)}"


def _strip_fraction_zeros(text: str) -> str:
    text = text.rstrip("0")
    if text.endswith("."):
        text = text[:-1]
    return text


def _load_model(name: str, filename: str, model_loader: ModelLoader):
    try:
        path = assemble_path(name, filename)
    except ValueError as exc:
        log.error("%s", exc)
        return None
    return model_loader(path)


@dataclass
class VehicleType:
    """Everything shared by the vehicles of one type: geometry, engine and handling coefficients."""

    name: str = ""
    proper_name: str = "Vehicle"
    proper_class: str = "Unknown"
    coretype: CoreType = CoreType.CAR
    mass: float = 1.0
    dims: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    wheelscale: float = 1.0
    wheelmodel: Optional[Any] = None
    ctrlrate: ControlRates = field(default_factory=ControlRates)
    param: VehicleParams = field(default_factory=VehicleParams)
    engine: Engine = field(default_factory=Engine)
    parts: List[TypePart] = field(default_factory=list)
    driving_wheels_num: float = 0.0
    drag_coeff: Vec3 = field(default_factory=Vec3.zero)
    ang_drag_coeff: Vec3 = field(default_factory=Vec3.zero)
    lift_coeff: float = 0.0
    inverse_drive_total: float = 0.0
    wheel_speed_multiplier: float = 0.0
    pstat_roadholding: str = ""
    pstat_enginepower: str = ""
    pstat_wheeldrive: str = ""
    locked: bool = False

    @classmethod
    def load(cls, filename: str, model_loader: ModelLoader) -> VehicleType:
        """Read a vehicle type file; models are loaded through model_loader.

        Models used to measure the vehicle must provide extents() returning
        the (mins, maxs) corners of their bounding box. Raises LoadError.
        """
        log.debug('Loading vehicle type "%s"', filename)
        vt = cls(name=filename)
        root = load_root_element(filename, "vehicle")

        val = root.get("name")
        if val is not None:
            vt.proper_name = val
        val = root.get("class")
        if val is not None:
            vt.proper_class = val
        allscale = 1.0
        val = root.get("allscale")
        if val is not None:
            allscale = _atof(val)

        val = root.get("type")
        if not val:
            raise LoadError(f"{filename}: <vehicle> element without type attribute")
        try:
            vt.coretype = CoreType(val)
        except ValueError:
            raise LoadError(f'{filename}: <vehicle> has unrecognised type "{val}"') from None

        aero = _Aero()
        custom_dims = False
        for walk in root:
            if walk.tag == "genparams":
                custom_dims = vt._read_genparams(walk, allscale, filename, model_loader) or custom_dims
            elif walk.tag == "ctrlparams":
                vt._read_ctrlparams(walk, aero)
            elif walk.tag == "drivesystem":
                vt._read_drivesystem(walk)
            elif walk.tag == "part":
                vt.parts.append(_read_part(walk, allscale, filename, model_loader))

        vt._resolve_parents()
        vt._finish(custom_dims, aero)
        return vt

    def _read_genparams(self, walk: ET.Element, allscale: float, filename: str,
                        model_loader: ModelLoader) -> bool:
        custom_dims = False
        val = walk.get("mass")
        if val is not None:
            self.mass = _atof(val)
        val = walk.get("dimensions")
        if val is not None:
            custom_dims = True
            self.dims = _scan_vec3(val, self.dims) * allscale
        val = walk.get("wheelscale")
        if val is not None:
            self.wheelscale = _atof(val)
        val = walk.get("wheelmodel")
        if val is not None:
            self.wheelmodel = _load_model(val, filename, model_loader)
        return custom_dims

    def _read_ctrlparams(self, walk: ET.Element, aero: _Aero) -> None:
        param, rate = self.param, self.ctrlrate
        val = walk.get("speed")
        if val is not None:
            param.speed = _atof(val)
        val = walk.get("turnspeed")
        if val is not None:
            param.turnspeed = _scan_vec3(val, param.turnspeed)
        val = walk.get("drag")
        if val is not None:
            aero.drag = _scan_vec3(val, aero.drag)
        val = walk.get("angdrag")
        if val is not None:
            aero.angdrag = _atof(val)
        val = walk.get("lift")
        if val is not None:
            values = _scan(val, 1)
            if values:
                aero.lift = values[0]
        val = walk.get("speedrate")
        if val is not None:
            rate.throttle = _atof(val)
        val = walk.get("turnspeedrate")
        if val is not None:
            rate.turn = _scan_vec3(val, rate.turn)
        val = walk.get("turnspeedcoefficients")
        if val is not None:
            values = _scan(val, 2)
            if len(values) > 0:
                param.turnspeed_a = values[0]
            if len(values) > 1:
                param.turnspeed_b = values[1]
        val = walk.get("fineffect")
        if val is not None:
            values = _scan(val, 2)
            old = param.fineffect
            param.fineffect = Vec2(*(values + [old.x, old.y][len(values):]))

    def _read_drivesystem(self, walk: ET.Element) -> None:
        for child in walk:
            if child.tag == "engine":
                powerscale = _atof(child.get("powerscale", "1"))
                for point in child:
                    if point.tag != "powerpoint":
                        continue
                    rpm = point.get("rpm")
                    if rpm is None:
                        log.warning("failed to read engine RPM value")
                        continue
                    power = point.get("power")
                    if power is None:
                        log.warning("failed to read engine power value")
                        continue
                    self.engine.add_power_curve_point(_atof(rpm), _atof(power) * powerscale)
            elif child.tag == "gearbox":
                for gear in child:
                    if gear.tag != "gear":
                        continue
                    val = gear.get("absolute")
                    if val is not None:
                        self.engine.add_gear(_atof(val))
                        continue
                    val = gear.get("relative")
                    if val is None:
                        log.warning("gear has neither absolute nor relative value")
                        continue
                    if not self.engine.has_gears():
                        log.warning("first gear cannot use relative value")
                        continue
                    self.engine.add_gear(self.engine.last_gear_ratio() * _atof(val))

    def _resolve_parents(self) -> None:
        for i, part in enumerate(self.parts):
            if not part.parentname:
                continue
            for j, other in enumerate(self.parts):
                if i != j and other.name == part.parentname:
                    part.parent = j
                    break
            else:
                log.warning('part "%s" references non-existent parent "%s"',
                            part.name, part.parentname)

    def _finish(self, custom_dims: bool, aero: _Aero) -> None:
        wheels = [w for part in self.parts for w in part.wheels]

        if wheels:
            road_holding = sum(w.friction for w in wheels) / len(wheels)
        else:
            road_holding = math.nan
        self.pstat_roadholding = _strip_fraction_zeros(f"{road_holding * 100:f}")

        self.driving_wheels_num = sum(w.drive for w in wheels)
        if self.driving_wheels_num == 0:
            self.driving_wheels_num = 1

        power_text = f"{self.engine.horse_power():f}"
        dot = power_text.rfind(".")
        self.pstat_enginepower = power_text[:dot] if dot >= 0 else power_text

        self.pstat_wheeldrive = wheel_drive_label([w.drive for w in wheels])

        if not custom_dims:
            if not self.parts or self.parts[0].model is None:
                raise LoadError(f"{self.name}: no dimensions given and no model to measure")
            first = self.parts[0]
            lo, hi = first.model.extents()
            self.dims = (hi - lo) * first.scale

        d = self.dims
        # Drag force F = cd * p * u^2 * A / 2, per axis.
        cd_front = 0.3 * aero.drag.y
        cd_side = 0.8 * aero.drag.x
        cd_bottom = 0.9 * aero.drag.z
        area_front = d.x * d.z * DRAG_HACK_AREA * 0.9
        area_side = d.y * d.z * DRAG_HACK_AREA * 0.75
        area_bottom = d.x * d.y * DRAG_HACK_AREA * 0.97
        self.drag_coeff = Vec3(
            cd_side * AIR_DENSITY * area_side * 0.5,
            cd_front * AIR_DENSITY * area_front * 0.5,
            cd_bottom * AIR_DENSITY * area_bottom * 0.5,
        )
        self.ang_drag_coeff = Vec3(
            62 * (d.y + d.z) * aero.angdrag,
            62 * (d.x + d.z) * aero.angdrag,
            62 * (d.y + d.x) * aero.angdrag,
        )
        # Downforce L = W * h * F * p * V^2 / 2, with a small negative lift coefficient.
        self.lift_coeff = 0.5 * d.x * d.y * (-0.02 * aero.lift) * AIR_DENSITY * DRAG_HACK_AREA

        drive_total = sum(w.drive for w in wheels)
        self.inverse_drive_total = 1.0 / drive_total if drive_total > 0.0 else 0.0
        self.wheel_speed_multiplier = 1.0 / len(wheels) if wheels else 0.0


def _read_part(walk: ET.Element, allscale: float, filename: str,
               model_loader: ModelLoader) -> TypePart:
    part = TypePart()
    part.name = walk.get("name", "")
    part.parentname = walk.get("parent", "")

    val = walk.get("pos")
    if val is not None:
        values = _scan(val, 3)
        if len(values) == 3:
            part.ref_local.position = Vec3(*values) * allscale

    val = walk.get("render_pos")
    if val is not None:
        values = _scan(val, 3)
        if len(values) == 3:
            part.render_ref_local.position = Vec3(*values) * allscale
    else:
        part.render_ref_local = part.ref_local.copy()

    val = walk.get("orientation")
    if val is not None:
        # w first, as in usual mathematical notation
        ori = _scan_quat(val, Quat.identity())
        if len(_scan(val, 4)) == 4:
            part.ref_local.orientation = ori
        part.render_ref_local.orientation = ori
        part.render_ref_local.update_matrices()

    val = walk.get("scale")
    if val is not None:
        part.scale = _atof(val)
    val = walk.get("model")
    if val is not None:
        part.model = _load_model(val, filename, model_loader)

    for child in walk:
        if child.tag == "clip":
            clip = _read_clip(child, allscale)
            if clip is not None:
                part.clips.append(clip)
        elif child.tag == "wheel":
            wheel = _read_wheel(child, allscale)
            if wheel is not None:
                part.wheels.append(wheel)
        elif child.tag == "jetflame":
            part.flames.append(_read_flame(child, allscale))

    part.ref_local.update_matrices()
    return part


def _read_clip(el: ET.Element, allscale: float) -> Optional[VehicleClip]:
    val = el.get("type")
    if not val:
        log.warning("<clip> element without type attribute")
        return None
    try:
        clip_type = ClipType(val)
    except ValueError:
        log.warning('<clip> has unrecognised type "%s"', val)
        return None
    val = el.get("pos")
    if val is None:
        log.warning("<clip> has no pos attribute")
        return None
    clip = VehicleClip(clip_type, _scan_vec3(val, Vec3.zero()) * allscale)
    val = el.get("force")
    if val is not None:
        clip.force = _atof(val)
    val = el.get("dampening")
    if val is not None:
        clip.dampening = _atof(val)
    return clip


def _read_wheel(el: ET.Element, allscale: float) -> Optional[TypeWheel]:
    val = el.get("pos")
    if val is None:
        log.warning("<wheel> has no pos attribute")
        return None
    wheel = TypeWheel(pt=_scan_vec3(val, Vec3.zero()) * allscale)
    for attr in ("radius", "drive", "steer", "brake1", "brake2", "force", "dampening", "friction"):
        val = el.get(attr)
        if val is not None:
            setattr(wheel, attr, _atof(val))
    return wheel


def _read_flame(el: ET.Element, allscale: float) -> ReferenceFrame:
    flame = ReferenceFrame()
    val = el.get("pos")
    if val is not None:
        values = _scan(val, 3)
        if len(values) == 3:
            flame.position = Vec3(*values) * allscale
    val = el.get("ori")
    if val is not None:
        values = _scan(val, 4)
        if len(values) == 4:
            flame.orientation = Quat(*values)
    flame.update_matrices()
    return flame