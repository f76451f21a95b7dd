"""Engine power curve, gearbox and the per-vehicle engine state."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from .vecmath import Vec2

RPM_TO_RPS = 2.0 * math.pi / 60.0
RPS_TO_RPM = 60.0 / (2.0 * math.pi)

# Empirical factor turning peak power times rpm into a brake-horsepower figure.
_BHP_FACTOR = 1e-6

# Torque lost to transmission and rolling resistance, per unit of wheel speed.
_TRANSMISSION_LOSS = 0.1


def _clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


@dataclass
class Engine:
    """Power curve (radians per second against power) and gear ratios of an engine type."""

    powercurve: List[Vec2] = field(default_factory=list)
    gears: List[float] = field(default_factory=list)
    min_rps: float = math.inf
    max_rps: float = 0.0
    gearch_first: float = 0.4
    gearch_repeat: float = 0.15

    def add_power_curve_point(self, rpm: float, power: float) -> None:
        """Add a point to the power curve; points at or below zero rpm are ignored."""
        if rpm <= 0.0:
            return
        rps = rpm * RPM_TO_RPS
        self.powercurve.append(Vec2(rps, power))
        self.min_rps = min(self.min_rps, rps)
        self.max_rps = max(self.max_rps, rps)

    def add_gear(self, ratio: float) -> None:
        """Append a gear; each ratio must be positive and above the previous one."""
        if self.has_gears():
            if ratio <= self.last_gear_ratio():
                return
        elif ratio <= 0.0:
            return
        self.gears.append(ratio)

    def has_gears(self) -> bool:
        return bool(self.gears)

    def last_gear_ratio(self) -> float:
        if not self.gears:
            raise ValueError("engine has no gears")
        return self.gears[-1]

    def horse_power(self) -> float:
        """Rough brake horsepower figure taken from the best point of the curve."""
        bhp = 0.0
        for point in self.powercurve:
            bhp = max(bhp, point.y * point.x * RPS_TO_RPM * _BHP_FACTOR)
        return bhp

    def power_at_rps(self, rps: float) -> float:
        """Power output at an engine speed in radians per second."""
        curve = self.powercurve
        if not curve:
            raise ValueError("engine has no power curve")
        p = next((i for i, point in enumerate(curve) if point.x >= rps), len(curve))
        if p == 0:
            first = curve[0]
            return first.y * (rps / first.x)
        if p < len(curve):
            a, b = curve[p - 1], curve[p]
            return a.y + (b.y - a.y) * ((rps - a.x) / (b.x - a.x))
        # Past the last point the curve has no span to fall off over, so the
        # output collapses without bound.
        last = curve[-1]
        return last.y + (0.0 - last.y) * math.inf


class EngineInstance:
    """Running state of one vehicle's engine: speed, output torque and automatic gear changes."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.reset()

    def reset(self) -> None:
        self.rps = self.engine.min_rps if math.isfinite(self.engine.min_rps) else 0.0
        self.out_torque = 0.0
        self.currentgear = 0
        self.targetgear_rel = 0
        self.gearch = 0.0
        self.reverse = False
        self.flag_gearchange = False
        self.shiftdirection = 0

    def _torque_in(self, target: int) -> float:
        """Output torque if the gearbox were in gear target at the current engine speed."""
        gears = self.engine.gears
        nextrate = self.rps * gears[self.currentgear] / gears[target]
        nextrate = _clamp(nextrate, self.engine.min_rps, self.engine.max_rps)
        return self.engine.power_at_rps(nextrate) / (gears[target] * nextrate)

    def tick(self, delta: float, throttle: float, wheel_rps: float) -> None:
        """Advance by delta seconds: update engine speed, choose gear and compute output torque."""
        engine = self.engine
        gears = engine.gears

        self.rps = wheel_rps / gears[self.currentgear]

        wasreverse = self.reverse
        self.reverse = throttle < 0.0
        if wasreverse != self.reverse:
            self.flag_gearchange = True
            self.shiftdirection = -1 if self.reverse else 1

        if self.reverse:
            self.rps = -self.rps
            throttle = -throttle

        throttle = min(throttle, 1.0)
        self.rps = _clamp(self.rps, engine.min_rps, engine.max_rps)

        if self.reverse:
            self.currentgear = 0

        self.out_torque = engine.power_at_rps(self.rps) / (gears[self.currentgear] * self.rps)

        if not self.reverse:
            newtarget_rel = 0
            if self.currentgear < len(gears) - 1:
                if self._torque_in(self.currentgear + 1) > self.out_torque:
                    newtarget_rel = 1
            if self.currentgear > 0 and newtarget_rel == 0:
                if self._torque_in(self.currentgear - 1) > self.out_torque:
                    newtarget_rel = -1

            if newtarget_rel != 0 and newtarget_rel == self.targetgear_rel:
                self.gearch -= delta
                if self.gearch <= 0.0:
                    target = self.currentgear + self.targetgear_rel
                    self.out_torque = self._torque_in(target)
                    self.currentgear = target
                    self.gearch = engine.gearch_repeat
                    self.flag_gearchange = True
                    self.shiftdirection = self.targetgear_rel
            else:
                self.gearch = engine.gearch_first
                self.targetgear_rel = newtarget_rel

        self.out_torque *= throttle
        if self.reverse:
            self.out_torque *= -1.0
        self.out_torque -= wheel_rps * _TRANSMISSION_LOSS