"""Terrain, vehicle-definition, engine and rigid-body building blocks for an off-road rally simulation."""

__version__ = "0.1.0"