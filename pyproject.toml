[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "rallysim"
version = "0.1.0"
description = "Terrain, vehicle-definition, engine and rigid-body building blocks for an off-road rally simulation"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["rally", "racing", "simulation", "physics", "terrain", "heightmap", "vehicle"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["rallysim*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
