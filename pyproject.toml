[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "redpiler"
version = "0.1.0"
description = "An optimizing compiler and direct simulation backend for redstone circuit graphs"
requires-python = ">=3.10"
dependencies = []
keywords = ["redstone", "simulation", "compiler", "graph", "optimization"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["redpiler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
