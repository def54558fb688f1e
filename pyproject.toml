[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gbsa_engine"
version = "0.1.0"
description = "Core of a handheld-style 2D game engine: tracker music player, sound registers, camera, dialogue text, tile video model and actor sprites"
requires-python = ">=3.10"
dependencies = []
keywords = ["game engine", "tracker", "chiptune", "tiles", "sprites", "retro"]
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
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gbsa_engine"]

[tool.pytest.ini_options]
addopts = "-ra"
