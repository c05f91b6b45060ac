[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kagekero"
version = "1.0.0"
description = "A minimalist puzzle-platformer built on pygame, with Tiled maps and a packed asset file."
requires-python = ">=3.10"
keywords = ["game", "platformer", "puzzle", "pygame", "tiled"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Puzzle Games",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
kagekero = "kagekero.game:main"

[tool.hatch.build.targets.wheel]
packages = ["kagekero"]

[tool.pytest.ini_options]
addopts = "-ra"
