[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smcekit"
version = "0.1.0"
description = "Sketch toolchain, plugin manifests and virtual board views for emulated Arduino-style boards"
requires-python = ">=3.10"
dependencies = []
keywords = ["arduino", "emulation", "sketch", "cmake", "framebuffer", "uart", "gpio"]
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
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["smcekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
