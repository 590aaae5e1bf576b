[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tpsengine"
version = "0.1.0"
description = "Core pieces of a small third-person shooter engine: vector math, render graph, camera, input, asset loading and a playable demo."
requires-python = ">=3.10"
keywords = ["game", "engine", "render-graph", "camera", "gltf", "shooter"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tps-demo = "tpsengine.demo_app:main"

[tool.hatch.build.targets.wheel]
packages = ["tpsengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
