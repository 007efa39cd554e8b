[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "habstation"
version = "0.1.0"
description = "Building blocks for a high-altitude balloon ground station: GPS distance, SondeHub upload, binary spectrum frames and a websocket control server"
requires-python = ">=3.10"
keywords = ["hab", "rtty", "sondehub", "telemetry", "websocket", "ham radio", "balloon"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
]
dependencies = [
    "requests",
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["habstation"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
