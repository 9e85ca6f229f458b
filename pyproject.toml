[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "delivroute"
version = "0.1.0"
description = "Delivery routing helpers: input validation, HTTP error mapping, Mapbox geocoding, carrier company listing and a SQLite-backed address cache"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["delivery", "routing", "geocoding", "address", "validation", "mapbox"]
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
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Scientific/Engineering :: GIS",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["delivroute"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
