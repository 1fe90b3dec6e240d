[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "p4rt"
version = "0.1.0"
description = "Building blocks for P4 packet pipelines: bit vectors, checksums, match tables and a HiCuts classifier"
requires-python = ">=3.10"
dependencies = []
keywords = ["p4", "packet", "match-action", "checksum", "bitvector", "classifier", "hicuts", "lpm"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["p4rt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
