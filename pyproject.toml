[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "poolkit"
version = "0.9.9"
description = "Helpers for mining pool software: hashing, address decoding, difficulty maths and TCP socket helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["mining", "pool", "sha256", "cashaddr", "base58", "difficulty", "stratum"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["poolkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
