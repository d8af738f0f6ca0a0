[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chainoracle"
version = "0.1.0"
description = "A validator-driven oracle state machine: claims, prevotes, votes, rounds and weighted tallies over an in-memory key-value store."
requires-python = ">=3.10"
dependencies = []
keywords = ["oracle", "blockchain", "voting", "validators", "consensus", "keeper", "bech32"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["chainoracle"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
