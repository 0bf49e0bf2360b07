[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codchikit"
version = "0.1.0"
description = "Configuration files, locking, nix log parsing, progress tracking and status output for code machines"
requires-python = ">=3.10"
keywords = ["nix", "nixos", "development-environment", "configuration", "progress", "logging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "platformdirs",
    "portalocker",
    "tomlkit",
    "tabulate",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["codchikit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
