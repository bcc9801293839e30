[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pcompose"
version = "0.1.0"
description = "Process orchestration configuration: compose files, merging, dependency ordering, health probe settings and log buffering"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
    "python-dotenv",
]
keywords = ["process", "orchestration", "compose", "supervisor", "yaml"]
classifiers = [
    "Development Status :: 3 - Alpha",
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

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pcompose"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
