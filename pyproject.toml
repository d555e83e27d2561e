[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ctrkit"
version = "0.1.0"
description = "Building blocks for a containerd command-line client: port flags, run options, cgroup and security settings, rootless helpers and OCI hook helpers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "containers",
    "containerd",
    "oci",
    "rootless",
    "cgroups",
    "port-mapping",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ctrkit"]

[tool.hatch.build.targets.sdist]
include = ["ctrkit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
