[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vmwarekit"
version = "0.1.0"
description = "Configuration, build artifacts, OVF Tool helpers and a VMware Fusion driver for building virtual machine images"
requires-python = ">=3.10"
dependencies = []
keywords = ["vmware", "fusion", "ovftool", "virtual-machine", "image-builder"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vmwarekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
