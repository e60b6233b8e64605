[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vegasmc"
version = "4.2.2"
description = "Vegas adaptive Monte Carlo integration over the unit hypercube, with a partition viewer and a distribution packer"
requires-python = ">=3.10"
keywords = ["monte carlo", "integration", "vegas", "importance sampling", "numerical"]
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
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "scipy",
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
vegasmc-partview = "vegasmc.partview:main"
vegasmc-mkdist = "vegasmc.mkdist:main"

[tool.hatch.build.targets.wheel]
packages = ["vegasmc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
