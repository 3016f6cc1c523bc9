[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "meshsmooth"
version = "0.1.0"
description = "Smoothing and topology clean-up routines for polyhedral and boundary-layer meshes"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["mesh", "smoothing", "laplacian", "boundary layer", "cfd"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["meshsmooth*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
