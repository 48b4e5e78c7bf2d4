[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "ooopipe"
version = "0.1.0"
description = "Trace-driven instruction mix analyzer and out-of-order pipeline simulator"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "simulator",
    "pipeline",
    "out-of-order",
    "reorder-buffer",
    "reservation-station",
    "computer-architecture",
    "trace",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ooopipe-analyze = "ooopipe.analyzer:main"
ooopipe-sim = "ooopipe.sim:main"

[tool.setuptools]
packages = ["ooopipe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
