[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvbalance"
version = "0.1.0"
description = "A model of a small multiprocessor kernel's process table, per-core scheduler and idle-time load balancer, with a few of its user-space tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "kernel",
    "scheduler",
    "load-balancing",
    "multicore",
    "process-table",
    "shell",
    "allocator",
    "simulation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xvbalance-wc = "xvbalance.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["xvbalance"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
