[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kdfoundation"
version = "0.1.0"
description = "Event loop, object tree, signals and timers for building event-driven applications"
requires-python = ">=3.10"
dependencies = []
keywords = ["event loop", "signals", "properties", "timers", "object tree", "event queue", "notifier"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
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
packages = ["kdfoundation"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
