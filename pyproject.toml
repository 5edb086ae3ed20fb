[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mvvmstate"
version = "0.1.0"
description = "Latched reactive state, view models and UI hooks for immediate-mode interfaces on asyncio"
requires-python = ">=3.10"
dependencies = []
keywords = ["mvvm", "state", "view-model", "immediate-mode", "asyncio", "hooks", "reactive"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: User Interfaces",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["mvvmstate"]

[tool.hatch.build.targets.sdist]
include = ["mvvmstate", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
